from __future__ import annotations

import time
import warnings
from dataclasses import dataclass
from pathlib import Path

from tagfilter.catalog import Catalog, load_catalog
from tagfilter.config import RunConfig
from tagfilter.driver import print_progress, solve_integer
from tagfilter.engine import ProgressCallback, create_engine
from tagfilter.extract import extract_selection, verify_coverage
from tagfilter.materialize import LinkReport, link_selection, write_selection_list
from tagfilter.model import build_model
from tagfilter.reduce import reduce_constraints
from tagfilter.relax import CutResult, add_objective_cuts, relax_bound
from tagfilter.report import coverage_table, write_coverage_report
from tagfilter.types import CoverageModel, Item, Reduction, Relaxation, Solution, SolveStatus


@dataclass
class PipelineResult:
    catalog: Catalog
    model: CoverageModel
    reduction: Reduction | None
    relaxation: Relaxation | None
    cuts: CutResult | None
    solution: Solution
    selected: list[Item]
    shortfall: dict[str, int]
    list_path: Path
    links: LinkReport | None
    runtime_sec: float


def run_pipeline(cfg: RunConfig, on_progress: ProgressCallback | None = print_progress) -> PipelineResult:
    start = time.perf_counter()

    print("Loading tag data...")
    catalog = load_catalog(cfg.catalog.source, ignored_labels=cfg.catalog.ignored_labels, pattern=cfg.catalog.pattern)
    print(f"Loaded {len(catalog.items)} files, {len(catalog.counts)} distinct tags")

    print("Generating model...")
    model = build_model(catalog, threshold=cfg.model.threshold, minimum=cfg.model.minimum)
    print(f"Finished generating model: {model.n_vars} variables, {model.n_constraints} constraints")
    required = list(model.constraints)

    reduction: Reduction | None = None
    if cfg.reduce.enabled:
        reduction = reduce_constraints(model.constraints, method=cfg.reduce.method)
        for removed, covering in reduction.removed:
            print(f"Removing constraint {removed!r}: implied by {covering!r}")
        model.constraints = list(reduction.kept)
        print(f"Reduced model: {model.n_constraints} constraints ({len(reduction.removed)} removed)")

    engine = create_engine(cfg.engine)
    engine.load(model)

    export_dir = Path(cfg.output.export_model_dir) if cfg.output.export_model_dir else None
    if export_dir is not None:
        engine.export(export_dir / "model_initial.lp")

    relaxation: Relaxation | None = None
    cuts: CutResult | None = None
    if cfg.relax.enabled:
        relaxation = relax_bound(engine)
        if relaxation.optimal:
            print(f"Relaxed objective: {relaxation.objective:.4f}")
        else:
            print(f"Relaxation not solved: {relaxation.engine_status}")
        cuts = add_objective_cuts(
            engine, model, relaxation, max_rounds=cfg.relax.cut_rounds, tolerance=cfg.relax.cut_tolerance
        )
        if cuts.rounds:
            relaxation = cuts.relaxation
            print(f"Added {len(cuts.rounds)} cuts ({cuts.stop_reason}), relaxed objective: {relaxation.objective:.4f}")
            if export_dir is not None:
                engine.export(export_dir / "model_cuts.lp")

    solution = solve_integer(engine, cfg.solver, on_progress=on_progress)
    print(f"Integer result: {solution.status.value} ({solution.engine_status})")
    print(f"Integer objective: {solution.objective}")
    if solution.status is SolveStatus.FEASIBLE or (solution.status is SolveStatus.ABORTED and solution.has_incumbent):
        print(f"Best bound: {solution.best_bound}, gap: {solution.gap}")

    selected = extract_selection(model, solution)
    shortfall = verify_coverage(selected, required) if solution.has_incumbent else {}
    if shortfall:
        warnings.warn(f"selection under-covers {len(shortfall)} tags: {sorted(shortfall)[:10]}")

    list_path = write_selection_list(selected, cfg.output.list_path)
    print(f"Selected {len(selected)} files -> {list_path}")

    if cfg.output.report_path:
        table = coverage_table(catalog, cfg.model.threshold, model.constraints, selected)
        write_coverage_report(table, cfg.output.report_path)

    links: LinkReport | None = None
    if cfg.output.destination is not None and selected:
        print("Creating hardlinks...")
        links = link_selection(selected, cfg.output.destination)
        print(f"Linked {len(links.created)} files, skipped {len(links.skipped)}, failed {len(links.failed)}")

    return PipelineResult(
        catalog=catalog,
        model=model,
        reduction=reduction,
        relaxation=relaxation,
        cuts=cuts,
        solution=solution,
        selected=selected,
        shortfall=shortfall,
        list_path=list_path,
        links=links,
        runtime_sec=time.perf_counter() - start,
    )
