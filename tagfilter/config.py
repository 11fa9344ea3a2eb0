from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from omegaconf import OmegaConf

from tagfilter.catalog import DEFAULT_IGNORED_LABELS, DEFAULT_PATTERN
from tagfilter.engine import ENGINE_MODULES, SolverSettings
from tagfilter.reduce import REDUCE_METHODS


DEFAULT_CONFIG: dict[str, Any] = {
    "catalog": {
        "source": None,
        "pattern": DEFAULT_PATTERN,
        "ignored_labels": list(DEFAULT_IGNORED_LABELS),
    },
    "model": {
        "threshold": 250,
        "minimum": 100,
    },
    "reduce": {
        "enabled": True,
        "method": "merge",
    },
    "relax": {
        "enabled": True,
        "cut_rounds": 0,
        "cut_tolerance": 1e-6,
    },
    "solver": {
        "engine": "ortools_scip",
        "exact": False,
        "relative_gap": 0.01,
        "absolute_gap": 0.999,
        "time_limit_sec": None,
        "node_limit": None,
        "seed": 0,
        "poll_interval_sec": 5.0,
        "verbose": False,
    },
    "output": {
        "list_path": "output.txt",
        "destination": None,
        "report_path": None,
        "export_model_dir": None,
    },
}


@dataclass(frozen=True)
class CatalogConfig:
    source: str
    pattern: str
    ignored_labels: tuple[str, ...]


@dataclass(frozen=True)
class ModelConfig:
    threshold: int
    minimum: int


@dataclass(frozen=True)
class ReduceConfig:
    enabled: bool
    method: str


@dataclass(frozen=True)
class RelaxConfig:
    enabled: bool
    cut_rounds: int
    cut_tolerance: float


@dataclass(frozen=True)
class OutputConfig:
    list_path: str
    destination: str | None
    report_path: str | None
    export_model_dir: str | None


@dataclass(frozen=True)
class RunConfig:
    catalog: CatalogConfig
    model: ModelConfig
    reduce: ReduceConfig
    relax: RelaxConfig
    engine: str
    solver: SolverSettings
    output: OutputConfig


def _optional(value: Any, cast: type) -> Any:
    return None if value is None else cast(value)


def load_config(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> RunConfig:
    cfg_obj = OmegaConf.create(DEFAULT_CONFIG)
    if config_path is not None:
        cfg_obj = OmegaConf.merge(cfg_obj, OmegaConf.load(str(config_path)))
    # Unset CLI options arrive as None and leave the file/default value alone.
    for key, value in (overrides or {}).items():
        if value is not None:
            OmegaConf.update(cfg_obj, key, value, force_add=True)
    cfg = OmegaConf.to_container(cfg_obj, resolve=True)
    assert isinstance(cfg, dict)
    return to_run_config(cfg)


def to_run_config(cfg: dict[str, Any]) -> RunConfig:
    source = cfg["catalog"].get("source")
    if not source:
        raise ValueError("catalog.source is required (--source)")

    model = ModelConfig(threshold=int(cfg["model"]["threshold"]), minimum=int(cfg["model"]["minimum"]))
    if model.threshold < 1:
        raise ValueError(f"model.threshold must be >= 1, got {model.threshold}")
    if model.minimum < 0:
        raise ValueError(f"model.minimum must be >= 0, got {model.minimum}")

    reduce_cfg = ReduceConfig(enabled=bool(cfg["reduce"]["enabled"]), method=str(cfg["reduce"]["method"]))
    if reduce_cfg.method not in REDUCE_METHODS:
        raise ValueError(f"reduce.method must be one of {REDUCE_METHODS}, got {reduce_cfg.method}")

    relax_cfg = RelaxConfig(
        enabled=bool(cfg["relax"]["enabled"]),
        cut_rounds=int(cfg["relax"]["cut_rounds"]),
        cut_tolerance=float(cfg["relax"]["cut_tolerance"]),
    )
    if relax_cfg.cut_rounds < 0:
        raise ValueError(f"relax.cut_rounds must be >= 0, got {relax_cfg.cut_rounds}")

    solver_raw = cfg["solver"]
    engine = str(solver_raw["engine"])
    if engine not in ENGINE_MODULES:
        raise ValueError(f"solver.engine must be one of {sorted(ENGINE_MODULES)}, got {engine}")
    settings = SolverSettings(
        exact=bool(solver_raw["exact"]),
        relative_gap=float(solver_raw["relative_gap"]),
        absolute_gap=float(solver_raw["absolute_gap"]),
        time_limit_sec=_optional(solver_raw.get("time_limit_sec"), float),
        node_limit=_optional(solver_raw.get("node_limit"), int),
        seed=int(solver_raw["seed"]),
        poll_interval_sec=float(solver_raw["poll_interval_sec"]),
        verbose=bool(solver_raw["verbose"]),
    )
    if not 0.0 <= settings.relative_gap < 1.0:
        raise ValueError(f"solver.relative_gap must be in [0, 1), got {settings.relative_gap}")
    if not 0.0 <= settings.absolute_gap < 1.0:
        raise ValueError(f"solver.absolute_gap must be in [0, 1), got {settings.absolute_gap}")

    out = cfg["output"]
    return RunConfig(
        catalog=CatalogConfig(
            source=str(source),
            pattern=str(cfg["catalog"].get("pattern", DEFAULT_PATTERN)),
            ignored_labels=tuple(str(x) for x in cfg["catalog"].get("ignored_labels", []) or []),
        ),
        model=model,
        reduce=reduce_cfg,
        relax=relax_cfg,
        engine=engine,
        solver=settings,
        output=OutputConfig(
            list_path=str(out.get("list_path") or "output.txt"),
            destination=_optional(out.get("destination"), str),
            report_path=_optional(out.get("report_path"), str),
            export_model_dir=_optional(out.get("export_model_dir"), str),
        ),
    )
