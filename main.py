from __future__ import annotations

import argparse
import sys

from tagfilter.errors import TagFilterError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Select the smallest set of tagged files that still covers every frequent tag")
    parser.add_argument("--source", default=None,
                        help="Directory of tag files (*.txt) or a path with a glob pattern")
    parser.add_argument("--destination", default=None, help="Directory to hard-link selected files into")
    parser.add_argument("--threshold", type=int, default=None,
                        help="Minimum number of occurrences for a tag to be required (default 250)")
    parser.add_argument("--minimum", type=int, default=None,
                        help="Minimum number of occurrences of each required tag in the result (default 100)")
    parser.add_argument("--exact", dest="exact", action="store_true", default=None,
                        help="Prove optimality instead of stopping within the gap tolerance")
    parser.add_argument("--config", default=None, help="YAML config, e.g. configs/tagfilter.yaml")
    parser.add_argument("--engine", choices=["ortools_scip", "pulp_cbc"], default=None)
    parser.add_argument("--reduce-method", choices=["merge", "bitset"], default=None)
    parser.add_argument("--no-reduce", dest="reduce", action="store_false", default=None)
    parser.add_argument("--no-relax", dest="relax", action="store_false", default=None)
    parser.add_argument("--cut-rounds", type=int, default=None, help="Objective cut rounds, 0 disables")
    parser.add_argument("--time-limit", type=float, default=None, help="Solver time limit in seconds")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--output", default=None, help="Selected path list (default output.txt)")
    parser.add_argument("--report", default=None, help="Write a per-tag coverage CSV")
    parser.add_argument("--export-model-dir", default=None, help="Write LP files of the model before/after cuts")
    parser.add_argument("--verbose", dest="verbose", action="store_true", default=None,
                        help="Show the solver log")
    return parser


def build_overrides(args: argparse.Namespace) -> dict[str, object]:
    return {
        "catalog.source": args.source,
        "output.destination": args.destination,
        "model.threshold": args.threshold,
        "model.minimum": args.minimum,
        "solver.exact": args.exact,
        "solver.engine": args.engine,
        "reduce.method": args.reduce_method,
        "reduce.enabled": args.reduce,
        "relax.enabled": args.relax,
        "relax.cut_rounds": args.cut_rounds,
        "solver.time_limit_sec": args.time_limit,
        "solver.seed": args.seed,
        "solver.verbose": args.verbose,
        "output.list_path": args.output,
        "output.report_path": args.report,
        "output.export_model_dir": args.export_model_dir,
    }


def main(argv: list[str] | None = None) -> None:
    from tagfilter.config import load_config
    from tagfilter.pipeline import run_pipeline

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = load_config(args.config, overrides=build_overrides(args))
    except (ValueError, OSError) as exc:
        parser.error(str(exc))

    try:
        run_pipeline(cfg)
    except (TagFilterError, OSError, RuntimeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
