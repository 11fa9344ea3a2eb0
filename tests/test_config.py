from __future__ import annotations

from pathlib import Path

import pytest

from tagfilter.catalog import DEFAULT_IGNORED_LABELS
from tagfilter.config import load_config


ROOT = Path(__file__).resolve().parents[1]


def test_defaults_match_documented_options() -> None:
    cfg = load_config(overrides={"catalog.source": "tags"})

    assert cfg.catalog.source == "tags"
    assert cfg.catalog.ignored_labels == DEFAULT_IGNORED_LABELS
    assert (cfg.model.threshold, cfg.model.minimum) == (250, 100)
    assert cfg.engine == "ortools_scip"
    assert cfg.solver.exact is False
    assert cfg.relax.cut_rounds == 0
    assert cfg.output.list_path == "output.txt"
    assert cfg.output.destination is None


def test_yaml_file_then_overrides(tmp_path: Path) -> None:
    path = tmp_path / "run.yaml"
    path.write_text(
        "catalog:\n  source: data\n  ignored_labels: [highres]\n"
        "model:\n  threshold: 10\n"
        "solver:\n  engine: pulp_cbc\n  time_limit_sec: 30\n",
        encoding="utf-8",
    )

    cfg = load_config(path, overrides={"model.minimum": 4, "solver.exact": True, "model.threshold": None})

    assert cfg.catalog.ignored_labels == ("highres",)
    assert (cfg.model.threshold, cfg.model.minimum) == (10, 4)
    assert cfg.engine == "pulp_cbc"
    assert cfg.solver.time_limit_sec == 30.0
    assert cfg.solver.exact is True


def test_shipped_config_loads() -> None:
    cfg = load_config(ROOT / "configs" / "tagfilter.yaml")

    assert cfg.catalog.ignored_labels == DEFAULT_IGNORED_LABELS
    assert cfg.reduce.method == "merge"


@pytest.mark.parametrize(
    "overrides",
    [
        {},
        {"catalog.source": "x", "model.threshold": 0},
        {"catalog.source": "x", "model.minimum": -1},
        {"catalog.source": "x", "reduce.method": "hash"},
        {"catalog.source": "x", "solver.engine": "glpk"},
        {"catalog.source": "x", "solver.absolute_gap": 1.5},
        {"catalog.source": "x", "relax.cut_rounds": -2},
    ],
)
def test_invalid_config(overrides: dict) -> None:
    with pytest.raises(ValueError):
        load_config(overrides=overrides)


def test_overrides_replace_lists_and_ignore_unset_options() -> None:
    cfg = load_config(
        overrides={
            "catalog.source": "tags",
            "catalog.ignored_labels": ["watermark", "signature"],
            "output.destination": None,
            "solver.node_limit": 50,
        }
    )

    assert cfg.catalog.ignored_labels == ("watermark", "signature")
    assert cfg.output.destination is None
    assert cfg.solver.node_limit == 50
