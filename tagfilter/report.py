from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

import pandas as pd

from tagfilter.catalog import Catalog
from tagfilter.types import CoverageConstraint, Item


REPORT_COLUMNS = ["label", "count", "required", "constraint", "selected"]


def coverage_table(
    catalog: Catalog,
    threshold: int,
    constraints: Sequence[CoverageConstraint],
    selected: Iterable[Item],
) -> pd.DataFrame:
    """One row per counted label: catalog count, whether it is required,
    whether its constraint survived reduction, and how many selected items
    carry it."""

    kept = {c.name for c in constraints}
    selected_counts: dict[str, int] = {}
    for item in selected:
        for name in set(item.labels):
            selected_counts[name] = selected_counts.get(name, 0) + 1

    rows = [
        {
            "label": label.name,
            "count": label.count,
            "required": label.required,
            "constraint": label.name in kept,
            "selected": selected_counts.get(label.name, 0),
        }
        for label in catalog.labels(threshold)
    ]
    df = pd.DataFrame(rows, columns=REPORT_COLUMNS)
    return df.sort_values(["required", "count", "label"], ascending=[False, False, True]).reset_index(drop=True)


def write_coverage_report(df: pd.DataFrame, path: str | Path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(p, index=False)
    return p
