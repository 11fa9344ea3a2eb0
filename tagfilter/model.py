from __future__ import annotations

from tagfilter.catalog import Catalog
from tagfilter.types import CoverageConstraint, CoverageModel


def build_model(catalog: Catalog, threshold: int, minimum: int) -> CoverageModel:
    """One binary column per item, one ``sum >= minimum`` row per required label.

    Rows are created in ascending label-count order. A label whose count is
    below ``minimum`` still gets its row; the solver reports the infeasibility.
    """

    if threshold < 1:
        raise ValueError(f"threshold must be >= 1, got {threshold}")
    if minimum < 0:
        raise ValueError(f"minimum must be >= 0, got {minimum}")

    required = catalog.required(threshold)
    label_to_items: dict[str, list[int]] = {label.name: [] for label in required}
    for item in catalog.items:
        for name in dict.fromkeys(item.labels):
            rows = label_to_items.get(name)
            if rows is not None:
                rows.append(item.index)

    constraints = [
        CoverageConstraint(name=label.name, indices=tuple(label_to_items[label.name]), rhs=int(minimum))
        for label in required
    ]
    return CoverageModel(items=catalog.items, constraints=constraints)
