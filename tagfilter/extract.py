from __future__ import annotations

from typing import Iterable, Sequence

from tagfilter.types import CoverageConstraint, CoverageModel, Item, Solution


def extract_selection(model: CoverageModel, solution: Solution, tolerance: float = 1e-6) -> list[Item]:
    if not solution.has_incumbent:
        return []
    if len(solution.values) != model.n_vars:
        raise ValueError(f"solution has {len(solution.values)} values for {model.n_vars} variables")
    return [item for item, value in zip(model.items, solution.values) if value > tolerance]


def verify_coverage(selected: Iterable[Item], constraints: Sequence[CoverageConstraint]) -> dict[str, int]:
    """Shortfall per constraint that the selection fails to meet."""

    chosen = {item.index for item in selected}
    shortfall: dict[str, int] = {}
    for constraint in constraints:
        covered = sum(1 for i in constraint.indices if i in chosen)
        if covered < constraint.rhs:
            shortfall[constraint.name] = constraint.rhs - covered
    return shortfall
