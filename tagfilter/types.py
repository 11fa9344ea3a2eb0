from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class Item:
    index: int
    path: str
    labels: tuple[str, ...]


@dataclass(frozen=True)
class Label:
    name: str
    count: int
    required: bool


@dataclass(frozen=True)
class CoverageConstraint:
    name: str
    indices: tuple[int, ...]
    rhs: int

    def __post_init__(self) -> None:
        for prev, cur in zip(self.indices, self.indices[1:]):
            if cur <= prev:
                raise ValueError(f"constraint {self.name!r} indices must be strictly ascending")


@dataclass
class CoverageModel:
    items: tuple[Item, ...]
    constraints: list[CoverageConstraint]

    @property
    def n_vars(self) -> int:
        return len(self.items)

    @property
    def n_constraints(self) -> int:
        return len(self.constraints)


@dataclass(frozen=True)
class Reduction:
    kept: tuple[CoverageConstraint, ...]
    removed: tuple[tuple[str, str], ...]


class SolveStatus(str, Enum):
    OPTIMAL = "optimal"
    FEASIBLE = "feasible"
    INFEASIBLE = "infeasible"
    ABORTED = "aborted"


@dataclass(frozen=True)
class Relaxation:
    optimal: bool
    objective: float
    values: tuple[float, ...]
    engine_status: str


@dataclass(frozen=True)
class Progress:
    elapsed_sec: float
    iterations: int | None = None
    nodes: int | None = None
    best_bound: float | None = None
    final: bool = False


@dataclass(frozen=True)
class Solution:
    status: SolveStatus
    objective: float
    best_bound: float
    values: tuple[float, ...]
    engine_status: str
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def has_incumbent(self) -> bool:
        return self.status is not SolveStatus.INFEASIBLE and bool(self.values)

    @property
    def gap(self) -> float:
        if not self.has_incumbent or self.best_bound != self.best_bound:
            return float("nan")
        return max(0.0, self.objective - self.best_bound)
