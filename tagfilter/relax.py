from __future__ import annotations

import math
from dataclasses import dataclass

from tagfilter.engine import Engine
from tagfilter.errors import SolverError
from tagfilter.types import CoverageConstraint, CoverageModel, Relaxation


@dataclass(frozen=True)
class CutRound:
    constraint: CoverageConstraint
    fractional_sum: float
    objective_before: float
    objective_after: float


@dataclass(frozen=True)
class CutResult:
    relaxation: Relaxation
    rounds: tuple[CutRound, ...]
    stop_reason: str


def relax_bound(engine: Engine) -> Relaxation:
    """Continuous relaxation of the loaded model; its objective bounds the integer optimum from below."""

    return engine.relax()


def objective_cut(values: tuple[float, ...], tolerance: float, name: str) -> tuple[CoverageConstraint | None, float]:
    fractional = [i for i, v in enumerate(values) if v < 1.0 - tolerance]
    total = float(sum(values[i] for i in fractional))
    rhs = math.ceil(total - tolerance)
    if not fractional or rhs - total <= tolerance:
        return None, total
    return CoverageConstraint(name=name, indices=tuple(fractional), rhs=int(rhs)), total


def add_objective_cuts(
    engine: Engine,
    model: CoverageModel,
    relaxation: Relaxation,
    max_rounds: int,
    tolerance: float = 1e-6,
) -> CutResult:
    """Round the fractional part of the relaxation up to the next integer.

    Each round takes the variables below one, adds ``sum >= ceil(sum of their
    values)`` to both ``model`` and ``engine`` and re-solves the relaxation.
    Engine failures end the loop without raising.
    """

    rounds: list[CutRound] = []
    current = relaxation
    if max_rounds <= 0:
        return CutResult(relaxation=current, rounds=(), stop_reason="disabled")

    for n in range(max_rounds):
        if not current.optimal:
            return CutResult(relaxation=current, rounds=tuple(rounds), stop_reason=f"relaxation_{current.engine_status}")

        cut, total = objective_cut(current.values, tolerance, name=f"cut_{n}")
        if cut is None:
            return CutResult(relaxation=current, rounds=tuple(rounds), stop_reason="integral")

        try:
            engine.add_constraint(cut)
            model.constraints.append(cut)
            after = engine.relax()
        except SolverError as exc:
            return CutResult(relaxation=current, rounds=tuple(rounds), stop_reason=f"error: {exc}")

        print(f"Cut {cut.name}: {len(cut.indices)} vars >= {cut.rhs} (fractional sum {total:.4f})")
        rounds.append(
            CutRound(constraint=cut, fractional_sum=total, objective_before=current.objective, objective_after=after.objective)
        )
        current = after

    return CutResult(relaxation=current, rounds=tuple(rounds), stop_reason="max_rounds")
