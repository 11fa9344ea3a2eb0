from __future__ import annotations

import math
import time
from pathlib import Path
from typing import Any

from tagfilter.engine import Engine, SolverSettings, classify
from tagfilter.errors import SolverError
from tagfilter.types import CoverageConstraint, CoverageModel, Relaxation, Solution


def create() -> Engine:
    return PulpEngine()


class PulpEngine(Engine):
    """PuLP + CBC.

    CBC runs as a subprocess, so a running solve cannot be interrupted and the
    only bound available is the last relaxation objective.
    """

    name = "pulp_cbc"

    def __init__(self) -> None:
        try:
            import pulp as pl
        except ImportError as exc:  # pragma: no cover
            raise RuntimeError("Missing dependency 'pulp'. Install it to use the pulp_cbc engine.") from exc

        self._pl = pl
        self.problem = pl.LpProblem("TagCover", pl.LpMinimize)
        self.columns: list[Any] = []
        self.n_rows = 0
        self.bound = math.nan

    def load(self, model: CoverageModel) -> None:
        pl = self._pl
        self.problem = pl.LpProblem("TagCover", pl.LpMinimize)
        self.columns = [
            pl.LpVariable(f"x_{item.index}", lowBound=0, upBound=1, cat=pl.LpContinuous) for item in model.items
        ]
        self.problem += pl.lpSum(self.columns)
        self.n_rows = 0
        self.bound = math.nan
        for constraint in model.constraints:
            self.add_constraint(constraint)

    def add_constraint(self, constraint: CoverageConstraint) -> None:
        pl = self._pl
        self.problem += pl.lpSum(self.columns[i] for i in constraint.indices) >= constraint.rhs, f"c_{self.n_rows}"
        self.n_rows += 1

    def _values(self) -> tuple[float, ...]:
        return tuple(float(c.varValue) if c.varValue is not None else 0.0 for c in self.columns)

    def _objective(self) -> float:
        value = self._pl.value(self.problem.objective)
        return float(value) if value is not None else 0.0

    def relax(self) -> Relaxation:
        pl = self._pl
        for column in self.columns:
            column.cat = pl.LpContinuous

        code = self.problem.solve(pl.PULP_CBC_CMD(mip=False, msg=False))
        status = str(pl.LpStatus.get(code, code)).lower()
        if code != pl.LpStatusOptimal:
            return Relaxation(optimal=False, objective=math.nan, values=(), engine_status=status)

        objective = self._objective()
        self.bound = objective
        return Relaxation(optimal=True, objective=objective, values=self._values(), engine_status=status)

    def solve(self, settings: SolverSettings) -> Solution:
        pl = self._pl
        if math.isnan(self.bound):
            # CBC reports no dual bound; the root relaxation stands in for it.
            self.relax()
        for column in self.columns:
            column.cat = pl.LpInteger

        relative_gap, absolute_gap = settings.effective_gaps()
        cmd = pl.PULP_CBC_CMD(
            mip=True,
            msg=bool(settings.verbose),
            timeLimit=settings.time_limit_sec,
            gapRel=relative_gap,
            gapAbs=absolute_gap,
            maxNodes=settings.node_limit,
            options=[f"randomCbcSeed {int(settings.seed)}"] if settings.seed else None,
        )

        start = time.perf_counter()
        code = self.problem.solve(cmd)
        runtime_sec = time.perf_counter() - start
        sol_status = self.problem.sol_status
        status = str(pl.LpStatus.get(code, code)).lower()

        if code == pl.LpStatusInfeasible or sol_status == pl.LpSolutionInfeasible:
            outcome = "infeasible"
        elif sol_status == pl.LpSolutionIntegerFeasible:
            outcome = "feasible"
            status = "integer_feasible"
        elif code == pl.LpStatusOptimal:
            outcome = "optimal"
        elif code == pl.LpStatusNotSolved and (settings.time_limit_sec is not None or settings.node_limit is not None):
            outcome = "not_solved"
        else:
            raise SolverError("integer solve failed", status=status)

        values: tuple[float, ...] = ()
        objective = math.nan
        best_bound = self.bound
        if outcome in ("optimal", "feasible"):
            values = self._values()
            objective = self._objective()
        if outcome == "optimal" and relative_gap == 0.0 and absolute_gap == 0.0:
            # CBC proved optimality with zero tolerance.
            best_bound = objective

        return Solution(
            status=classify(outcome, objective, best_bound),
            objective=objective,
            best_bound=best_bound,
            values=values,
            engine_status=status,
            meta={
                "solver": self.name,
                "iterations": None,
                "nodes": None,
                "runtime_sec": float(runtime_sec),
                "n_vars": len(self.columns),
                "n_constraints": self.n_rows,
            },
        )

    def export(self, path: str | Path) -> Path:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        self.problem.writeLP(str(p))
        return p
