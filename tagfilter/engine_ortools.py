from __future__ import annotations

import math
import time
import warnings
from pathlib import Path
from typing import Any

from tagfilter.engine import Engine, SolverSettings, classify
from tagfilter.errors import SolverError
from tagfilter.types import CoverageConstraint, CoverageModel, Relaxation, Solution


# Up-child first, pseudo-cost branching ahead of the default relpscost rule.
SCIP_SEARCH_PARAMS = {
    "nodeselection/childsel": "u",
    "branching/pscost/priority": "20000",
}


def create() -> Engine:
    return OrToolsEngine()


class OrToolsEngine(Engine):
    """OR-Tools ``pywraplp`` over SCIP."""

    name = "ortools_scip"

    def __init__(self, backend: str = "SCIP") -> None:
        try:
            from ortools.linear_solver import pywraplp
        except ImportError as exc:  # pragma: no cover
            raise RuntimeError(
                "Missing dependency 'ortools'. Install it to use the ortools_scip engine.") from exc

        self._pywraplp = pywraplp
        self.backend = backend
        self.solver = pywraplp.Solver.CreateSolver(backend)
        if self.solver is None:
            raise SolverError(f"OR-Tools was built without the {backend} backend", status="unavailable")
        self.columns: list[Any] = []
        self.rows: list[Any] = []
        self._interrupted = False
        self._status_names = {
            pywraplp.Solver.OPTIMAL: "optimal",
            pywraplp.Solver.FEASIBLE: "feasible",
            pywraplp.Solver.INFEASIBLE: "infeasible",
            pywraplp.Solver.UNBOUNDED: "unbounded",
            pywraplp.Solver.ABNORMAL: "abnormal",
            pywraplp.Solver.MODEL_INVALID: "model_invalid",
            pywraplp.Solver.NOT_SOLVED: "not_solved",
        }

    def load(self, model: CoverageModel) -> None:
        solver = self.solver
        objective = solver.Objective()
        objective.SetMinimization()

        self.columns = [solver.NumVar(0.0, 1.0, f"x_{item.index}") for item in model.items]
        for column in self.columns:
            objective.SetCoefficient(column, 1)

        self.rows = []
        for constraint in model.constraints:
            self.add_constraint(constraint)

    def add_constraint(self, constraint: CoverageConstraint) -> None:
        row = self.solver.Constraint(float(constraint.rhs), self.solver.infinity(), f"c_{len(self.rows)}")
        for index in constraint.indices:
            row.SetCoefficient(self.columns[index], 1)
        self.rows.append(row)

    def _status_name(self, code: int) -> str:
        return self._status_names.get(code, str(code))

    def relax(self) -> Relaxation:
        for column in self.columns:
            column.SetInteger(False)
        self.solver.SuppressOutput()

        code = self.solver.Solve()
        status = self._status_name(code)
        if code != self._pywraplp.Solver.OPTIMAL:
            return Relaxation(optimal=False, objective=math.nan, values=(), engine_status=status)
        return Relaxation(
            optimal=True,
            objective=float(self.solver.Objective().Value()),
            values=tuple(float(c.solution_value()) for c in self.columns),
            engine_status=status,
        )

    def _configure(self, settings: SolverSettings):
        pywraplp = self._pywraplp
        relative_gap, absolute_gap = settings.effective_gaps()

        if settings.verbose:
            self.solver.EnableOutput()
        else:
            self.solver.SuppressOutput()
        if settings.time_limit_sec is not None:
            self.solver.SetTimeLimit(int(float(settings.time_limit_sec) * 1000))

        specific = dict(SCIP_SEARCH_PARAMS)
        specific["limits/absgap"] = repr(float(absolute_gap))
        specific["randomization/randomseedshift"] = str(int(settings.seed))
        if settings.node_limit is not None:
            specific["limits/nodes"] = str(int(settings.node_limit))
        text = "\n".join(f"{key} = {value}" for key, value in specific.items())
        if not self.solver.SetSolverSpecificParametersAsString(text):
            warnings.warn(f"SCIP rejected solver parameters: {text!r}")

        params = pywraplp.MPSolverParameters()
        params.SetDoubleParam(pywraplp.MPSolverParameters.RELATIVE_MIP_GAP, float(relative_gap))
        return params

    def solve(self, settings: SolverSettings) -> Solution:
        pywraplp = self._pywraplp
        for column in self.columns:
            column.SetInteger(True)

        params = self._configure(settings)
        self._interrupted = False
        start = time.perf_counter()
        code = self.solver.Solve(params)
        runtime_sec = time.perf_counter() - start
        status = self._status_name(code)

        if code == pywraplp.Solver.OPTIMAL:
            outcome = "optimal"
        elif code == pywraplp.Solver.FEASIBLE:
            outcome = "feasible"
        elif code == pywraplp.Solver.INFEASIBLE:
            outcome = "infeasible"
        elif code == pywraplp.Solver.NOT_SOLVED and (self._interrupted or settings.time_limit_sec is not None
                                                     or settings.node_limit is not None):
            outcome = "not_solved"
        else:
            raise SolverError("integer solve failed", status=status)

        values: tuple[float, ...] = ()
        objective = math.nan
        best_bound = math.nan
        if outcome in ("optimal", "feasible"):
            values = tuple(float(c.solution_value()) for c in self.columns)
            objective = float(self.solver.Objective().Value())
            best_bound = float(self.solver.Objective().BestBound())

        return Solution(
            status=classify(outcome, objective, best_bound),
            objective=objective,
            best_bound=best_bound,
            values=values,
            engine_status=status,
            meta={
                "solver": self.name,
                "iterations": int(self.solver.iterations()),
                "nodes": int(self.solver.nodes()),
                "runtime_sec": float(runtime_sec),
                "n_vars": int(self.solver.NumVariables()),
                "n_constraints": int(self.solver.NumConstraints()),
            },
        )

    def interrupt(self) -> bool:
        self._interrupted = bool(self.solver.InterruptSolve())
        return self._interrupted

    def export(self, path: str | Path) -> Path:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(self.solver.ExportModelAsLpFormat(False), encoding="utf-8")
        return p
