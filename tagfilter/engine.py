from __future__ import annotations

import importlib
import math
import threading
import time
import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from tagfilter.types import CoverageConstraint, CoverageModel, Progress, Relaxation, Solution, SolveStatus


ENGINE_MODULES = {
    "ortools_scip": "tagfilter.engine_ortools",
    "pulp_cbc": "tagfilter.engine_pulp",
}

INTEGRALITY_TOLERANCE = 1e-6

ProgressCallback = Callable[[Progress], bool | None]


@dataclass(frozen=True)
class SolverSettings:
    exact: bool = False
    relative_gap: float = 0.01
    absolute_gap: float = 0.999
    time_limit_sec: float | None = None
    node_limit: int | None = None
    seed: int = 0
    poll_interval_sec: float = 5.0
    verbose: bool = False

    def effective_gaps(self) -> tuple[float, float]:
        if self.exact:
            return 0.0, 0.0
        return float(self.relative_gap), float(self.absolute_gap)


class Engine(ABC):
    """Integer-programming backend holding one coverage model.

    Variables are loaded as continuous in [0, 1]; ``solve`` switches them to
    binary. ``interrupt`` may be called from another thread while ``solve``
    blocks.
    """

    name = "engine"

    @abstractmethod
    def load(self, model: CoverageModel) -> None: ...

    @abstractmethod
    def add_constraint(self, constraint: CoverageConstraint) -> None: ...

    @abstractmethod
    def relax(self) -> Relaxation: ...

    @abstractmethod
    def solve(self, settings: SolverSettings) -> Solution: ...

    @abstractmethod
    def export(self, path: str | Path) -> Path: ...

    def interrupt(self) -> bool:
        return False


def classify(outcome: str, objective: float, best_bound: float) -> SolveStatus:
    """Map an engine outcome to a :class:`SolveStatus`.

    ``outcome`` is one of ``optimal`` (engine stopped on its gap criterion),
    ``feasible`` (stopped on a limit with an incumbent), ``not_solved`` (stopped
    without one) or ``infeasible``. Because the objective is a count, an
    incumbent less than one unit above the bound is optimal. Without a finite
    bound nothing is certified, so the result is only gap-bounded.
    """

    if outcome == "infeasible":
        return SolveStatus.INFEASIBLE
    if outcome in ("feasible", "not_solved"):
        return SolveStatus.ABORTED
    if outcome != "optimal":
        raise ValueError(f"unknown engine outcome: {outcome}")
    if math.isfinite(best_bound) and objective - best_bound < 1.0 - INTEGRALITY_TOLERANCE:
        return SolveStatus.OPTIMAL
    return SolveStatus.FEASIBLE


def create_engine(engine_id: str) -> Engine:
    module_name = ENGINE_MODULES.get(engine_id)
    if module_name is None:
        raise ValueError(f"unknown engine: {engine_id} (choose from {sorted(ENGINE_MODULES)})")
    module = importlib.import_module(module_name)
    if not hasattr(module, "create"):
        raise AttributeError(f"engine module has no create(): {module_name}")
    return module.create()


class ProgressMonitor:
    """Polls ``callback`` from a daemon thread while the engine is solving.

    The callback receives a :class:`Progress` snapshot at most once per
    ``interval`` seconds; returning ``True`` requests an interrupt.
    """

    def __init__(self, engine: Engine, callback: ProgressCallback | None, interval: float) -> None:
        self.engine = engine
        self.callback = callback
        self.interval = max(0.05, float(interval))
        self.interrupted = False
        self._requested = False
        self._start = 0.0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def elapsed(self) -> float:
        return time.perf_counter() - self._start

    def __enter__(self) -> ProgressMonitor:
        self._start = time.perf_counter()
        if self.callback is not None:
            self._thread = threading.Thread(target=self._run, name="tagfilter-progress", daemon=True)
            self._thread.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            if self.callback(Progress(elapsed_sec=self.elapsed())) and not self._requested:
                self._requested = True
                self.interrupted = self.engine.interrupt()
                if not self.interrupted:
                    warnings.warn(f"engine {self.engine.name} cannot interrupt a running solve")

    def finish(self, solution: Solution) -> None:
        if self.callback is None:
            return
        meta = solution.meta
        self.callback(
            Progress(
                elapsed_sec=self.elapsed(),
                iterations=meta.get("iterations"),
                nodes=meta.get("nodes"),
                best_bound=solution.best_bound,
                final=True,
            )
        )
