from __future__ import annotations

import threading
from pathlib import Path

import pytest

from tagfilter.driver import print_progress, solve_integer
from tagfilter.engine import Engine, SolverSettings, classify
from tagfilter.types import CoverageConstraint, CoverageModel, Progress, Relaxation, Solution, SolveStatus


class SlowEngine(Engine):
    """Blocks in ``solve`` until interrupted."""

    name = "slow"

    def __init__(self) -> None:
        self.stop = threading.Event()

    def load(self, model: CoverageModel) -> None:
        pass

    def add_constraint(self, constraint: CoverageConstraint) -> None:
        pass

    def relax(self) -> Relaxation:
        return Relaxation(optimal=True, objective=0.0, values=(), engine_status="optimal")

    def solve(self, settings: SolverSettings) -> Solution:
        interrupted = self.stop.wait(10.0)
        outcome = "feasible" if interrupted else "optimal"
        return Solution(
            status=classify(outcome, 2.0, 0.5),
            objective=2.0,
            best_bound=0.5,
            values=(1.0, 1.0, 0.0),
            engine_status=outcome,
            meta={"iterations": 7, "nodes": 3},
        )

    def export(self, path: str | Path) -> Path:
        return Path(path)

    def interrupt(self) -> bool:
        self.stop.set()
        return True


def test_callback_can_abort_running_solve() -> None:
    engine = SlowEngine()
    seen: list[Progress] = []

    def on_progress(progress: Progress) -> bool:
        seen.append(progress)
        return True

    solution = solve_integer(engine, SolverSettings(poll_interval_sec=0.05), on_progress=on_progress)

    assert solution.status is SolveStatus.ABORTED
    assert solution.has_incumbent
    assert solution.gap == pytest.approx(1.5)
    assert not seen[0].final
    assert (seen[0].iterations, seen[0].nodes, seen[0].best_bound) == (None, None, None)
    assert seen[-1].final
    assert (seen[-1].iterations, seen[-1].nodes) == (7, 3)


@pytest.mark.parametrize(
    "outcome, objective, bound, expected",
    [
        ("optimal", 10.0, 9.2, SolveStatus.OPTIMAL),
        ("optimal", 10.0, 8.5, SolveStatus.FEASIBLE),
        ("optimal", 10.0, float("nan"), SolveStatus.FEASIBLE),
        ("feasible", 10.0, 8.5, SolveStatus.ABORTED),
        ("not_solved", float("nan"), float("nan"), SolveStatus.ABORTED),
        ("infeasible", float("nan"), float("nan"), SolveStatus.INFEASIBLE),
    ],
)
def test_classify(outcome: str, objective: float, bound: float, expected: SolveStatus) -> None:
    assert classify(outcome, objective, bound) is expected


def test_classify_rejects_unknown_outcome() -> None:
    with pytest.raises(ValueError):
        classify("abnormal", 0.0, 0.0)


def test_exact_mode_zeroes_gaps() -> None:
    assert SolverSettings(exact=True).effective_gaps() == (0.0, 0.0)
    assert SolverSettings().effective_gaps() == (0.01, 0.999)


def test_print_progress_never_aborts(capsys: pytest.CaptureFixture[str]) -> None:
    assert print_progress(Progress(elapsed_sec=1.25, nodes=4, best_bound=3.0, final=True)) is False
    out = capsys.readouterr().out
    assert "Finished" in out
    assert "nodes=4" in out
