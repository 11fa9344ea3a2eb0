from __future__ import annotations

from tagfilter.engine import Engine, ProgressCallback, ProgressMonitor, SolverSettings
from tagfilter.types import Progress, Solution


def print_progress(progress: Progress) -> bool:
    parts = [f"elapsed={progress.elapsed_sec:.1f}s"]
    if progress.iterations is not None:
        parts.append(f"iterations={progress.iterations}")
    if progress.nodes is not None:
        parts.append(f"nodes={progress.nodes}")
    if progress.best_bound is not None and progress.best_bound == progress.best_bound:
        parts.append(f"bound={progress.best_bound:.4f}")
    print(("Finished: " if progress.final else "Solving: ") + " ".join(parts))
    return False


def solve_integer(
    engine: Engine,
    settings: SolverSettings,
    on_progress: ProgressCallback | None = print_progress,
) -> Solution:
    """Binary solve of the loaded model.

    ``on_progress`` is polled every ``settings.poll_interval_sec`` seconds while
    the engine runs and once more with the final statistics. Returning ``True``
    from it interrupts the engine; the incumbent found so far is kept and the
    solution is reported as aborted.

    Polls made during the solve only carry ``elapsed_sec``: neither engine
    exposes its statistics while running. Iterations, nodes and the best bound
    arrive in the final snapshot (``final=True``).
    """

    with ProgressMonitor(engine, on_progress, settings.poll_interval_sec) as monitor:
        solution = engine.solve(settings)
    monitor.finish(solution)
    return solution
