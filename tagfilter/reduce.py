from __future__ import annotations

from typing import Callable, Sequence

import numpy as np

from tagfilter.types import CoverageConstraint, Reduction


REDUCE_METHODS = ("merge", "bitset")


def is_sorted_subset(left: Sequence[int], right: Sequence[int]) -> bool:
    """True when every element of ascending ``left`` occurs in ascending ``right``.

    Merge scan: one cursor walks ``right`` forward while ``left`` is consumed,
    so the test is linear in ``len(left) + len(right)`` and stops at the first
    element of ``left`` that ``right`` skips over.
    """

    if len(left) > len(right):
        return False

    j = 0
    n_right = len(right)
    for elem in left:
        while j < n_right and right[j] < elem:
            j += 1
        if j == n_right or right[j] != elem:
            return False
        j += 1
    return True


def _sweep(
    constraints: Sequence[CoverageConstraint],
    find_cover: Callable[[int, list[bool]], int | None],
) -> Reduction:
    retained = [True] * len(constraints)
    removed: list[tuple[str, str]] = []

    for i in range(len(constraints) - 1, -1, -1):
        j = find_cover(i, retained)
        if j is not None:
            retained[i] = False
            removed.append((constraints[i].name, constraints[j].name))

    kept = tuple(c for c, keep in zip(constraints, retained) if keep)
    return Reduction(kept=kept, removed=tuple(removed))


def _reduce_merge(constraints: Sequence[CoverageConstraint]) -> Reduction:
    def find_cover(i: int, retained: list[bool]) -> int | None:
        target = constraints[i]
        for j, other in enumerate(constraints):
            if j == i or not retained[j] or other.rhs != target.rhs:
                continue
            if is_sorted_subset(other.indices, target.indices):
                return j
        return None

    return _sweep(constraints, find_cover)


def _reduce_bitset(constraints: Sequence[CoverageConstraint]) -> Reduction:
    n_cols = max(1, 1 + max((c.indices[-1] for c in constraints if c.indices), default=-1))
    packed = np.zeros((len(constraints), (n_cols + 7) // 8), dtype=np.uint8)
    row_bits = np.zeros(n_cols, dtype=bool)
    for row, c in enumerate(constraints):
        row_bits[:] = False
        row_bits[list(c.indices)] = True
        packed[row] = np.packbits(row_bits)
    rhs = np.array([c.rhs for c in constraints], dtype=np.int64)

    def find_cover(i: int, retained: list[bool]) -> int | None:
        candidates = np.array(retained, dtype=bool) & (rhs == rhs[i])
        candidates[i] = False
        rows = np.flatnonzero(candidates)
        if rows.size == 0:
            return None
        # B is a subset of A iff B & ~A has no bits set.
        outside = np.bitwise_and(packed[rows], np.bitwise_not(packed[i])).any(axis=1)
        covers = rows[~outside]
        return int(covers[0]) if covers.size else None

    return _sweep(constraints, find_cover)


def reduce_constraints(constraints: Sequence[CoverageConstraint], method: str = "merge") -> Reduction:
    """Drop every constraint implied by another retained constraint.

    If B's item set is contained in A's and both share the same right-hand
    side, ``sum(B) >= rhs`` implies ``sum(A) >= rhs``, so A is removed. One
    backward sweep suffices since nothing is added while sweeping.
    """

    if method == "merge":
        return _reduce_merge(constraints)
    if method == "bitset":
        return _reduce_bitset(constraints)
    raise ValueError(f"unknown reduce method: {method} (choose from {REDUCE_METHODS})")
