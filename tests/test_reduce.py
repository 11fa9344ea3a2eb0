from __future__ import annotations

import itertools
import random

import pytest

from tagfilter.reduce import is_sorted_subset, reduce_constraints
from tagfilter.types import CoverageConstraint


def _row(name: str, indices: list[int], rhs: int = 2) -> CoverageConstraint:
    return CoverageConstraint(name=name, indices=tuple(indices), rhs=rhs)


@pytest.mark.parametrize(
    "left, right, expected",
    [
        ([], [1, 2], True),
        ([1, 2], [1, 2], True),
        ([0, 2], [0, 1, 2, 3], True),
        ([0, 4], [0, 1, 2, 3], False),
        ([5], [0, 1, 2], False),
        ([1, 3], [0, 2, 3], False),
        ([0, 1, 2], [0, 1], False),
    ],
)
def test_is_sorted_subset(left: list[int], right: list[int], expected: bool) -> None:
    assert is_sorted_subset(left, right) is expected


@pytest.mark.parametrize("method", ["merge", "bitset"])
def test_superset_row_is_removed(method: str) -> None:
    rows = [_row("x", [0, 1, 2]), _row("y", [0, 1])]

    reduction = reduce_constraints(rows, method=method)

    assert [c.name for c in reduction.kept] == ["y"]
    assert reduction.removed == (("x", "y"),)


@pytest.mark.parametrize("method", ["merge", "bitset"])
def test_incomparable_rows_are_kept(method: str) -> None:
    rows = [_row("cat", [0, 1]), _row("dog", [0, 2])]

    reduction = reduce_constraints(rows, method=method)

    assert [c.name for c in reduction.kept] == ["cat", "dog"]
    assert reduction.removed == ()


@pytest.mark.parametrize("method", ["merge", "bitset"])
def test_identical_rows_keep_exactly_one(method: str) -> None:
    rows = [_row("a", [1, 3]), _row("b", [1, 3])]

    reduction = reduce_constraints(rows, method=method)

    assert [c.name for c in reduction.kept] == ["a"]
    assert reduction.removed == (("b", "a"),)


@pytest.mark.parametrize("method", ["merge", "bitset"])
def test_rows_with_different_rhs_are_not_compared(method: str) -> None:
    rows = [_row("x", [0, 1, 2], rhs=1), _row("y", [0, 1], rhs=2)]

    assert len(reduce_constraints(rows, method=method).kept) == 2


def test_unknown_method() -> None:
    with pytest.raises(ValueError):
        reduce_constraints([], method="hash")


def _random_rows(rng: random.Random, n_rows: int, n_items: int) -> list[CoverageConstraint]:
    rows = []
    for k in range(n_rows):
        size = rng.randint(1, n_items)
        rows.append(_row(f"t{k}", sorted(rng.sample(range(n_items), size))))
    return rows


@pytest.mark.parametrize("seed", range(5))
def test_reduction_properties_on_random_rows(seed: int) -> None:
    rng = random.Random(seed)
    rows = _random_rows(rng, n_rows=25, n_items=8)

    merged = reduce_constraints(rows, method="merge")
    bitset = reduce_constraints(rows, method="bitset")

    assert merged == bitset

    # No retained row contains another retained row.
    for a, b in itertools.permutations(merged.kept, 2):
        assert not set(b.indices) <= set(a.indices)

    # Every removed row is a superset of some kept row.
    kept_sets = [set(c.indices) for c in merged.kept]
    by_name = {c.name: c for c in rows}
    for removed, _covering in merged.removed:
        assert any(s <= set(by_name[removed].indices) for s in kept_sets)

    # Idempotent.
    again = reduce_constraints(merged.kept, method="merge")
    assert again.removed == ()
    assert again.kept == merged.kept


@pytest.mark.parametrize("n_items", [7, 8, 9, 17])
def test_bitset_matches_merge_across_byte_boundaries(n_items: int) -> None:
    last = n_items - 1
    rows = [
        _row("wide", list(range(n_items))),
        _row("tail", [last]),
        _row("head", [0, last]),
        _row("empty", []),
    ]

    merged = reduce_constraints(rows, method="merge")
    bitset = reduce_constraints(rows, method="bitset")

    assert bitset == merged
    assert [c.name for c in bitset.kept] == ["empty"]
