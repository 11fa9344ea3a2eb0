"""Helpers for building tag catalogs in tests."""
from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Iterable, Sequence

from tagfilter.catalog import Catalog
from tagfilter.types import Item


def write_tag_files(
    root: Path,
    tag_lists: Sequence[Iterable[str]],
    *,
    prefix: str = "img",
    extra_suffixes: Sequence[str] = (),
) -> list[Path]:
    """Write one ``<prefix>_<n>.txt`` per tag list, plus empty sibling files
    (e.g. ``.png``) sharing the base name."""

    root.mkdir(parents=True, exist_ok=True)
    paths: list[Path] = []
    for n, tags in enumerate(tag_lists):
        path = root / f"{prefix}_{n:03d}.txt"
        path.write_text(", ".join(tags) + "\n", encoding="utf-8")
        for suffix in extra_suffixes:
            (root / f"{prefix}_{n:03d}{suffix}").write_bytes(b"")
        paths.append(path)
    return paths


def make_catalog(tag_lists: Sequence[Iterable[str]], ignored: Iterable[str] = ()) -> Catalog:
    ignored_set = set(ignored)
    items = tuple(Item(index=i, path=f"item_{i}.txt", labels=tuple(tags)) for i, tags in enumerate(tag_lists))
    counts: Counter[str] = Counter()
    for item in items:
        counts.update(set(item.labels) - ignored_set)
    return Catalog(items=items, counts=dict(counts))


def scenario_one() -> list[list[str]]:
    return [["cat", "dog"], ["cat"], ["dog"]]
