from __future__ import annotations

import glob
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from tagfilter.errors import CatalogError
from tagfilter.types import Item, Label


DEFAULT_PATTERN = "*.txt"

# Administrative / non-semantic labels; never counted, never constrained.
DEFAULT_IGNORED_LABELS: tuple[str, ...] = (
    "absurdres",
    "alternate breast size",
    "alternate hairstyle",
    "artist request",
    "bad tumblr id",
    "bad twitter id",
    "borrowed character",
    "character request",
    "copyright request",
    "fanbox reward",
    "has bad revision",
    "has censored revision",
    "highres",
    "korean commentary",
    "mixed-language commentary",
    "paid reward available",
    "partial commentary",
    "patreon reward",
    "pixiv commission",
    "resolution mismatch",
    "second-party source",
    "source request",
    "skeb commission",
    "symbol-only commentary",
    "third-party edit",
    "variant set",
)


@dataclass(frozen=True)
class Catalog:
    items: tuple[Item, ...]
    counts: dict[str, int]

    def labels(self, threshold: int) -> list[Label]:
        """Label table ordered by ascending count, ties broken by name."""

        ordered = sorted(self.counts.items(), key=lambda kv: (kv[1], kv[0]))
        return [Label(name=name, count=count, required=count >= threshold) for name, count in ordered]

    def required(self, threshold: int) -> list[Label]:
        return [label for label in self.labels(threshold) if label.required]


def parse_labels(text: str) -> tuple[str, ...]:
    labels: list[str] = []
    for line in text.splitlines():
        labels.extend(x.strip() for x in line.split(",") if x.strip())
    return tuple(labels)


def resolve_sources(source: str | Path, pattern: str = DEFAULT_PATTERN) -> list[Path]:
    """Expand ``source`` into label files.

    A directory means ``<dir>/<pattern>``; anything else is a path whose last
    component is a glob pattern.
    """

    p = Path(source)
    if p.is_dir():
        directory, file_pattern = p, pattern
    else:
        directory = p.parent if str(p.parent) else Path.cwd()
        file_pattern = p.name
        if not directory.is_dir():
            raise CatalogError(f"label directory does not exist: {directory}")

    matches = sorted(
        Path(x) for x in glob.glob(str(directory / file_pattern)) if Path(x).is_file()
    )
    if not matches:
        raise CatalogError(f"no label files matched: {directory / file_pattern}")
    return matches


def read_item(path: str | Path, index: int) -> Item:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CatalogError(f"cannot read label file {p}: {exc}") from exc
    return Item(index=index, path=str(p), labels=parse_labels(text))


def build_catalog(paths: Iterable[str | Path], ignored_labels: Iterable[str] = DEFAULT_IGNORED_LABELS) -> Catalog:
    ignored = frozenset(ignored_labels)
    counts: Counter[str] = Counter()
    items: list[Item] = []

    for index, path in enumerate(paths):
        item = read_item(path, index)
        counts.update(set(item.labels) - ignored)
        items.append(item)

    return Catalog(items=tuple(items), counts=dict(counts))


def load_catalog(
    source: str | Path,
    ignored_labels: Iterable[str] = DEFAULT_IGNORED_LABELS,
    pattern: str = DEFAULT_PATTERN,
) -> Catalog:
    return build_catalog(resolve_sources(source, pattern=pattern), ignored_labels=ignored_labels)
