from __future__ import annotations

import glob
import os
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from tagfilter.types import Item


@dataclass
class LinkReport:
    created: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    failed: list[tuple[Path, str]] = field(default_factory=list)


def write_selection_list(items: Iterable[Item], path: str | Path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    lines = [item.path for item in items]
    p.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
    return p


def sibling_files(path: str | Path) -> list[Path]:
    """Every file next to ``path`` sharing its base name, any extension."""

    p = Path(path)
    pattern = os.path.join(glob.escape(str(p.parent)), glob.escape(p.stem) + ".*")
    return sorted(Path(x) for x in glob.glob(pattern) if Path(x).is_file())


def link_selection(items: Iterable[Item], destination: str | Path) -> LinkReport:
    """Hard-link each selected item's files into ``destination``.

    Failures are collected per file and never abort the remaining links.
    """

    dest = Path(destination)
    dest.mkdir(parents=True, exist_ok=True)
    report = LinkReport()
    for item in items:
        for source in sibling_files(item.path):
            target = dest / source.name
            if target.exists():
                report.skipped.append(target)
                continue
            try:
                os.link(source, target)
            except OSError as exc:
                report.failed.append((source, str(exc)))
                warnings.warn(f"cannot link {source} -> {target}: {exc}")
                continue
            report.created.append(target)
    return report
