"""Filtered file mirroring.

Copies files from a project root into an output tree, preserving each
file's path relative to the root. Copies are whole-file and overwrite
existing targets, so every operation here can be re-run safely.
"""
from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Union

from .exceptions import CopyError
from .file_io import ensure_dir, ensure_parent_dir
from .patterns import PathFilter

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

VCS_DIRS: frozenset[str] = frozenset({".git", ".hg", ".svn"})


@dataclass
class SyncReport:
    """Outcome of a full-tree sync."""

    output_dir: Path
    copied: list[Path] = field(default_factory=list)
    errors: list[CopyError] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.copied)

    @property
    def ok(self) -> bool:
        return not self.errors


def iter_project_files(root: PathLike, *, skip: Iterable[PathLike] = ()) -> Iterator[str]:
    """Yield every regular file under ``root`` as a relative POSIX path.

    VCS metadata directories and any directory in ``skip`` are pruned.
    Symlinked directories are not followed. Output is sorted for stable
    ordering across platforms.
    """
    root_path = Path(os.path.abspath(root))
    skipped = {Path(os.path.abspath(p)) for p in skip}

    for dirpath, dirnames, filenames in os.walk(root_path):
        current = Path(dirpath)
        dirnames[:] = sorted(
            d for d in dirnames if d not in VCS_DIRS and (current / d) not in skipped
        )
        for name in sorted(filenames):
            full = current / name
            if not full.is_file():
                continue
            yield full.relative_to(root_path).as_posix()


def copy_file(src: PathLike, dest: PathLike, *, log_copy: bool = False) -> Path:
    """Copy ``src`` over ``dest``, creating parent directories first.

    Raises:
        CopyError: If the source is missing/unreadable or the target unwritable
    """
    src_path = Path(src)
    dest_path = Path(dest)
    try:
        ensure_parent_dir(dest_path)
        shutil.copyfile(src_path, dest_path)
    except OSError as exc:
        raise CopyError(
            f"Failed to copy {src_path} to {dest_path}: {exc.strerror or exc}",
            source=src_path,
            destination=dest_path,
            details=exc.__class__.__name__,
        ) from exc

    if log_copy:
        logger.info("Copied %s to %s", src_path, dest_path)
    else:
        logger.debug("Copied %s to %s", src_path, dest_path)
    return dest_path


def _skip_dirs(root: Path, output_dir: Path) -> list[Path]:
    # Never mirror the output tree into itself when it lives under the root.
    try:
        output_dir.relative_to(root)
    except ValueError:
        return []
    return [output_dir]


def sync_all(
    root_dir: PathLike,
    output_dir: PathLike,
    path_filter: PathFilter,
    *,
    verbose: bool = False,
) -> SyncReport:
    """Mirror every file under ``root_dir`` accepted by ``path_filter``.

    A failed copy is recorded in the report and logged; the remaining files
    are still attempted.
    """
    root = Path(os.path.abspath(root_dir))
    out = Path(os.path.abspath(output_dir))
    report = SyncReport(output_dir=out)

    for rel in iter_project_files(root, skip=_skip_dirs(root, out)):
        if not path_filter.matches_relative(rel):
            continue
        try:
            report.copied.append(copy_file(root / rel, out / rel, log_copy=verbose))
        except CopyError as exc:
            logger.error("%s", exc)
            report.errors.append(exc)

    if report.count > 0:
        logger.info("Copied %d files to %s", report.count, out)
    if report.errors:
        logger.warning("%d files could not be copied to %s", len(report.errors), out)
    return report


def sync_one(source_path: PathLike, output_dir: PathLike, root_dir: PathLike) -> Path:
    """Mirror a single file the caller has already filtered.

    Raises:
        CopyError: If the file cannot be copied or lies outside ``root_dir``
    """
    root = Path(os.path.abspath(root_dir))
    src = Path(os.path.abspath(source_path))
    out = Path(os.path.abspath(output_dir))
    try:
        rel = src.relative_to(root)
    except ValueError as exc:
        raise CopyError(
            f"{src} is not inside project root {root}",
            source=src,
            destination=out,
        ) from exc
    return copy_file(src, out / rel, log_copy=True)


__all__ = [
    "VCS_DIRS",
    "SyncReport",
    "ensure_dir",
    "iter_project_files",
    "copy_file",
    "sync_all",
    "sync_one",
]
