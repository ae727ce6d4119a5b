"""File I/O utilities for devmirror core.

Single source of truth for safe file access patterns:
- Atomic writes via a temp file in the target directory and ``os.replace``
- JSON reads that fail fast on missing files
- YAML reads with consistent error handling
- Directory management utilities

No advisory locks are taken: every file written here has exactly one
writer per session, and readers only need to never observe a torn file.
"""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional, TextIO, Union

import yaml


PathLike = Union[str, Path]


def ensure_parent_dir(path: PathLike) -> None:
    """Ensure the parent directory for ``path`` exists."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def ensure_dir(path: PathLike) -> Path:
    """Ensure directory exists, creating every missing ancestor.

    Args:
        path: Directory path to ensure exists

    Returns:
        The path (for chaining)

    Raises:
        NotADirectoryError: If ``path`` exists but is a regular file
    """
    path = Path(path)
    if path.exists() and not path.is_dir():
        raise NotADirectoryError(f"Path exists but is not a directory: {path}")
    path.mkdir(parents=True, exist_ok=True)
    return path


def _atomic_write(
    path: PathLike,
    write_fn: Callable[[TextIO], None],
    *,
    encoding: str = "utf-8",
) -> None:
    """Write to ``path`` atomically using a temp file + fsync + rename.

    - Parent directory is created if missing
    - Data is written to a temporary file in the same directory
    - File is fsync'd, then atomically replaced
    - Any leftover temp file is cleaned up on failure
    """
    path = Path(path)
    ensure_parent_dir(path)

    tmp_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding=encoding,
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_path = Path(f.name)
            write_fn(f)
            f.flush()
            os.fsync(f.fileno())

        os.replace(str(tmp_path), str(path))
    finally:
        if tmp_path is not None and tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                # Best-effort cleanup; never fail callers on temp removal
                pass


def dump_json(data: Any, *, indent: int = 2) -> str:
    """Serialize ``data`` the way every devmirror JSON file is written.

    Key order is preserved (not sorted) and output ends with a newline so
    repeated writes of equal data are byte-identical.
    """
    return json.dumps(data, indent=indent, ensure_ascii=False) + "\n"


def write_json_atomic(path: PathLike, data: Any, *, indent: int = 2) -> None:
    """Atomically write JSON data to ``path``."""
    text = dump_json(data, indent=indent)

    def _writer(f: TextIO) -> None:
        f.write(text)

    _atomic_write(path, _writer)


def read_json(path: PathLike) -> Any:
    """Read JSON; raises FileNotFoundError on missing files.

    ``json.JSONDecodeError`` propagates for malformed content.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"JSON file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def read_yaml(path: PathLike, default: Any = None, *, raise_on_error: bool = False) -> Any:
    """Read YAML with error handling.

    Returns ``default`` if the file is missing or empty. Invalid YAML
    returns ``default`` too unless ``raise_on_error`` is set.

    Examples:
        >>> config = read_yaml(Path("devmirror.yaml"), default={})
        >>> assert isinstance(config, dict)
    """
    path = Path(path)
    if not path.exists():
        return default

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        if raise_on_error:
            raise
        return default
    return data if data is not None else default


__all__ = [
    "PathLike",
    "ensure_parent_dir",
    "ensure_dir",
    "_atomic_write",
    "dump_json",
    "write_json_atomic",
    "read_json",
    "read_yaml",
]
