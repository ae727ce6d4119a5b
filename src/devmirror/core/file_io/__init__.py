"""
IO utilities package for devmirror core.

Atomic writers and tolerant readers shared by the mirror, the descriptor
store and the configuration loader.
"""
from __future__ import annotations

from .utils import (
    PathLike,
    dump_json,
    ensure_dir,
    ensure_parent_dir,
    read_json,
    read_yaml,
    write_json_atomic,
)

__all__ = [
    "PathLike",
    "dump_json",
    "ensure_dir",
    "ensure_parent_dir",
    "read_json",
    "read_yaml",
    "write_json_atomic",
]
