from __future__ import annotations

from pathlib import Path


def snapshot(tree: Path) -> dict[str, bytes]:
    """Relative path -> bytes for every file under ``tree``."""
    if not tree.exists():
        return {}
    return {
        p.relative_to(tree).as_posix(): p.read_bytes()
        for p in sorted(tree.rglob("*"))
        if p.is_file()
    }
