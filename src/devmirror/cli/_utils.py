"""Shared CLI utility functions.

Resolve the directories and settings a command needs from parsed arguments
so every command builds its session the same way.
"""
from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from devmirror.core.config import ConfigManager, MirrorConfig
from devmirror.core.lifecycle import LifecycleCoordinator
from devmirror.core.log import configure_logging


@dataclass(frozen=True)
class SessionPaths:
    repo_root: Path
    asset_root: Path
    output_dir: Path
    descriptor_path: Path


def get_repo_root(args: argparse.Namespace) -> Path:
    """Get the backend project directory from args, else the working directory."""
    raw = getattr(args, "repo_root", None)
    if raw:
        return Path(raw).resolve()
    return Path.cwd().resolve()


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "include_patterns": getattr(args, "include", None),
        "exclude_patterns": getattr(args, "exclude", None),
        "verbose": getattr(args, "verbose", None),
        "build_convention": getattr(args, "convention", None),
    }


def load_settings(args: argparse.Namespace) -> MirrorConfig:
    """Merge bundled defaults, project YAML, environment and CLI flags."""
    return ConfigManager(get_repo_root(args)).load(_cli_overrides(args))


def resolve_paths(args: argparse.Namespace, settings: MirrorConfig) -> SessionPaths:
    repo_root = get_repo_root(args)
    raw_root: Optional[str] = getattr(args, "root", None)
    asset_root = (repo_root / raw_root).resolve() if raw_root else repo_root
    convention = settings.convention
    return SessionPaths(
        repo_root=repo_root,
        asset_root=asset_root,
        output_dir=convention.output_path(repo_root),
        descriptor_path=convention.descriptor_path(repo_root),
    )


def setup_logging(args: argparse.Namespace, settings: Optional[MirrorConfig] = None) -> None:
    verbose = bool(getattr(args, "verbose", None) or (settings.verbose if settings else False))
    configure_logging(verbose=verbose)


def build_coordinator(settings: MirrorConfig, paths: SessionPaths) -> LifecycleCoordinator:
    return LifecycleCoordinator(
        paths.output_dir,
        paths.descriptor_path,
        filter_spec=settings.filter_spec,
        verbose=settings.verbose,
    )


__all__ = [
    "SessionPaths",
    "get_repo_root",
    "load_settings",
    "resolve_paths",
    "setup_logging",
    "build_coordinator",
]
