"""Common CLI argument registration utilities.

This module provides reusable argument registration functions to reduce
duplication across CLI commands.
"""
from __future__ import annotations

import argparse

from devmirror.core.config import BUILD_CONVENTIONS


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode."""
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_repo_root_flag(parser: argparse.ArgumentParser) -> None:
    """Add --repo-root flag (backend project directory holding target/ or build/)."""
    parser.add_argument(
        "--repo-root",
        type=str,
        help="Backend project directory (default: current directory)",
    )


def add_asset_root_flag(parser: argparse.ArgumentParser) -> None:
    """Add --root flag for the frontend asset root."""
    parser.add_argument(
        "--root",
        type=str,
        help="Frontend root whose files are mirrored (default: repository root)",
    )


def add_verbose_flag(parser: argparse.ArgumentParser) -> None:
    """Add --verbose flag."""
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=None,
        help="Log every copied file and enable debug output",
    )


def add_convention_flag(parser: argparse.ArgumentParser) -> None:
    """Add --convention flag selecting the backend output layout."""
    parser.add_argument(
        "--convention",
        choices=sorted(BUILD_CONVENTIONS),
        help="Backend build layout (default from config: maven)",
    )


def add_pattern_flags(parser: argparse.ArgumentParser) -> None:
    """Add repeatable --include/--exclude glob flags."""
    parser.add_argument(
        "--include",
        action="append",
        metavar="GLOB",
        help="Include pattern (repeatable; replaces configured includes)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        metavar="GLOB",
        help="Exclude pattern (repeatable; replaces configured excludes)",
    )


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    """Flags shared by every command that resolves a session."""
    add_json_flag(parser)
    add_repo_root_flag(parser)
    add_verbose_flag(parser)
    add_convention_flag(parser)


__all__ = [
    "add_json_flag",
    "add_repo_root_flag",
    "add_asset_root_flag",
    "add_verbose_flag",
    "add_convention_flag",
    "add_pattern_flags",
    "add_standard_flags",
]
