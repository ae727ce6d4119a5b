"""
devmirror CLI package.

Commands live in ``commands/`` and are auto-discovered by the dispatcher.

Framework utilities for building CLI commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _utils: Settings, paths and coordinator construction
"""
from ._output import OutputFormatter
from ._args import (
    add_json_flag,
    add_repo_root_flag,
    add_asset_root_flag,
    add_verbose_flag,
    add_convention_flag,
    add_pattern_flags,
    add_standard_flags,
)
from ._utils import (
    SessionPaths,
    build_coordinator,
    get_repo_root,
    load_settings,
    resolve_paths,
    setup_logging,
)

__all__ = [
    # Output formatting
    "OutputFormatter",
    # Argument helpers
    "add_json_flag",
    "add_repo_root_flag",
    "add_asset_root_flag",
    "add_verbose_flag",
    "add_convention_flag",
    "add_pattern_flags",
    "add_standard_flags",
    # Utilities
    "SessionPaths",
    "build_coordinator",
    "get_repo_root",
    "load_settings",
    "resolve_paths",
    "setup_logging",
]
