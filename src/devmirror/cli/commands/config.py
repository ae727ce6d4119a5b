"""
devmirror config command.

SUMMARY: Show the effective configuration

Displays the configuration merged from bundled defaults, the project's
devmirror.yaml, DEVMIRROR_* environment variables and command-line flags,
along with the directories it resolves to.
"""

from __future__ import annotations

import argparse

import yaml

from devmirror.cli import (
    OutputFormatter,
    add_asset_root_flag,
    add_pattern_flags,
    add_standard_flags,
    load_settings,
    resolve_paths,
)
from devmirror.core.exceptions import DevMirrorError

SUMMARY = "Show the effective configuration"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_asset_root_flag(parser)
    add_pattern_flags(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        settings = load_settings(args)
        paths = resolve_paths(args, settings)
    except DevMirrorError as exc:
        formatter.error(exc, error_code=exc.__class__.__name__)
        return 1

    data = {
        "config": settings.to_dict(),
        "paths": {
            "asset_root": str(paths.asset_root),
            "output_dir": str(paths.output_dir),
            "descriptor": str(paths.descriptor_path),
        },
    }
    if formatter.json_mode:
        formatter.json_output(data)
    else:
        formatter.text(yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip())
    return 0
