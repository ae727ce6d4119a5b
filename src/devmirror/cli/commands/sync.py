"""
devmirror sync command.

SUMMARY: Mirror matching assets into the backend build output

Runs the build-mode flow: one full sync of the asset root, no descriptor.
Exits non-zero when any file could not be copied.
"""

from __future__ import annotations

import argparse

from devmirror.cli import (
    OutputFormatter,
    add_asset_root_flag,
    add_pattern_flags,
    add_standard_flags,
    build_coordinator,
    load_settings,
    resolve_paths,
    setup_logging,
)
from devmirror.core.exceptions import DevMirrorError
from devmirror.core.host import HostEvents, ResolvedConfig

SUMMARY = "Mirror matching assets into the backend build output"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_asset_root_flag(parser)
    add_pattern_flags(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        settings = load_settings(args)
        setup_logging(args, settings)
        paths = resolve_paths(args, settings)

        events = HostEvents()
        coordinator = build_coordinator(settings, paths)
        coordinator.attach(events)
        events.emit_config_resolved(ResolvedConfig(root=paths.asset_root))
        events.emit_build_end()
    except DevMirrorError as exc:
        formatter.error(exc, error_code=exc.__class__.__name__)
        return 1

    report = coordinator.last_report
    copied = report.count if report else 0
    errors = list(report.errors) if report else []
    formatter.success(
        {
            "copied": copied,
            "output_dir": str(paths.output_dir),
            "errors": [e.to_json_error() for e in errors],
        },
        f"Copied {copied} files to {paths.output_dir}",
        status="success" if not errors else "partial",
    )
    return 0 if not errors else 1
