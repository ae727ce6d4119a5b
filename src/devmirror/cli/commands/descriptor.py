"""
devmirror descriptor command.

SUMMARY: Show the published dev server address

Reads the descriptor the way a backend consumer would: a missing or
unparsable file means the address is not known yet (exit code 1).
"""

from __future__ import annotations

import argparse

from devmirror.cli import (
    OutputFormatter,
    add_standard_flags,
    load_settings,
    resolve_paths,
)
from devmirror.core.descriptor import DescriptorStore
from devmirror.core.exceptions import DevMirrorError

SUMMARY = "Show the published dev server address"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        settings = load_settings(args)
        paths = resolve_paths(args, settings)
    except DevMirrorError as exc:
        formatter.error(exc, error_code=exc.__class__.__name__)
        return 1

    descriptor = DescriptorStore(paths.descriptor_path).read()
    if descriptor is None:
        formatter.success(
            {"path": str(paths.descriptor_path), "descriptor": None},
            f"Dev server address unknown (no descriptor at {paths.descriptor_path})",
            status="unknown",
        )
        return 1

    formatter.success(
        {"path": str(paths.descriptor_path), "descriptor": descriptor.to_dict()},
        descriptor.url,
    )
    return 0
