"""
devmirror watch command.

SUMMARY: Serve the asset root, mirror changes live and publish the address

Runs the dev-mode flow with the bundled static host: full sync, provisional
descriptor, port confirmation once the socket is bound, then one copy plus
one full-reload directive per matching file change. Stop with Ctrl-C.
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
from devmirror.core.host import HmrOptions, HostEvents, ServerOptions
from devmirror.core.watch_host import WatchHost

SUMMARY = "Serve the asset root, mirror changes live and publish the address"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_asset_root_flag(parser)
    add_pattern_flags(parser)
    parser.add_argument("--host", default="localhost", help="Listen host (default: localhost)")
    parser.add_argument("--port", type=int, default=None, help="Preferred port (default: 5173)")
    parser.add_argument(
        "--strict-port",
        action="store_true",
        help="Fail instead of trying the next port when the preferred one is taken",
    )
    parser.add_argument("--hmr-host", help="Public host clients use (reverse proxy)")
    parser.add_argument("--hmr-port", type=int, help="Public port clients use (reverse proxy)")
    parser.add_argument(
        "--hmr-protocol",
        choices=["ws", "wss", "http", "https"],
        help="Public transport protocol clients use (reverse proxy)",
    )
    add_standard_flags(parser)


def _server_options(args: argparse.Namespace) -> ServerOptions:
    hmr = None
    if args.hmr_host or args.hmr_port or args.hmr_protocol:
        hmr = HmrOptions(protocol=args.hmr_protocol, host=args.hmr_host, port=args.hmr_port)
    return ServerOptions(host=args.host, port=args.port, hmr=hmr)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        settings = load_settings(args)
        setup_logging(args, settings)
        paths = resolve_paths(args, settings)

        events = HostEvents()
        build_coordinator(settings, paths).attach(events)
        host = WatchHost(
            paths.asset_root,
            _server_options(args),
            events,
            ignore_paths=[paths.output_dir],
            strict_port=args.strict_port,
        )
        host.run()
    except DevMirrorError as exc:
        formatter.error(exc, error_code=exc.__class__.__name__)
        return 1
    except OSError as exc:
        formatter.error(exc, error_code="os_error")
        return 1
    except KeyboardInterrupt:
        pass
    return 0
