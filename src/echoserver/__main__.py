"""
=============================================================================
ECHO SERVER CLI ENTRY POINT
=============================================================================

    # Run with defaults (0.0.0.0:54000)
    python -m echoserver

    # Custom port, localhost only
    python -m echoserver --host 127.0.0.1 --port 7000

    # Skip reverse DNS for peer names, JSON connection summaries
    python -m echoserver --no-resolve --log-format json

Defaults come from ServerConfig.from_env(), so ECHO_PORT=7000 works as well;
flags given on the command line win.

Exit status: 0 after a clean shutdown, 1 if the listening socket could not
be set up, 2 for invalid arguments.

=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig, LOG_FORMATS, LOG_LEVELS
from .logs import setup_logging
from .server import EchoServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="echoserver",
        description="Multi-client TCP echo server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m echoserver                          # 0.0.0.0:54000
  python -m echoserver --port 7000              # Custom port
  python -m echoserver --host 127.0.0.1         # Localhost only
  python -m echoserver -l DEBUG --no-resolve    # Verbose, numeric peers
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--host", "-H", default=None,
                        help="Address to bind to (default: 0.0.0.0)")
    parser.add_argument("--port", "-p", type=int, default=None,
                        help="Port to listen on (default: 54000)")
    parser.add_argument("--backlog", type=int, default=None,
                        help="Listen backlog (default: SOMAXCONN)")
    parser.add_argument("--buffer-size", type=int, default=None,
                        help="Bytes read and echoed per iteration (default: 4096)")
    parser.add_argument("--no-resolve", action="store_true",
                        help="Log peers by numeric address, skip reverse lookup")

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--log-level", "-l", choices=LOG_LEVELS, default=None,
                        help="Logging level (default: INFO)")
    parser.add_argument("--log-format", choices=LOG_FORMATS, default=None,
                        help="Connection summary format (default: text)")

    parser.add_argument("--version", "-v", action="version",
                        version=f"echoserver {__version__}")
    return parser


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Environment defaults overridden by whatever flags were given."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.backlog is not None:
        config.backlog = args.backlog
    if args.buffer_size is not None:
        config.buffer_size = args.buffer_size
    if args.no_resolve:
        config.resolve_names = False
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format

    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
        config.validate()
    except ValueError as e:
        parser.error(str(e))  # exits with status 2

    setup_logging(config.log_level)

    server = EchoServer(config)
    return server.run()


if __name__ == "__main__":
    sys.exit(main())
