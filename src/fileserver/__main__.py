"""
=============================================================================
FILE SERVER CLI ENTRY POINT
=============================================================================

    # Serve /var/www on port 8080
    python -m fileserver 8080 /var/www

    # Any free port, only on localhost, 4 workers
    python -m fileserver 0 ./public --host 127.0.0.1 --workers 4

    # Harden against slow clients and ../ targets
    python -m fileserver 8080 /var/www --read-timeout 30 --contain-paths

Options not given on the command line fall back to FILESERVER_* environment
variables, then to the defaults in ServerConfig.

Exit status is 1 when the port or document root is invalid, or when the
port cannot be bound.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import LOG_FORMATS, LOG_LEVELS, ServerConfig
from .server import FileServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fileserver",
        description="Minimal HTTP/1.1 file server with per-directory Basic auth",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m fileserver 8080 /var/www                    # Serve /var/www
  python -m fileserver 0 . --host 127.0.0.1             # Any free port
  python -m fileserver 8080 /var/www --workers 20       # 20 worker threads
  python -m fileserver 8080 /var/www --log-format json  # JSON access log
        """,
    )

    # Parsed as strings so a bad value exits 1 with our message, not argparse's 2
    parser.add_argument("port", help="Port to listen on (0 picks a free port)")
    parser.add_argument("document_root", help="Directory to serve files from")

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Address to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Number of worker threads (default: 10)",
    )
    parser.add_argument(
        "--queue-size",
        type=int,
        default=None,
        help="Connections allowed to wait for a worker, 0 for unbounded (default: 0)",
    )
    parser.add_argument(
        "--read-timeout",
        type=float,
        default=None,
        help="Seconds a socket read may block (default: no timeout)",
    )
    parser.add_argument(
        "--contain-paths",
        action="store_true",
        default=None,
        help="Refuse targets that resolve outside the document root with 403",
    )
    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text)",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"fileserver {__version__}",
    )

    return parser


def load_config(argv: Optional[List[str]] = None) -> ServerConfig:
    """
    Build a validated ServerConfig from the environment and ``argv``.

    Raises:
        ValueError: If any value is invalid.
    """
    args = build_parser().parse_args(argv)

    try:
        port = int(args.port)
    except ValueError:
        raise ValueError(f"Invalid port: {args.port!r}")

    config = ServerConfig.from_env().with_overrides(
        port=port,
        document_root=args.document_root,
        host=args.host,
        workers=args.workers,
        queue_size=args.queue_size,
        read_timeout=args.read_timeout,
        contain_paths=args.contain_paths,
        log_level=args.log_level,
        log_format=args.log_format,
    )
    config.validate()
    return config


def main(argv: Optional[List[str]] = None):
    """Console entry point. Blocks until the server is stopped."""
    try:
        config = load_config(argv)
        server = FileServer(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        server.run()
    except OSError as e:
        print(f"Error: could not listen on {config.host}:{config.port}: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
