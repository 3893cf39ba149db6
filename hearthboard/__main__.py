"""Command-line entry for hearthboard."""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn, Optional

from . import run_server


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the hearthboard CLI."""
    parser = argparse.ArgumentParser(
        prog="hearthboard",
        description="Hearthboard - household calendar dashboard server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m hearthboard                    # Start server on default port (8080)
  python -m hearthboard --port 3000        # Start server on port 3000
  python -m hearthboard --ui console       # Server plus console kiosk in one process
        """,
    )

    parser.add_argument(
        "--port",
        type=int,
        metavar="PORT",
        help="Port number for the web server (default: 8080, or HEARTHBOARD_WEB_PORT)",
    )
    parser.add_argument(
        "--host",
        metavar="HOST",
        help="Bind address (default: 0.0.0.0, or HEARTHBOARD_WEB_HOST)",
    )
    parser.add_argument(
        "--ui",
        choices=["none", "console"],
        default="none",
        help="Also run a display client: 'console' prints the dashboard to stdout",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> NoReturn:
    """Run the hearthboard CLI."""
    parser = _create_parser()
    args = parser.parse_args(argv)
    run_server(args)
    sys.exit(0)


if __name__ == "__main__":
    main()
