"""Entry point for running the CLI as a module."""

import argparse
import asyncio
import sys

from .reelchat_cli import main


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive CLI for the reelchat API")
    parser.add_argument("--host", type=str, default="localhost", help="Server host")
    parser.add_argument("--port", type=int, default=8080, help="Server port")
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--show-overview",
        action="store_true",
        help="Print a short overview under each movie",
    )
    return parser.parse_args()


def cli_entry() -> None:
    """CLI entry point."""
    args = parse_args()
    try:
        asyncio.run(
            main(
                host=args.host,
                port=args.port,
                debug=args.debug,
                show_overview=args.show_overview,
            )
        )
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    cli_entry()
