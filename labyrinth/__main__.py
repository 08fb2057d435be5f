"""
Run a labyrinth crawl from the command line.

RUN:
    python -m labyrinth --commander you@example.com --max-commands 5
"""

import argparse
import asyncio
import json
import sys

from .config import Config
from .errors import LabyrinthError
from .logging_utils import log_error
from .runner import run_crawl


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="labyrinth",
        description="Explore the labyrinth with drones and report the hidden message",
    )
    parser.add_argument("--commander", default=None, help="Commander email (defaults to LABYRINTH_COMMANDER)")
    parser.add_argument("--max-commands", type=int, default=None, help="Commands per drone batch")
    parser.add_argument("--base-url", default=None, help="Service base URL (defaults to LABYRINTH_BASE_URL)")
    parser.add_argument("--timeout", type=float, default=None, help="Overall run deadline in seconds")
    parser.add_argument(
        "--recycle-rejected-drones",
        action="store_true",
        default=None,
        help="Return drones rejected as busy/invalid to the pool",
    )
    parser.add_argument("--verbose", action="store_true", default=None, help="Log stats after every batch")
    return parser.parse_args(argv)


def validate_args(args: argparse.Namespace) -> None:
    """Validate environment config plus CLI overrides without mutating Config."""
    Config.validate()
    if args.max_commands is not None and args.max_commands < 1:
        raise ValueError(f"--max-commands must be at least 1 (got {args.max_commands})")
    if args.timeout is not None and args.timeout <= 0:
        raise ValueError("--timeout must be positive")


async def main(args: argparse.Namespace) -> int:
    try:
        validate_args(args)
    except ValueError as exc:
        log_error(str(exc))
        print(json.dumps({"err": str(exc)}))
        return 1
    print(Config.display())

    try:
        report = await run_crawl(
            args.commander,
            args.max_commands,
            base_url=args.base_url,
            timeout=args.timeout,
            recycle_rejected_drones=args.recycle_rejected_drones,
            verbose=args.verbose,
        )
    except LabyrinthError as exc:
        log_error(str(exc))
        print(json.dumps(exc.as_payload()))
        return 1
    except asyncio.TimeoutError:
        log_error("Run timed out before the labyrinth was closed")
        print(json.dumps({"err": "timeout"}))
        return 1

    print(report.model_dump_json(indent=2))
    return 0


def cli() -> None:
    sys.exit(asyncio.run(main(parse_args())))


if __name__ == "__main__":
    cli()
