#!/usr/bin/env python3
"""
ttlkv Command Line Entry Point

Runs a single cache operation against a database file.

Usage:
    ttlkv set greeting hello                 # Store without expiry
    ttlkv set session abc --ttl 30           # Store, expire in 30s
    ttlkv get greeting                       # Print value or (nil)
    ttlkv ttl session                        # -2 absent, -1 no expiry, else seconds
    ttlkv expire greeting 60                 # Overwrite expiry
    ttlkv incr hits --by 5                   # Counter arithmetic
    ttlkv --db /tmp/other.db del greeting    # Custom database

Environment Variables:
    TTLKV_DB_PATH    - Database path
    TTLKV_ENGINE     - Storage engine (sqlite/memory)
    TTLKV_DEBUG      - Enable debug logging (true/false)
    TTLKV_LOG_LEVEL  - Log level when not debugging
"""

import argparse
import logging
import sys
from typing import List, Optional

from .cache.ttl_cache import TTLCache
from .config.settings import settings
from .errors import TTLKVError

NIL = "(nil)"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="ttlkv",
        description="ttlkv: expiring values and counters on a durable store",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--db",
        type=str,
        default=settings.DB_PATH,
        help="Database file path",
    )

    parser.add_argument(
        "--engine",
        type=str,
        choices=("sqlite", "memory"),
        default=settings.ENGINE,
        help="Storage engine",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    cmd = commands.add_parser("get", help="Print the value of a key")
    cmd.add_argument("key")

    cmd = commands.add_parser("set", help="Store a value")
    cmd.add_argument("key")
    cmd.add_argument("value")
    cmd.add_argument("--ttl", type=int, default=0, help="Seconds until expiry (0 = never)")

    cmd = commands.add_parser("ttl", help="Print remaining time-to-live")
    cmd.add_argument("key")

    cmd = commands.add_parser("expire", help="Set a key's expiry in seconds (0 clears it)")
    cmd.add_argument("key")
    cmd.add_argument("seconds", type=int)

    cmd = commands.add_parser("incr", help="Increment a counter")
    cmd.add_argument("key")
    cmd.add_argument("--by", type=int, default=1)

    cmd = commands.add_parser("decr", help="Decrement a counter")
    cmd.add_argument("key")
    cmd.add_argument("--by", type=int, default=1)

    cmd = commands.add_parser("del", help="Delete a key")
    cmd.add_argument("key")

    cmd = commands.add_parser("exists", help="Print 1 if the key is live, else 0")
    cmd.add_argument("key")

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr),
        ]
    )


def run_command(cache: TTLCache, args: argparse.Namespace) -> str:
    """Execute one parsed command and return the text to print."""
    if args.command == "get":
        value = cache.get(args.key)
        return NIL if value is None else value.decode("utf-8", errors="replace")
    if args.command == "set":
        if args.ttl:
            cache.set_with_ttl(args.key, args.value, args.ttl)
        else:
            cache.set(args.key, args.value)
        return "OK"
    if args.command == "ttl":
        return str(cache.ttl(args.key))
    if args.command == "expire":
        return "1" if cache.expire(args.key, args.seconds) else "0"
    if args.command == "incr":
        return str(cache.incr_by(args.key, args.by))
    if args.command == "decr":
        return str(cache.decr_by(args.key, args.by))
    if args.command == "del":
        return "1" if cache.delete(args.key) else "0"
    if args.command == "exists":
        return "1" if cache.exists(args.key) else "0"
    raise ValueError(f"unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line tool."""
    args = parse_args(argv)

    setup_logging(debug=args.debug)
    logger = logging.getLogger(__name__)

    logger.debug(f"Opening {args.engine} store at {args.db}")

    try:
        with TTLCache.open(args.db, engine=args.engine) as cache:
            output = run_command(cache, args)
    except (TTLKVError, ValueError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
