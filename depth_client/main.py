#!/usr/bin/env python3
"""
Depth Client - Binance order book depth from the command line.

Usage:
    python -m depth_client.main rest --symbol LTCBTC --limit 100
    python -m depth_client.main ws -s LTCBTC -l 10

    Or, once installed:
    depth-client rest -s LTCBTC

Stop with Ctrl-C (SIGINT) or SIGTERM.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from rich.logging import RichHandler

from .config import DEFAULT_CONFIG_PATH, LOG_LEVELS, Config, load_config
from .errors import ConfigError, DepthClientError
from .runner import POLL_INTERVAL_SEC, install_signal_handlers, run_rest, run_stream
from .validation import ALLOWED_LIMITS, DEFAULT_LIMIT, REST, STREAM

logger = logging.getLogger("depth_client")


def setup_logging(level: str) -> None:
    """Route all depth_client loggers to a rich console handler."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%Y-%m-%d %H:%M:%S]",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
        force=True,
    )
    # aiohttp is chatty at DEBUG; keep it at WARNING unless asked for
    if level != "DEBUG":
        logging.getLogger("aiohttp").setLevel(logging.WARNING)


async def main(command: str, config: Config, args: argparse.Namespace) -> None:
    """Run one command until it finishes, fails, or is interrupted."""
    stop = asyncio.Event()
    install_signal_handlers(stop)

    if command == REST:
        await run_rest(config, args.symbol, args.limit, interval=args.interval, stop=stop)
    else:
        await run_stream(config, args.symbol, args.limit, stop=stop)


def _limit_help(mode: str) -> str:
    allowed = ALLOWED_LIMITS[mode]
    return f"Default {DEFAULT_LIMIT}; max {allowed[-1]}. Valid limits:[{', '.join(allowed)}]"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="depth-client",
        description="Depth Client - Binance order book depth over REST or WebSocket",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    depth-client rest --symbol LTCBTC --limit 100
    depth-client ws -s BTCUSDT -l 20 -c prod.env
        """
    )

    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    for mode, help_text in ((REST, "start http rest"), (STREAM, "start ws")):
        sub = subparsers.add_parser(mode, help=help_text)
        sub.add_argument(
            "-c", "--config",
            default=DEFAULT_CONFIG_PATH,
            help=f"path to .env config file (default: {DEFAULT_CONFIG_PATH})"
        )
        sub.add_argument(
            "-s", "--symbol",
            default="",
            help="symbol, e.g. 'LTCBTC'"
        )
        sub.add_argument(
            "-l", "--limit",
            default="",
            help=_limit_help(mode)
        )
        sub.add_argument(
            "--log-level",
            type=str.upper,
            choices=LOG_LEVELS,
            default=None,
            help="log level (default: LOG_LEVEL from the environment, else INFO)"
        )
        if mode == REST:
            sub.add_argument(
                "--interval",
                type=float,
                default=POLL_INTERVAL_SEC,
                help=f"seconds between fetches (default: {POLL_INTERVAL_SEC:g})"
            )

    return parser


def cli(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        setup_logging(args.log_level or "INFO")
        logger.error("%s", e)
        return 1
    setup_logging(args.log_level or config.log_level)

    try:
        asyncio.run(main(args.command, config, args))
    except DepthClientError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Shutdown requested.")
    return 0


if __name__ == "__main__":
    sys.exit(cli())
