from __future__ import annotations

import argparse
import signal
import sys
import threading
from typing import NoReturn, Sequence

from kavin.core.config import load_config
from kavin.logging_ import setup_logging
from kavin.watcher import Watcher

USAGE = "kavin [options] <command> <file1> [file2] ..."
EXAMPLE = 'kavin "npm start" src/main.js src/utils.js'


def _die(msg: str) -> NoReturn:
    print(msg, file=sys.stderr)
    sys.exit(1)


def _usage_error(msg: str | None = None) -> NoReturn:
    lines = []
    if msg:
        lines.append(f"error: {msg}")
    lines.append(f"Usage: {USAGE}")
    lines.append(f"Example: {EXAMPLE}")
    _die("\n".join(lines))


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        _usage_error(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="kavin",
        usage=USAGE,
        description="Run a command and restart it whenever watched files change.",
    )
    parser.add_argument("command", nargs="?", help="Command line to run through the shell")
    parser.add_argument("paths", nargs="*", help="Files and directories to watch")
    parser.add_argument("--interval", type=float, default=None, help="Poll interval in seconds (default 0.1)")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait after SIGTERM before sending SIGKILL (default 2)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def install_signal_handlers(stop: threading.Event) -> None:
    def _handler(signum, frame) -> None:
        stop.set()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)
    if not args.command or not args.paths:
        _usage_error()

    try:
        config = load_config(poll_interval=args.interval, shutdown_timeout=args.timeout)
    except ValueError as exc:
        _usage_error(str(exc))

    setup_logging(args.verbose)

    stop = threading.Event()
    install_signal_handlers(stop)

    watcher = Watcher(args.command, args.paths, config=config)
    restarts = watcher.run(stop)

    print(f"\nWatcher stopped. Total restarts: {restarts}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
