"""Command-line tool that subscribes to channels and logs what arrives."""

from __future__ import annotations

import argparse
import json
import logging
import queue
import sys
import threading
from typing import Sequence

from .client import Client

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def _non_negative(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"{value!r} must not be negative")
    return number


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse the command line."""
    parser = argparse.ArgumentParser(
        prog="bayeux", description="Subscribe to Bayeux channels and log their messages."
    )
    parser.add_argument("-protocol", "--protocol", default="https",
                        help="the protocol to use (http or https)")
    parser.add_argument("-port", "--port", type=_non_negative, default=80,
                        help="the port used to connect to the Bayeux server")
    parser.add_argument("-buffer", "--buffer", type=_non_negative, default=100,
                        help="the number of events to buffer")
    parser.add_argument("-hostname", "--hostname", default="",
                        help="the hostname to connect to")
    parser.add_argument("-path", "--path", default="",
                        help="the path used to connect to bayeux")
    parser.add_argument("-loglevel", "--loglevel", default="error",
                        help="the level to log at")
    parser.add_argument("channels", nargs="*", help="channels to subscribe to")
    return parser.parse_args(argv)


def _server_address(args: argparse.Namespace) -> str:
    path = args.path
    if path and not path.startswith("/"):
        path = "/" + path
    return f"{args.protocol}://{args.hostname}:{args.port}{path}"


def _quoted(err: BaseException) -> str:
    return json.dumps(str(err), ensure_ascii=False)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the tool; return the process exit status."""
    args = parse_args(argv)

    logger = logging.getLogger("bayeux.cli")
    logger.setLevel(_LOG_LEVELS.get(args.loglevel, logging.CRITICAL))
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    stop = threading.Event()
    try:
        try:
            client = Client(_server_address(args), logger=logger)
        except (ValueError, OSError) as exc:
            print(f"error initializing client: {_quoted(exc)}")
            return 1
        logger.debug("got client")

        output: queue.Queue = queue.Queue(maxsize=args.buffer)
        errors = client.start(stop)
        for name in args.channels:
            client.subscribe(name, output.put)

        while True:
            try:
                err = errors.get_nowait()
            except queue.Empty:
                pass
            else:
                print(f"error in bayeux client: {_quoted(err)}")
                return 2
            try:
                batch = output.get(timeout=0.1)
            except queue.Empty:
                continue
            for message in batch:
                logger.info("channel=%s data=%s", message.channel, json.dumps(message.data))
    except KeyboardInterrupt:
        return 130
    finally:
        stop.set()
        logger.removeHandler(handler)


if __name__ == "__main__":
    sys.exit(main())