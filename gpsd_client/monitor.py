#!/usr/bin/env python3
"""Entry-point that logs everything a gpsd instance reports."""
from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from .config import SessionConfig
from .errors import (
    ConnectionClosedError,
    DeserializationFailedError,
    GpsdConnectionError,
    ReadTimeoutError,
)
from .logging_utils import setup_logging
from .session import GpsdSession

LOGGER = logging.getLogger(__name__)


def _positive_seconds(value: str) -> float:
    seconds = float(value)
    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"timeout must be positive, got {value}")
    return seconds


def build_parser(defaults: SessionConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Watch a gpsd daemon and log its reports.")
    parser.add_argument("--host", default=defaults.host, help="gpsd host (env GPSD_HOST)")
    parser.add_argument("--port", type=int, default=defaults.port, help="gpsd port (env GPSD_PORT)")
    parser.add_argument(
        "--raw",
        type=int,
        choices=(0, 1, 2),
        default=defaults.raw,
        help="raw level requested with WATCH (env GPSD_RAW)",
    )
    parser.add_argument(
        "--timeout",
        type=_positive_seconds,
        default=defaults.read_timeout_s,
        help="read timeout in seconds (env GPSD_READ_TIMEOUT)",
    )
    return parser


def load_config(argv: Optional[Sequence[str]] = None) -> SessionConfig:
    config = SessionConfig.from_env()
    args = build_parser(config).parse_args(argv)
    config.host = args.host
    config.port = args.port
    config.raw = args.raw
    config.read_timeout_s = args.timeout
    return config


def run(session: GpsdSession, *, raw: int = 0) -> int:
    """Watch ``session`` and log responses until gpsd hangs up."""

    if raw:
        session.watch_raw(True, True, raw)
    else:
        session.watch(True)
    while True:
        try:
            response = session.get_response()
        except ReadTimeoutError:
            LOGGER.debug("no data from gpsd before the read timeout")
            continue
        except DeserializationFailedError as exc:
            LOGGER.warning("%s", exc)
            continue
        except ConnectionClosedError as exc:
            LOGGER.error("%s", exc)
            return 1
        LOGGER.info("%s", response)


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = load_config(argv)
    setup_logging(config.log_level, config.log_file)
    LOGGER.info("connecting to gpsd at %s", config.address)
    try:
        with GpsdSession.from_config(config) as session:
            return run(session, raw=config.raw)
    except GpsdConnectionError as exc:
        LOGGER.error("%s", exc)
        return 1
    except KeyboardInterrupt:  # pragma: no cover
        return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
