"""Logging helpers for programs built on the gpsd client."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional, Union

DEFAULT_LOG_LEVEL = logging.INFO


def setup_logging(
    level: Union[int, str] = DEFAULT_LOG_LEVEL,
    log_file: Optional[Union[str, Path]] = None,
    extra_handlers: Iterable[logging.Handler] | None = None,
) -> None:
    """Configure the root logger.

    Lines go to stdout and, when ``log_file`` is given, to a rotating file
    next to it. The library itself never calls this; it is meant for
    programs embedding the client. Does nothing when the root logger already
    has handlers.
    """

    root = logging.getLogger()
    if root.handlers:
        # Assume logging is already configured.
        return

    root.setLevel(level.upper() if isinstance(level, str) else level)

    formatter = logging.Formatter(
        fmt="[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=2 * 1024 * 1024,
            backupCount=5,
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if extra_handlers:
        for handler in extra_handlers:
            root.addHandler(handler)


__all__ = ["setup_logging", "DEFAULT_LOG_LEVEL"]
