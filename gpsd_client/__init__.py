"""Client for the gpsd JSON protocol."""
from __future__ import annotations

from typing import Any, Iterable

__all__ = ["GpsdSession", "SessionConfig", "LineCodec", "decode"]


def __getattr__(name: str) -> Any:  # pragma: no cover - simple import proxy
    if name == "GpsdSession":
        from .session import GpsdSession  # local import for lazy loading

        return GpsdSession
    if name == "SessionConfig":
        from .config import SessionConfig  # local import for lazy loading

        return SessionConfig
    if name == "LineCodec":
        from .protocol.codec import LineCodec  # local import for lazy loading

        return LineCodec
    if name == "decode":
        from .protocol.classify import decode  # local import for lazy loading

        return decode
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> Iterable[str]:  # pragma: no cover - introspection helper
    return sorted(set(globals()) | set(__all__))
