"""Exceptions raised by the gpsd client."""
from __future__ import annotations


class GpsdError(Exception):
    """Base class for every failure surfaced by the client."""


class GpsdConnectionError(GpsdError):
    """Raised when the socket cannot be opened or the transport fails."""


class ConnectionClosedError(GpsdError):
    """Raised when gpsd closes the connection (a read returned no bytes).

    The session is unusable afterwards; callers reconnect.
    """


class ReadTimeoutError(GpsdError):
    """Raised when the configured read timeout elapses before a full line."""


class ParseError(GpsdError):
    """Base class for classification failures of a single line."""


class MalformedJSONError(ParseError):
    """The line is not valid JSON."""


class UnknownClassError(ParseError):
    """The line is JSON but carries no recognised ``class``."""


class ShapeMismatchError(ParseError):
    """The payload does not fit the shape required by its ``class``."""


class DeserializationFailedError(GpsdError):
    """A line could not be classified while raw mode was off."""

    def __init__(self, text: str, cause: ParseError) -> None:
        super().__init__(f"failed to deserialize text {text!r}: {cause}")
        self.text = text
        self.cause = cause


__all__ = [
    "GpsdError",
    "GpsdConnectionError",
    "ConnectionClosedError",
    "ReadTimeoutError",
    "ParseError",
    "MalformedJSONError",
    "UnknownClassError",
    "ShapeMismatchError",
    "DeserializationFailedError",
]
