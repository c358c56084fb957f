"""Utilities to serialise commands to, and responses from, the wire format."""
from __future__ import annotations

import json

from .classify import decode
from .messages import Command, CommandType, Response


class LineCodec:
    """Encode gpsd commands and decode newline separated JSON reports."""

    @staticmethod
    def encode(command: Command) -> bytes:
        if command.type is CommandType.WATCH:
            if command.watch is None:
                raise ValueError("WATCH command requires a watch configuration")
            body = json.dumps(command.watch.to_dict(), separators=(",", ":"))
            return f"?WATCH={body}\n".encode("utf-8")
        return f"?{command.type.value};\n".encode("utf-8")

    @staticmethod
    def decode(line: str) -> Response:
        return decode(line)


__all__ = ["LineCodec"]
