"""Configuration model for gpsd sessions."""
from __future__ import annotations

from dataclasses import dataclass
import os
import sys
from typing import Optional, Tuple, Union

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 2947

Address = Union[str, Tuple[str, int]]


# ``slots`` support for ``dataclasses`` was added in Python 3.10. Keep using
# slots where available, but remain compatible with Python 3.9.
_DATACLASS_KWARGS = {"slots": True} if sys.version_info >= (3, 10) else {}


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == "":
        return None
    return float(value)


def parse_address(address: Address) -> Tuple[str, int]:
    """Split ``"host:port"`` (``"[::1]:2947"`` for IPv6) into its parts.

    A bare host uses the standard gpsd port.
    """

    if isinstance(address, tuple):
        host, port = address
        return host, int(port)
    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        port = rest[1:] if rest.startswith(":") else ""
    elif address.count(":") == 1:
        host, _, port = address.partition(":")
    else:
        host, port = address, ""
    if not host:
        raise ValueError(f"invalid gpsd address: {address!r}")
    return host, int(port) if port else DEFAULT_PORT


@dataclass(**_DATACLASS_KWARGS)
class SessionConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    connect_timeout_s: Optional[float] = None
    read_timeout_s: Optional[float] = None
    raw: int = 0
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @property
    def address(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{host}:{self.port}"

    @classmethod
    def from_env(cls) -> "SessionConfig":
        return cls(
            host=os.environ.get("GPSD_HOST", DEFAULT_HOST),
            port=int(os.environ.get("GPSD_PORT", str(DEFAULT_PORT))),
            connect_timeout_s=_optional_float(os.environ.get("GPSD_CONNECT_TIMEOUT")),
            read_timeout_s=_optional_float(os.environ.get("GPSD_READ_TIMEOUT")),
            raw=int(os.environ.get("GPSD_RAW", "0")),
            log_level=os.environ.get("GPSD_LOG_LEVEL", "INFO"),
            log_file=os.environ.get("GPSD_LOG_FILE") or None,
        )


__all__ = ["SessionConfig", "parse_address", "DEFAULT_HOST", "DEFAULT_PORT"]
