"""Client session with a gpsd daemon."""
from __future__ import annotations

from datetime import timedelta
import logging
from typing import Optional, Union

from .config import Address, SessionConfig, parse_address
from .errors import ConnectionClosedError, DeserializationFailedError, ParseError
from .protocol.codec import LineCodec
from .protocol.messages import (
    Command,
    RawResponse,
    Response,
    devices_command,
    poll_command,
    version_command,
    watch_command,
)
from .transport.tcp import TcpLineStream

LOGGER = logging.getLogger(__name__)

Timeout = Union[float, timedelta, None]


def _timeout_seconds(timeout: Timeout) -> Optional[float]:
    if timeout is None:
        return None
    seconds = timeout.total_seconds() if isinstance(timeout, timedelta) else float(timeout)
    if seconds <= 0:
        raise ValueError(f"read timeout must be positive, got {timeout!r}")
    return seconds


class GpsdSession:
    """One connection to gpsd.

    Every call blocks the calling thread. A session owns its socket and line
    buffer and must not be shared between threads without external locking.

    Typical usage::

        with GpsdSession.connect("127.0.0.1:2947") as session:
            session.watch(True)
            while True:
                response = session.get_response()
    """

    def __init__(self, stream: TcpLineStream) -> None:
        self._stream = stream
        self._raw_mode = False

    @classmethod
    def connect(cls, address: Address, *, timeout: Optional[float] = None) -> "GpsdSession":
        """Open a connection to ``address``; ``timeout`` bounds the connect only."""

        host, port = parse_address(address)
        return cls(TcpLineStream.open(host, port, timeout=timeout))

    @classmethod
    def from_config(cls, config: SessionConfig) -> "GpsdSession":
        session = cls.connect(config.address, timeout=config.connect_timeout_s)
        session.set_read_timeout(config.read_timeout_s)
        return session

    # Lifecycle management -----------------------------------------------
    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> "GpsdSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def raw_mode(self) -> bool:
        """Whether unclassifiable lines are returned as :class:`RawResponse`."""

        return self._raw_mode

    def set_read_timeout(self, timeout: Timeout) -> None:
        """Bound how long :meth:`get_response` may block; ``None`` blocks forever."""

        self._stream.set_read_timeout(_timeout_seconds(timeout))

    # Commands -------------------------------------------------------------
    def send(self, command: Command) -> None:
        data = LineCodec.encode(command)
        LOGGER.debug("sending %r", data)
        self._stream.write(data)

    def watch(self, enabled: bool) -> None:
        """Enable or disable watcher mode with JSON reports."""

        self.watch_raw(enabled, True, 0)

    def watch_raw(self, enabled: bool, json: bool, raw: int) -> None:
        """Enable or disable watcher mode with an explicit raw level.

        With ``raw=1`` gpsd relays the unprocessed NMEA or AIVDM stream of the
        device (binary packets hex-dumped); with ``raw=2`` binary data is
        relayed verbatim. Any level above zero switches the session to raw
        mode once the command has been written.
        """

        self.send(watch_command(enabled, json=json, raw=raw))
        self._raw_mode = raw > 0

    def poll(self) -> None:
        """Request the last-seen fixes of every watched device."""

        self.send(poll_command())

    def version(self) -> None:
        self.send(version_command())

    def devices(self) -> None:
        self.send(devices_command())

    # Responses ------------------------------------------------------------
    def get_response(self) -> Response:
        """Block until gpsd sends a non-blank line and return it classified.

        Raises :class:`ConnectionClosedError` when gpsd hangs up,
        :class:`ReadTimeoutError` when the read timeout elapses and
        :class:`DeserializationFailedError` for unclassifiable lines outside
        raw mode.
        """

        while True:
            data = self._stream.read_line()
            if not data:
                raise ConnectionClosedError(f"gpsd connection closed by {self._stream.peer}")

            line = data.decode("utf-8", errors="replace")
            if not line.strip():
                LOGGER.debug("empty line received from gpsd")
                continue

            LOGGER.debug("raw gpsd data: %s", line.rstrip("\n"))
            try:
                response = LineCodec.decode(line)
            except ParseError as exc:
                if self._raw_mode:
                    return RawResponse(text=line, data=data)
                LOGGER.debug("deserializing response failed: %s", exc)
                raise DeserializationFailedError(line, exc) from exc
            LOGGER.debug("decoded %s", type(response).__name__)
            return response


__all__ = ["GpsdSession"]
