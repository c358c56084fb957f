"""TCP transport: one socket plus the line buffer reading from it."""
from __future__ import annotations

import logging
import socket
from typing import Optional

from ..errors import GpsdConnectionError, ReadTimeoutError

LOGGER = logging.getLogger(__name__)


class TcpLineStream:
    """Duplex byte stream that hands out newline terminated lines.

    Partial data stays buffered across read timeouts, so a caller may simply
    read again after :class:`ReadTimeoutError`.
    """

    def __init__(self, sock: socket.socket, *, peer: str, recv_size: int = 4096) -> None:
        self.sock = sock
        self.peer = peer
        self.recv_size = recv_size
        self._buffer = bytearray()
        self._eof = False

    @classmethod
    def open(cls, host: str, port: int, *, timeout: Optional[float] = None) -> "TcpLineStream":
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as exc:
            raise GpsdConnectionError(f"failed to connect to {host}:{port}: {exc}") from exc
        # The connect timeout must not leak into reads.
        sock.settimeout(None)
        LOGGER.info("connected to gpsd at %s:%s", host, port)
        return cls(sock, peer=f"{host}:{port}")

    def set_read_timeout(self, timeout: Optional[float]) -> None:
        self.sock.settimeout(timeout)

    def write(self, data: bytes) -> None:
        try:
            self.sock.sendall(data)
        except OSError as exc:
            raise GpsdConnectionError(f"failed to write to {self.peer}: {exc}") from exc

    def read_line(self) -> bytes:
        """Return the next line including its ``\\n``.

        At end of stream any unterminated tail is returned once, then every
        call returns ``b""``.
        """

        while True:
            index = self._buffer.find(b"\n")
            if index >= 0:
                line = bytes(self._buffer[: index + 1])
                del self._buffer[: index + 1]
                return line
            if self._eof:
                line = bytes(self._buffer)
                self._buffer.clear()
                return line
            try:
                chunk = self.sock.recv(self.recv_size)
            except socket.timeout as exc:
                raise ReadTimeoutError(f"timed out reading from {self.peer}") from exc
            except OSError as exc:
                raise GpsdConnectionError(f"failed to read from {self.peer}: {exc}") from exc
            if not chunk:
                self._eof = True
                continue
            self._buffer += chunk

    def close(self) -> None:
        try:
            self.sock.close()
        finally:
            LOGGER.info("connection to %s closed", self.peer)


__all__ = ["TcpLineStream"]
