"""Byte transports feeding a live sample stream."""

from __future__ import annotations

import socket
from pathlib import Path
from typing import BinaryIO, Protocol


class Transport(Protocol):
    """Abstract transport interface."""

    def read(self, n: int) -> bytes: ...
    def close(self) -> None: ...


class TCPTransport:
    """TCP stream transport (client mode).

    ``read`` returns ``b""`` on timeout and raises ConnectionError once the
    peer has closed the connection.
    """

    def __init__(self, host: str, port: int, timeout: float = 5.0):
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.settimeout(timeout)
        self._sock.connect((host, port))

    def read(self, n: int) -> bytes:
        try:
            data = self._sock.recv(n)
        except socket.timeout:
            return b""
        if not data:
            raise ConnectionError("connection closed by peer")
        return data

    def close(self) -> None:
        self._sock.close()


class FileTransport:
    """Replays a recorded sample stream from a file.

    ``read`` raises ConnectionError once the file is exhausted, the same
    way a TCP peer closing the stream is reported.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._f: BinaryIO = open(self.path, "rb")

    def read(self, n: int) -> bytes:
        data = self._f.read(n)
        if not data:
            raise ConnectionError(f"end of replay file {self.path}")
        return data

    def close(self) -> None:
        self._f.close()


def open_transport(address: str, timeout: float = 5.0) -> Transport:
    """Open ``tcp:host[:port]`` or ``file:path``.

    Raises ValueError for an unknown scheme and OSError if the connection
    or file cannot be opened.
    """
    kind, sep, rest = address.partition(":")
    if not sep or not rest:
        raise ValueError(f"expected tcp:host:port or file:path, got {address!r}")
    kind = kind.lower()
    if kind == "tcp":
        host, port = parse_address(rest)
        return TCPTransport(host, port, timeout=timeout)
    if kind == "file":
        return FileTransport(rest)
    raise ValueError(f"unsupported transport: {kind}")


def parse_address(address: str, default_port: int = 4300) -> tuple[str, int]:
    """``host:port`` (or bare host) to a (host, port) pair."""
    if ":" in address:
        host, port = address.rsplit(":", 1)
        return host or "localhost", int(port)
    return address or "localhost", default_port
