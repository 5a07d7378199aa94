"""Caller-side streams for console sessions.

A console bridges a spawned program with any object satisfying
:class:`DuplexStream`: ``read(size)`` returning ``b""`` at end of input, and
``write(data)``.  :class:`SocketStream` adapts a connected socket.
"""

from __future__ import annotations

import logging
import socket
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger("resourcebridge.streams")

CHUNK_SIZE = 65_536


@runtime_checkable
class DuplexStream(Protocol):
    def read(self, size: int = ...) -> bytes: ...

    def write(self, data: bytes) -> Any: ...


class SocketStream:
    """:class:`DuplexStream` over a connected stream socket.

    Closing the stream shuts the socket down in both directions; the socket
    itself stays owned by the caller.
    """

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    def read(self, size: int = CHUNK_SIZE) -> bytes:
        return self._sock.recv(size)

    def write(self, data: bytes) -> int:
        self._sock.sendall(data)
        return len(data)

    def close(self) -> None:
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        logger.debug("Socket stream closed")


def copy_stream(read: Any, write: Any, size: int = CHUNK_SIZE) -> int:
    """Copy chunks from *read(size)* into *write(data)* until *read* returns ``b""``.

    Returns the number of bytes copied.  Errors propagate to the caller.
    """
    total = 0
    while True:
        data = read(size)
        if not data:
            return total
        write(data)
        total += len(data)
