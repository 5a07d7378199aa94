"""Tests for caller stream helpers."""

from __future__ import annotations

import io
import socket

from resourcebridge import DuplexStream, SocketStream
from resourcebridge.streams import copy_stream


def test_socket_stream_round_trip() -> None:
    left, right = socket.socketpair()
    try:
        stream = SocketStream(left)
        stream.write(b"ping")
        assert right.recv(4) == b"ping"

        right.sendall(b"pong")
        right.shutdown(socket.SHUT_WR)
        assert stream.read(4) == b"pong"
        assert stream.read() == b""
    finally:
        left.close()
        right.close()


def test_socket_stream_is_a_duplex_stream() -> None:
    left, right = socket.socketpair()
    try:
        assert isinstance(SocketStream(left), DuplexStream)
    finally:
        left.close()
        right.close()


def test_copy_stream_counts_bytes() -> None:
    source = io.BytesIO(b"a" * 200_000)
    sink = io.BytesIO()

    assert copy_stream(source.read, sink.write, size=4096) == 200_000
    assert sink.getvalue() == b"a" * 200_000
