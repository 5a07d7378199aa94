"""Interactive console: a resource's native client on a pty, bridged to a caller stream.

Caller stream ──(inbound thread)──▶ pty ──▶ client program
Caller stream ◀──(calling thread)── pty ◀── client program

The outbound direction runs on the caller's thread and ends when the program
exits and the pty reaches EOF.  The inbound direction runs on a daemon thread
and never reports back: its failures are recorded on
:attr:`ConsoleSession.inbound_error` and logged, nothing more.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

import pexpect

from resourcebridge.base import BaseSession, describe_exit
from resourcebridge.commands import CONSOLE
from resourcebridge.directory import Resource
from resourcebridge.exceptions import SessionTimeout, StreamError
from resourcebridge.spawn import ProcessSpawner
from resourcebridge.streams import CHUNK_SIZE, DuplexStream, copy_stream

logger = logging.getLogger("resourcebridge.console")

_UINT16_MAX = 0xFFFF


@dataclass(frozen=True, slots=True)
class TerminalSize:
    """Requested pty size.  Applied only when both dimensions are given."""

    rows: Optional[int] = None
    cols: Optional[int] = None

    def __post_init__(self) -> None:
        for label, value in (("rows", self.rows), ("cols", self.cols)):
            if value is not None and not 0 <= value <= _UINT16_MAX:
                raise ValueError(f"terminal {label} out of range: {value}")

    @property
    def dimensions(self) -> Optional[tuple[int, int]]:
        if self.rows is None or self.cols is None:
            return None
        return (self.rows, self.cols)


class ConsoleSession(BaseSession):
    """One interactive client program bridged to *stream*.

    Usage::

        session = ConsoleSession(resource, stream, TerminalSize(rows=40, cols=120))
        session.run()   # blocks until the client program exits
    """

    _operation = CONSOLE

    def __init__(
        self,
        resource: Resource,
        stream: DuplexStream,
        size: Optional[TerminalSize] = None,
        *,
        spawner: Optional[ProcessSpawner] = None,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(resource, spawner=spawner)
        self._stream = stream
        self._size = size or TerminalSize()
        self._timeout = timeout
        self._child: Optional[pexpect.spawn] = None
        self._inbound: Optional[threading.Thread] = None
        self.inbound_error: Optional[BaseException] = None

    # -- public ------------------------------------------------------------

    def run(self) -> None:
        """Bridge until the client program exits, then tear down.

        Raises :class:`StreamError` if the caller's stream rejects output and
        :class:`SessionTimeout` if the session timeout expired.
        """
        self.start()
        try:
            self._pump_outbound()
        finally:
            self.close()

        if self._timed_out:
            raise SessionTimeout(f"console session for {self._resource.name} timed out")

    # -- BaseSession hooks -------------------------------------------------

    def _spawn(self, argv: list[str]) -> None:
        self._child = self._spawner.pty(argv, self._size.dimensions)
        self._inbound = threading.Thread(
            target=self._pump_inbound,
            name="resourcebridge-console-in",
            daemon=True,
        )
        self._inbound.start()
        self._start_watchdog(self._timeout, self._terminate)

    def _teardown(self) -> None:
        child = self._child
        if child is None:
            return
        try:
            child.close(force=True)
        except pexpect.ExceptionPexpect:
            logger.warning(
                "Could not terminate console client for %s",
                self._resource.name,
                exc_info=True,
            )
            return
        logger.debug(
            "Console client for %s exited (%s)",
            self._resource.name,
            describe_exit(child.exitstatus if child.signalstatus is None else -child.signalstatus),
        )

    # -- private -----------------------------------------------------------

    def _pump_outbound(self) -> None:
        assert self._child is not None
        child = self._child
        while True:
            try:
                data = child.read_nonblocking(CHUNK_SIZE, timeout=None)
            except pexpect.EOF:
                return
            try:
                self._stream.write(data)
            except (OSError, ValueError) as exc:
                raise StreamError(f"console stream write failed: {exc}") from exc

    def _pump_inbound(self) -> None:
        assert self._child is not None
        child = self._child
        try:
            copied = copy_stream(self._stream.read, lambda data: _send_all(child, data))
            # Caller finished writing: the client sees end of input.
            child.sendeof()
        except (OSError, ValueError, pexpect.ExceptionPexpect) as exc:
            self.inbound_error = exc
            if not self._closed:
                logger.warning("Console input for %s stopped: %s", self._resource.name, exc)
            return
        logger.debug("Console input for %s reached EOF after %d bytes", self._resource.name, copied)

    def _terminate(self) -> None:
        if self._child is not None:
            self._child.terminate(force=True)


def _send_all(child: pexpect.spawn, data: bytes) -> None:
    # A pty accepts partial writes once its input buffer fills.
    while data:
        data = data[child.send(data) :]


def open_console(
    resource: Resource,
    stream: DuplexStream,
    size: Optional[TerminalSize] = None,
    *,
    spawner: Optional[ProcessSpawner] = None,
    timeout: Optional[float] = None,
) -> None:
    """Run the resource's console client on a pty bridged to *stream*.

    Blocks until the client exits.  Input copy failures are not raised; use
    :class:`ConsoleSession` directly to inspect ``inbound_error``.
    """
    ConsoleSession(resource, stream, size, spawner=spawner, timeout=timeout).run()
