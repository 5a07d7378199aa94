"""Bulk export: a dump program's output exposed as a readable stream.

mysqldump / pg_dump ──stdout+stderr──▶ os.pipe() ──▶ ExportStream.read()

:func:`open_export` returns as soon as the program starts.  A waiter thread
owns the pipe's write end and closes it after the program exits, so readers
see EOF exactly when the dump is complete.

A failed dump cannot raise through ``read()``; the waiter writes a
``ERROR: could not export: <reason>`` line into the stream instead.
:meth:`ExportStream.result` reports the same outcome out of band.
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from concurrent.futures import Future
from typing import IO, Iterator, Optional

from resourcebridge.base import BaseSession, describe_exit
from resourcebridge.commands import EXPORT
from resourcebridge.directory import Resource
from resourcebridge.exceptions import ExportFailed
from resourcebridge.spawn import ProcessSpawner
from resourcebridge.streams import CHUNK_SIZE

logger = logging.getLogger("resourcebridge.export")

ERROR_PREFIX = b"ERROR: could not export: "


class ExportStream(BaseSession):
    """Readable stream of a running dump program's combined output.

    Usage::

        with open_export(resource) as stream:
            for chunk in stream:
                out.write(chunk)
            stream.result()   # raises ExportFailed if the dump failed

    Closing the stream before EOF terminates the dump program.
    """

    _operation = EXPORT

    def __init__(self, resource: Resource, *, spawner: Optional[ProcessSpawner] = None) -> None:
        super().__init__(resource, spawner=spawner)
        self._proc: Optional[subprocess.Popen] = None
        self._reader: Optional[IO[bytes]] = None
        self._write_fd: Optional[int] = None
        self._waiter: Optional[threading.Thread] = None
        self._done: Future[int] = Future()

    # -- reading -----------------------------------------------------------

    def read(self, size: int = -1) -> bytes:
        """Read up to *size* bytes (all remaining data if negative).

        Returns ``b""`` at EOF and once the stream is closed.
        """
        if self._reader is None or self._reader.closed:
            return b""
        return self._reader.read(size)

    def readable(self) -> bool:
        return True

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self.read(CHUNK_SIZE)
            if not chunk:
                return
            yield chunk

    # -- completion --------------------------------------------------------

    def result(self, timeout: Optional[float] = None) -> int:
        """Wait for the dump program; return ``0`` or raise :class:`ExportFailed`."""
        return self._done.result(timeout)

    def done(self) -> bool:
        return self._done.done()

    # -- BaseSession hooks -------------------------------------------------

    def _spawn(self, argv: list[str]) -> None:
        read_fd, write_fd = os.pipe()
        try:
            self._proc = self._spawner.popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=write_fd,
                stderr=write_fd,
            )
        except BaseException:
            os.close(read_fd)
            os.close(write_fd)
            raise

        self._reader = open(read_fd, "rb", buffering=0)
        self._write_fd = write_fd
        self._waiter = threading.Thread(
            target=self._wait,
            name="resourcebridge-export",
            daemon=True,
        )
        self._waiter.start()

    def _teardown(self) -> None:
        if self._reader is not None:
            self._reader.close()

        proc = self._proc
        if proc is not None and proc.poll() is None:
            logger.info(
                "Terminating %s for %s before completion",
                self._command.program,
                self._resource.name,
            )
            proc.terminate()

    # -- private -----------------------------------------------------------

    def _wait(self) -> None:
        assert self._proc is not None and self._write_fd is not None
        returncode = self._proc.wait()
        reason = describe_exit(returncode)
        try:
            if returncode != 0 and not self._closed:
                try:
                    os.write(self._write_fd, ERROR_PREFIX + reason.encode() + b"\n")
                except OSError as exc:
                    logger.debug("Could not report export failure into stream: %s", exc)
        finally:
            os.close(self._write_fd)

        if returncode == 0:
            logger.debug("Export of %s completed", self._resource.name)
            self._done.set_result(0)
        else:
            logger.warning("Export of %s failed: %s", self._resource.name, reason)
            self._done.set_exception(ExportFailed(returncode, reason))


def open_export(resource: Resource, *, spawner: Optional[ProcessSpawner] = None) -> ExportStream:
    """Start the resource's dump program and return its output stream.

    Raises :class:`UnsupportedType`, :class:`ParseError` or :class:`SpawnFailure`
    synchronously.  Dump failures arrive as an ``ERROR:`` line in the stream
    and through :meth:`ExportStream.result`.
    """
    stream = ExportStream(resource, spawner=spawner)
    stream.start()
    return stream
