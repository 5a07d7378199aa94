"""Bulk import: feed a caller stream into the resource's restore program.

source ──stdin──▶ mysql / psql ──stdout+stderr──▶ captured output

Unbuffered files (``io.FileIO``) and sockets are handed to the program as its
stdin descriptor.  Anything else with a ``read(size)`` method, including
buffered and decompressing readers, is copied in by a feeder thread so the
program sees exactly what ``read()`` returns.
"""

from __future__ import annotations

import io
import logging
import socket
import subprocess
import threading
from typing import Any, Optional

from resourcebridge.base import BaseSession, describe_exit
from resourcebridge.commands import IMPORT
from resourcebridge.directory import Resource
from resourcebridge.exceptions import ImportFailed, SessionTimeout
from resourcebridge.spawn import ProcessSpawner
from resourcebridge.streams import copy_stream

logger = logging.getLogger("resourcebridge.importer")


def _fileno(source: Any) -> Optional[int]:
    # A wrapper's fileno() may sit under a read-ahead buffer or a codec.
    if not isinstance(source, (io.FileIO, socket.socket)):
        return None
    try:
        return source.fileno()
    except (OSError, ValueError):
        return None


class ImportSession(BaseSession):
    """One restore program reading from *source*."""

    _operation = IMPORT

    def __init__(
        self,
        resource: Resource,
        source: Any,
        *,
        spawner: Optional[ProcessSpawner] = None,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(resource, spawner=spawner)
        self._source = source
        self._timeout = timeout
        self._proc: Optional[subprocess.Popen] = None
        self._feeder: Optional[threading.Thread] = None

    # -- public ------------------------------------------------------------

    def run(self) -> bytes:
        """Run the restore program to completion and return its combined output.

        Raises :class:`ImportFailed` on a non-zero exit and
        :class:`SessionTimeout` if the session timeout expired.
        """
        self.start()
        assert self._proc is not None and self._proc.stdout is not None
        try:
            output = self._proc.stdout.read()
            returncode = self._proc.wait()
        finally:
            self.close()

        if self._timed_out:
            raise SessionTimeout(f"import session for {self._resource.name} timed out")

        logger.debug("Import output for %s: %r", self._resource.name, output)
        if returncode != 0:
            logger.warning(
                "Import into %s failed (%s): %s",
                self._resource.name,
                describe_exit(returncode),
                output.decode("utf-8", errors="replace"),
            )
            raise ImportFailed(returncode, output)
        return output

    # -- BaseSession hooks -------------------------------------------------

    def _spawn(self, argv: list[str]) -> None:
        fileno = _fileno(self._source)
        self._proc = self._spawner.popen(
            argv,
            stdin=fileno if fileno is not None else subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
        if fileno is None:
            self._feeder = threading.Thread(
                target=self._feed,
                name="resourcebridge-import-feed",
                daemon=True,
            )
            self._feeder.start()
        self._start_watchdog(self._timeout, self._proc.kill)

    def _teardown(self) -> None:
        proc = self._proc
        if proc is None:
            return
        if proc.poll() is None:
            proc.kill()
            proc.wait()
        if proc.stdout is not None:
            proc.stdout.close()
        if self._feeder is not None:
            self._feeder.join(timeout=1)

    # -- private -----------------------------------------------------------

    def _feed(self) -> None:
        assert self._proc is not None and self._proc.stdin is not None
        stdin = self._proc.stdin
        try:
            copied = copy_stream(self._source.read, stdin.write)
            logger.debug("Fed %d bytes into %s", copied, self._command.program)
        except BrokenPipeError:
            logger.debug("%s stopped reading its input", self._command.program)
        except (OSError, ValueError) as exc:
            logger.warning("Import source for %s failed: %s", self._resource.name, exc)
        finally:
            try:
                stdin.close()
            except OSError:
                pass


def run_import(
    resource: Resource,
    source: Any,
    *,
    spawner: Optional[ProcessSpawner] = None,
    timeout: Optional[float] = None,
) -> None:
    """Restore *source* into *resource*, blocking until the program exits."""
    ImportSession(resource, source, spawner=spawner, timeout=timeout).run()
