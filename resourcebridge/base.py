"""Abstract base session that every bridge operation inherits from.

``BaseSession`` encapsulates the lifecycle shared by console, export and import:

    __init__() → resolve command (fails fast on unsupported types)
    start()    → render argv (parses the URL if needed) → spawn program
    close()    → cancel watchdog → tear down process, pty and pipes

Subclasses implement two hooks:
    ``_spawn``    : start the program and wire its I/O
    ``_teardown`` : release everything ``_spawn`` acquired

Sessions are single-use and hold no state beyond their own process.
"""

from __future__ import annotations

import logging
import signal
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from resourcebridge.commands import resolve
from resourcebridge.directory import Resource
from resourcebridge.exceptions import SessionClosed
from resourcebridge.spawn import ProcessSpawner

logger = logging.getLogger("resourcebridge.base")


def describe_exit(returncode: Optional[int]) -> str:
    """Human-readable reason for a process exit status."""
    if returncode is None:
        return "still running"
    if returncode < 0:
        try:
            return f"signal: {signal.Signals(-returncode).name}"
        except ValueError:
            return f"signal: {-returncode}"
    return f"exit status {returncode}"


class BaseSession(ABC):
    """Abstract base for one spawned client program and its I/O.

    Parameters
    ----------
    resource:
        The resource to bridge to; only read, never mutated.
    spawner:
        Process factory.  Defaults to a plain :class:`ProcessSpawner`.
    """

    # Subclasses set this to the command table key ("console", "export", "import").
    _operation: str = "unknown"

    def __init__(self, resource: Resource, *, spawner: Optional[ProcessSpawner] = None) -> None:
        self._resource = resource
        self._spawner = spawner or ProcessSpawner()
        self._command = resolve(self._operation, resource.type)

        self._watchdog: Optional[threading.Timer] = None
        self._timed_out = False
        self._started = False
        self._closed = False
        self._lock = threading.Lock()

    # -- abstract hooks (subclass contract) --------------------------------

    @abstractmethod
    def _spawn(self, argv: list[str]) -> None:
        """Start the program for *argv* and wire up its I/O."""

    @abstractmethod
    def _teardown(self) -> None:
        """Release the process and every descriptor acquired by :meth:`_spawn`."""

    # -- properties --------------------------------------------------------

    @property
    def resource(self) -> Resource:
        return self._resource

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def timed_out(self) -> bool:
        return self._timed_out

    # -- public API --------------------------------------------------------

    def start(self) -> None:
        """Spawn the client program.  Idempotent while the session is open."""
        with self._lock:
            if self._closed:
                raise SessionClosed(f"{self._operation} session has already been closed")
            if self._started:
                return
            if not self._resource.running:
                logger.warning(
                    "Resource %s is %s; %s may fail to connect",
                    self._resource.name,
                    self._resource.status,
                    self._command.program,
                )
            argv = self._command.render(self._resource)
            self._spawn(argv)
            self._started = True

        logger.info(
            "%s session for %s started (%s)",
            self._operation,
            self._resource.name,
            self._command.program,
        )

    def close(self) -> None:
        """Tear down the program and its descriptors.  Safe to call repeatedly."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        if self._watchdog is not None:
            self._watchdog.cancel()

        if self._started:
            self._teardown()

        logger.info("%s session for %s closed", self._operation, self._resource.name)

    # -- context manager ---------------------------------------------------

    def __enter__(self) -> Any:
        self.start()
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.close()

    # -- private -----------------------------------------------------------

    def _start_watchdog(self, timeout: Optional[float], terminate: Callable[[], Any]) -> None:
        """Call *terminate* once *timeout* seconds pass, unless closed first."""
        if timeout is None:
            return

        def _expire() -> None:
            if self._closed:
                return
            self._timed_out = True
            logger.warning(
                "%s session for %s timed out after %ss",
                self._operation,
                self._resource.name,
                timeout,
            )
            try:
                terminate()
            except Exception:
                logger.warning("Could not terminate %s", self._command.program, exc_info=True)

        self._watchdog = threading.Timer(timeout, _expire)
        self._watchdog.name = f"resourcebridge-{self._operation}-watchdog"
        self._watchdog.daemon = True
        self._watchdog.start()
