"""Process and pseudo-terminal creation.

Every external client program the bridge runs is started through a
:class:`ProcessSpawner`.  Subclasses override :meth:`ProcessSpawner.argv` to
substitute programs (tests swap ``mysqldump`` for a fake script).
"""

from __future__ import annotations

import logging
import subprocess
from typing import Any, Optional

import pexpect

from resourcebridge.commands import mask_argv
from resourcebridge.exceptions import SpawnFailure

logger = logging.getLogger("resourcebridge.spawn")


class ProcessSpawner:
    """Starts plain subprocesses and pty-attached programs."""

    def argv(self, argv: list[str]) -> list[str]:
        """Hook: return the argv actually executed for *argv*."""
        return argv

    def popen(self, argv: list[str], **kwargs: Any) -> subprocess.Popen:
        """Start *argv* with ``subprocess.Popen``; extra kwargs wire its stdio."""
        real = self.argv(argv)
        logger.debug("Spawning %s", mask_argv(real))
        try:
            return subprocess.Popen(real, **kwargs)
        except OSError as exc:
            raise SpawnFailure(f"could not start {argv[0]}: {exc.strerror or exc}") from exc

    def pty(self, argv: list[str], dimensions: Optional[tuple[int, int]] = None) -> pexpect.spawn:
        """Start *argv* attached to a new pseudo-terminal.

        *dimensions* is ``(rows, cols)``; ``None`` keeps the pty default.
        """
        real = self.argv(argv)
        logger.debug("Spawning %s on a pty (dimensions=%s)", mask_argv(real), dimensions)
        try:
            child = pexpect.spawn(real[0], real[1:], timeout=None, dimensions=dimensions)
        except (pexpect.ExceptionPexpect, OSError) as exc:
            raise SpawnFailure(f"could not start {argv[0]}: {exc}") from exc
        # Bytes are relayed as they arrive; no pacing between writes.
        child.delaybeforesend = None
        return child
