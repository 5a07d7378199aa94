"""Top-level client facade.

Provides the ``Client`` class that resolves ``(app, name)`` through a resource
directory and hands the :class:`Resource` to the bridge operations.

Usage::

    from resourcebridge import Client, TerminalSize

    client = Client.from_settings()          # HTTP directory from the environment

    with client.open_export("web", "db") as stream:
        for chunk in stream:
            out.write(chunk)

    with open("dump.sql", "rb") as fh:
        client.run_import("web", "db", fh)
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from resourcebridge.config import BridgeSettings
from resourcebridge.console import ConsoleSession, TerminalSize
from resourcebridge.directory import HttpResourceDirectory, Resource, ResourceDirectory
from resourcebridge.export import ExportStream, open_export
from resourcebridge.importer import ImportSession
from resourcebridge.spawn import ProcessSpawner
from resourcebridge.streams import DuplexStream

logger = logging.getLogger("resourcebridge.client")


class Client:
    """Bridge operations addressed by application and resource name.

    Parameters
    ----------
    directory:
        Where resources are looked up.
    spawner:
        Process factory shared by every session (sessions share nothing else).
    session_timeout:
        Default timeout for console and import sessions; ``None`` waits forever.
    """

    def __init__(
        self,
        directory: ResourceDirectory,
        *,
        spawner: Optional[ProcessSpawner] = None,
        session_timeout: Optional[float] = None,
    ) -> None:
        self._directory = directory
        self._spawner = spawner or ProcessSpawner()
        self._session_timeout = session_timeout

    @classmethod
    def from_settings(cls, settings: Optional[BridgeSettings] = None, **kwargs: Any) -> "Client":
        """Build a client over an :class:`HttpResourceDirectory`."""
        settings = settings or BridgeSettings.from_env()
        directory = HttpResourceDirectory(
            settings.api_base_url,
            settings.token,
            timeout=settings.http_timeout,
        )
        kwargs.setdefault("session_timeout", settings.session_timeout)
        logger.debug("Client created for %s", settings.api_base_url)
        return cls(directory, **kwargs)

    # -- lookups -----------------------------------------------------------

    def resource(self, app: str, name: str) -> Resource:
        return self._directory.get(app, name)

    def resources(self, app: str) -> list[Resource]:
        return self._directory.list(app)

    # -- bridge operations -------------------------------------------------

    def open_console(
        self,
        app: str,
        name: str,
        stream: DuplexStream,
        size: Optional[TerminalSize] = None,
    ) -> ConsoleSession:
        """Run an interactive console; returns the finished session for inspection."""
        session = ConsoleSession(
            self.resource(app, name),
            stream,
            size,
            spawner=self._spawner,
            timeout=self._session_timeout,
        )
        session.run()
        return session

    def open_export(self, app: str, name: str) -> ExportStream:
        return open_export(self.resource(app, name), spawner=self._spawner)

    def run_import(self, app: str, name: str, source: Any) -> bytes:
        """Import *source*; returns the restore program's output."""
        return ImportSession(
            self.resource(app, name),
            source,
            spawner=self._spawner,
            timeout=self._session_timeout,
        ).run()
