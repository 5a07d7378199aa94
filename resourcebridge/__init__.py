"""Resource bridge: consoles and bulk export/import for attached databases and caches.

Every operation spawns the resource type's native client program (``psql``,
``mysql``, ``redis-cli``, ...) and wires its I/O to a caller-supplied stream.

Quick start::

    from resourcebridge import Resource, TerminalSize, open_console, open_export, run_import

    db = Resource(name="db", type="postgres", url="postgres://app:secret@db:5432/app")

    # Interactive console over any read()/write() duplex stream
    open_console(db, stream, TerminalSize(rows=40, cols=120))

    # Export
    with open_export(db) as dump:
        for chunk in dump:
            out.write(chunk)
        dump.result()   # raises ExportFailed if pg_dump failed

    # Import
    with open("dump.sql", "rb") as fh:
        run_import(db, fh)
"""

from __future__ import annotations

import logging

from resourcebridge.client import Client
from resourcebridge.commands import (
    CommandTemplate,
    resolve_console,
    resolve_export,
    resolve_import,
)
from resourcebridge.config import BridgeSettings
from resourcebridge.connection import ConnectionDescriptor, parse_resource_url
from resourcebridge.console import ConsoleSession, TerminalSize, open_console
from resourcebridge.directory import (
    HttpResourceDirectory,
    Resource,
    ResourceDirectory,
    StaticResourceDirectory,
)
from resourcebridge.exceptions import (
    AuthError,
    DirectoryError,
    ExportFailed,
    ImportFailed,
    NotFound,
    ParseError,
    ResourceBridgeError,
    SessionClosed,
    SessionTimeout,
    SpawnFailure,
    StreamError,
    UnsupportedType,
)
from resourcebridge.export import ExportStream, open_export
from resourcebridge.importer import ImportSession, run_import
from resourcebridge.spawn import ProcessSpawner
from resourcebridge.streams import DuplexStream, SocketStream

logger = logging.getLogger("resourcebridge")

__all__ = [
    # Bridge operations
    "open_console",
    "open_export",
    "run_import",
    # Sessions
    "ConsoleSession",
    "ExportStream",
    "ImportSession",
    "TerminalSize",
    # Facade / directory
    "Client",
    "BridgeSettings",
    "Resource",
    "ResourceDirectory",
    "StaticResourceDirectory",
    "HttpResourceDirectory",
    # Building blocks
    "ConnectionDescriptor",
    "parse_resource_url",
    "CommandTemplate",
    "resolve_console",
    "resolve_export",
    "resolve_import",
    "ProcessSpawner",
    "DuplexStream",
    "SocketStream",
    # Exceptions
    "ResourceBridgeError",
    "AuthError",
    "DirectoryError",
    "NotFound",
    "ParseError",
    "UnsupportedType",
    "SpawnFailure",
    "StreamError",
    "SessionTimeout",
    "SessionClosed",
    "ImportFailed",
    "ExportFailed",
]

__version__ = "0.1.0"
