"""Custom exceptions for the resource bridge.

All exceptions inherit from ResourceBridgeError to allow catching any bridge error.
Secrets (passwords, tokens) are never included in exception messages.
"""

from __future__ import annotations

from typing import Optional


class ResourceBridgeError(Exception):
    """Base exception for all resource bridge errors."""


class DirectoryError(ResourceBridgeError):
    """Raised when the resource directory backend fails or answers garbage."""


class AuthError(DirectoryError):
    """Raised when the directory rejects the bearer token."""


class NotFound(DirectoryError):
    """Raised when a resource does not exist in the application namespace."""

    def __init__(self, app: str, name: str) -> None:
        super().__init__(f"no such resource: {name} (app {app})")
        self.app = app
        self.name = name


class ParseError(ResourceBridgeError):
    """Raised when a resource connection URL is not a well-formed URL."""


class UnsupportedType(ResourceBridgeError):
    """Raised when an operation is not defined for a resource type."""

    def __init__(self, operation: str, resource_type: str) -> None:
        super().__init__(f"{operation} not available for resources of type: {resource_type}")
        self.operation = operation
        self.resource_type = resource_type


class SpawnFailure(ResourceBridgeError):
    """Raised when the external client program could not be started."""


class StreamError(ResourceBridgeError):
    """Raised when writing to the caller's stream fails during a console session."""


class SessionTimeout(ResourceBridgeError):
    """Raised when a session outlives its timeout and the program is terminated."""


class SessionClosed(ResourceBridgeError):
    """Raised when a session is started after it has been closed."""


class ImportFailed(ResourceBridgeError):
    """Raised when the restore program exits non-zero.

    The message stays generic; the combined program output is kept on
    ``output`` for callers that want it.
    """

    def __init__(self, returncode: int, output: bytes = b"") -> None:
        super().__init__("import failed")
        self.returncode = returncode
        self.output = output


class ExportFailed(ResourceBridgeError):
    """Raised by :meth:`ExportStream.result` when the dump program exits non-zero."""

    def __init__(self, returncode: Optional[int], reason: str) -> None:
        super().__init__(f"could not export: {reason}")
        self.returncode = returncode
        self.reason = reason
