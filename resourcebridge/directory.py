"""Resource directory: resolves ``(app, name)`` to a :class:`Resource`.

StaticResourceDirectory: in-memory mapping, for tests and local wiring.
HttpResourceDirectory:   looks resources up via the control-plane API.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional
from urllib.parse import quote

import httpx

from resourcebridge.exceptions import AuthError, DirectoryError, NotFound

logger = logging.getLogger("resourcebridge.directory")

# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------

STATUS_PENDING = "pending"
STATUS_RUNNING = "running"

_RESOURCES_PATH = "/apps/{app}/resources"


@dataclass(frozen=True, slots=True)
class Resource:
    """A managed backing store attached to an application.

    ``url`` carries credentials, so it is kept out of ``repr``.
    """

    name: str
    type: str
    url: str
    status: str = STATUS_RUNNING

    def __repr__(self) -> str:
        return f"Resource(name={self.name!r}, type={self.type!r}, status={self.status!r})"

    @property
    def running(self) -> bool:
        return self.status == STATUS_RUNNING


class ResourceDirectory(ABC):
    """Read-only lookup of resources within an application namespace."""

    @abstractmethod
    def get(self, app: str, name: str) -> Resource:
        """Return the resource, or raise :class:`NotFound`."""

    @abstractmethod
    def list(self, app: str) -> list[Resource]:
        """Return every resource attached to *app*."""


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class StaticResourceDirectory(ResourceDirectory):
    """Directory over a fixed ``{app: [Resource, ...]}`` mapping."""

    def __init__(self, resources: Optional[Mapping[str, Iterable[Resource]]] = None) -> None:
        self._apps: dict[str, dict[str, Resource]] = {}
        for app, items in (resources or {}).items():
            for resource in items:
                self.add(app, resource)

    def add(self, app: str, resource: Resource) -> None:
        self._apps.setdefault(app, {})[resource.name] = resource

    def get(self, app: str, name: str) -> Resource:
        try:
            return self._apps[app][name]
        except KeyError:
            raise NotFound(app, name) from None

    def list(self, app: str) -> list[Resource]:
        return sorted(self._apps.get(app, {}).values(), key=lambda r: r.name)


# ---------------------------------------------------------------------------
# Control-plane
# ---------------------------------------------------------------------------


class HttpResourceDirectory(ResourceDirectory):
    """Resolves resources through the control-plane HTTP API.

    Every lookup is a fresh request; nothing is cached between calls.

    Parameters
    ----------
    api_base_url:
        Root URL of the control-plane API.
    token:
        Bearer token sent with every request.
    timeout:
        Per-request timeout in seconds.
    transport:
        Optional ``httpx`` transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_base_url: str,
        token: str = "",
        *,
        timeout: float = 10,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._api_base_url = api_base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport

    # -- public ------------------------------------------------------------

    def get(self, app: str, name: str) -> Resource:
        path = f"{_RESOURCES_PATH.format(app=quote(app, safe=''))}/{quote(name, safe='')}"
        resp = self._request(path)
        if resp.status_code == 404:
            raise NotFound(app, name)
        return _resource_from_json(self._json(resp))

    def list(self, app: str) -> list[Resource]:
        resp = self._request(_RESOURCES_PATH.format(app=quote(app, safe="")))
        if resp.status_code == 404:
            return []
        data = self._json(resp)
        if not isinstance(data, list):
            raise DirectoryError("Malformed directory response: expected a list")
        return [_resource_from_json(item) for item in data]

    # -- private -----------------------------------------------------------

    def _request(self, path: str) -> httpx.Response:
        url = f"{self._api_base_url}{path}"
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}

        logger.debug("Directory lookup via %s", url)

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                resp = client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise DirectoryError(f"Failed to reach resource directory: {exc}") from exc

        if resp.status_code == 401:
            raise AuthError("Token rejected by resource directory")
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        if resp.status_code != 200:
            raise DirectoryError(
                f"Resource directory returned HTTP {resp.status_code}: {resp.text}"
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise DirectoryError(f"Malformed directory response: {exc}") from exc


def _resource_from_json(data: Any) -> Resource:
    try:
        status = data.get("status")
        if not status:
            status = STATUS_RUNNING if int(data.get("ready_replicas", 0)) >= 1 else STATUS_PENDING
        return Resource(
            name=data["name"],
            type=data["type"],
            url=data.get("url", ""),
            status=status,
        )
    except (AttributeError, KeyError, ValueError, TypeError) as exc:
        raise DirectoryError(f"Malformed directory response: {exc}") from exc
