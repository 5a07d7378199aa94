"""Connection descriptor parsing for resource URLs.

A resource URL looks like ``scheme://[user[:password]@]host[:port][/database]``.
Missing credentials are not an error; whether they are needed depends on the
resource type, which is the command resolver's concern.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import unquote, urlsplit

from resourcebridge.exceptions import ParseError

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True, slots=True)
class ConnectionDescriptor:
    """Structured host/port/credentials/database derived from a resource URL."""

    host: str
    port: str
    username: str = ""
    password: str = field(default="", repr=False)
    database: str = ""


def parse_resource_url(url: str) -> ConnectionDescriptor:
    """Parse *url* into a :class:`ConnectionDescriptor`.

    Raises :class:`ParseError` when *url* is not a well-formed URL.
    """
    if _CONTROL_CHARS.search(url):
        raise ParseError("invalid control character in resource URL")
    if _BAD_ESCAPE.search(url):
        raise ParseError("invalid percent-escape in resource URL")

    # Bare "user:pass@host:port/db" has no scheme; read it as an authority.
    if "://" not in url:
        url = "//" + url

    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise ParseError(f"invalid resource URL: {exc}") from exc

    userinfo, _, hostinfo = parts.netloc.rpartition("@")
    username, _, password = userinfo.partition(":")
    host, port = _split_hostport(hostinfo)

    database = parts.path[1:] if parts.path else ""

    return ConnectionDescriptor(
        host=host,
        port=port,
        username=unquote(username),
        password=unquote(password),
        database=unquote(database),
    )


def _split_hostport(hostinfo: str) -> tuple[str, str]:
    if hostinfo.startswith("["):
        end = hostinfo.find("]")
        if end < 0:
            raise ParseError("missing ']' in resource URL host")
        host, rest = hostinfo[1:end], hostinfo[end + 1 :]
        if rest and not rest.startswith(":"):
            raise ParseError(f"invalid character after IPv6 host: {rest!r}")
        port = rest[1:]
    else:
        host, _, port = hostinfo.partition(":")

    if port and not port.isdigit():
        raise ParseError(f"invalid port {port!r} in resource URL")
    return unquote(host), port
