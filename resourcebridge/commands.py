"""Client command resolution: resource type → external program + argument template.

Templates are ``str.format`` strings over ``host``, ``port``, ``username``,
``password``, ``database`` and ``url``.  Only templates that reference one of
the parsed fields force the resource URL through the parser; ``psql`` and
``redis-cli`` receive the raw URL untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from string import Formatter
from typing import TYPE_CHECKING, Mapping

from resourcebridge.connection import parse_resource_url
from resourcebridge.exceptions import UnsupportedType

if TYPE_CHECKING:
    from resourcebridge.directory import Resource

CONSOLE = "console"
EXPORT = "export"
IMPORT = "import"

_PARSED_FIELDS = frozenset({"host", "port", "username", "password", "database"})
_MYSQL_AUTH = ("-h", "{host}", "-P", "{port}", "-u", "{username}", "-p{password}")


@dataclass(frozen=True, slots=True)
class CommandTemplate:
    """An external program and its argument template."""

    program: str
    args: tuple[str, ...]

    @property
    def fields(self) -> frozenset[str]:
        return frozenset(
            name for arg in self.args for _, name, _, _ in Formatter().parse(arg) if name
        )

    def render(self, resource: Resource) -> list[str]:
        """Return the argv for *resource*.

        Raises :class:`~resourcebridge.exceptions.ParseError` when a parsed
        field is needed and the URL is malformed.
        """
        values = {"url": resource.url}
        if self.fields & _PARSED_FIELDS:
            cn = parse_resource_url(resource.url)
            values.update(
                host=cn.host,
                port=cn.port,
                username=cn.username,
                password=cn.password,
                database=cn.database,
            )
        return [self.program, *(arg.format(**values) for arg in self.args)]


_COMMANDS: Mapping[str, Mapping[str, CommandTemplate]] = {
    CONSOLE: {
        "memcached": CommandTemplate("telnet", ("{host}", "{port}")),
        "mysql": CommandTemplate("mysql", (*_MYSQL_AUTH, "-D", "{database}")),
        "postgres": CommandTemplate("psql", ("{url}",)),
        "redis": CommandTemplate("redis-cli", ("-u", "{url}")),
    },
    EXPORT: {
        "mysql": CommandTemplate("mysqldump", (*_MYSQL_AUTH, "{database}")),
        "postgres": CommandTemplate("pg_dump", ("--no-acl", "--no-owner", "{url}")),
    },
    IMPORT: {
        "mysql": CommandTemplate("mysql", (*_MYSQL_AUTH, "-D", "{database}")),
        "postgres": CommandTemplate("psql", ("{url}",)),
    },
}


def resolve(operation: str, resource_type: str) -> CommandTemplate:
    """Look up the command for *operation* on *resource_type*."""
    try:
        return _COMMANDS[operation][resource_type]
    except KeyError:
        raise UnsupportedType(operation, resource_type) from None


def resolve_console(resource_type: str) -> CommandTemplate:
    return resolve(CONSOLE, resource_type)


def resolve_export(resource_type: str) -> CommandTemplate:
    return resolve(EXPORT, resource_type)


def resolve_import(resource_type: str) -> CommandTemplate:
    return resolve(IMPORT, resource_type)


def supported_types(operation: str) -> list[str]:
    return sorted(_COMMANDS.get(operation, {}))


def mask_argv(argv: list[str]) -> list[str]:
    """Return *argv* with ``-p<password>`` arguments and URL passwords masked, for logging."""
    masked = []
    for arg in argv:
        if arg.startswith("-p") and len(arg) > 2:
            arg = "-p****"
        elif "://" in arg and "@" in arg:
            scheme, _, rest = arg.partition("://")
            userinfo, _, hostinfo = rest.rpartition("@")
            if ":" in userinfo:
                arg = f"{scheme}://{userinfo.partition(':')[0]}:****@{hostinfo}"
        masked.append(arg)
    return masked
