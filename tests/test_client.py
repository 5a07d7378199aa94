"""Tests for the Client facade."""

from __future__ import annotations

import io
import sys

import pytest

from resourcebridge import BridgeSettings, Client, HttpResourceDirectory, NotFound, Resource, StaticResourceDirectory

from .conftest import POSTGRES_URL

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="relies on POSIX pipes and ptys")


@pytest.fixture
def directory() -> StaticResourceDirectory:
    return StaticResourceDirectory({"web": [Resource(name="db", type="postgres", url=POSTGRES_URL)]})


def test_client_exports_by_name(directory, fake_spawner) -> None:
    client = Client(directory, spawner=fake_spawner({"pg_dump": "import sys; sys.stdout.write('DATA')"}))

    with client.open_export("web", "db") as stream:
        assert stream.read() == b"DATA"


def test_client_imports_by_name(directory, fake_spawner) -> None:
    client = Client(directory, spawner=fake_spawner({"psql": "import sys; sys.stdout.write(sys.stdin.read())"}))

    assert client.run_import("web", "db", io.BytesIO(b"select 1;")) == b"select 1;"


def test_client_console_by_name(directory, fake_spawner, scripted_stream) -> None:
    client = Client(directory, spawner=fake_spawner({"psql": "print('hello')"}))
    stream = scripted_stream()

    session = client.open_console("web", "db", stream)

    assert session.closed
    assert b"hello" in stream.output


def test_client_unknown_resource(directory) -> None:
    with pytest.raises(NotFound):
        Client(directory).open_export("web", "missing")


def test_client_lists_resources(directory) -> None:
    assert [r.name for r in Client(directory).resources("web")] == ["db"]


def test_client_from_settings_uses_http_directory() -> None:
    client = Client.from_settings(BridgeSettings(api_base_url="https://control.example", token="t", session_timeout=5))

    assert isinstance(client._directory, HttpResourceDirectory)
    assert client._session_timeout == 5
