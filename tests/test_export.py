"""Tests for the export stream."""

from __future__ import annotations

import os
import sys

import pytest

from resourcebridge import ExportFailed, ParseError, Resource, SpawnFailure, UnsupportedType, open_export

from .conftest import POSTGRES_URL

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="relies on POSIX pipes and signals")

WRITE_DATA = "import sys; sys.stdout.write('DATA')"
FAIL = "import sys; sys.stdout.write('partial\\n'); sys.stderr.write('boom\\n'); sys.exit(3)"


def _open_fds() -> int:
    return len(os.listdir("/proc/self/fd"))


def test_export_yields_program_output(fake_spawner, postgres_resource) -> None:
    with open_export(postgres_resource, spawner=fake_spawner({"pg_dump": WRITE_DATA})) as stream:
        assert stream.read() == b"DATA"
        assert stream.read() == b""
        assert stream.result(timeout=10) == 0


def test_export_returns_before_program_finishes(fake_spawner, postgres_resource) -> None:
    stream = open_export(postgres_resource, spawner=fake_spawner({"pg_dump": "import time; time.sleep(0.5); print('late')"}))
    try:
        assert not stream.done()
        assert b"".join(stream) == b"late\n"
    finally:
        stream.close()


def test_failed_export_embeds_error_line(fake_spawner, postgres_resource) -> None:
    with open_export(postgres_resource, spawner=fake_spawner({"pg_dump": FAIL})) as stream:
        data = stream.read()

    lines = data.splitlines()
    assert b"partial" in lines
    assert b"boom" in lines
    assert lines[-1] == b"ERROR: could not export: exit status 3"


def test_failed_export_result_raises(fake_spawner, postgres_resource) -> None:
    with open_export(postgres_resource, spawner=fake_spawner({"pg_dump": FAIL})) as stream:
        stream.read()
        with pytest.raises(ExportFailed) as excinfo:
            stream.result(timeout=10)

    assert excinfo.value.returncode == 3


def test_mysql_export_command(fake_spawner, mysql_resource) -> None:
    spawner = fake_spawner({"mysqldump": "pass"})

    with open_export(mysql_resource, spawner=spawner) as stream:
        stream.read()

    assert spawner.calls == [
        ["mysqldump", "-h", "db.internal", "-P", "3306", "-u", "app", "-psecret", "app"]
    ]


def test_postgres_export_command(fake_spawner, postgres_resource) -> None:
    spawner = fake_spawner({"pg_dump": "pass"})

    with open_export(postgres_resource, spawner=spawner) as stream:
        stream.read()

    assert spawner.calls == [["pg_dump", "--no-acl", "--no-owner", POSTGRES_URL]]


@pytest.mark.parametrize("kind", ["redis", "memcached", "mongodb"])
def test_unsupported_types_fail_fast(fake_spawner, kind: str) -> None:
    spawner = fake_spawner({})

    with pytest.raises(UnsupportedType, match=f"^export not available for resources of type: {kind}$"):
        open_export(Resource(name="r", type=kind, url=f"{kind}://r:1"), spawner=spawner)

    assert spawner.calls == []


def test_mysql_export_with_bad_url_fails_fast(fake_spawner) -> None:
    spawner = fake_spawner({"mysqldump": "pass"})

    with pytest.raises(ParseError):
        open_export(Resource(name="db", type="mysql", url="mysql://u:p@db:port/app"), spawner=spawner)

    assert spawner.calls == []


@pytest.mark.skipif(not os.path.isdir("/proc/self/fd"), reason="needs /proc")
def test_missing_program_raises_without_leaking(missing_spawner, postgres_resource) -> None:
    before = _open_fds()

    with pytest.raises(SpawnFailure, match="pg_dump"):
        open_export(postgres_resource, spawner=missing_spawner)

    assert _open_fds() <= before


def test_close_terminates_running_dump(fake_spawner, postgres_resource) -> None:
    stream = open_export(postgres_resource, spawner=fake_spawner({"pg_dump": "import time; time.sleep(30)"}))

    stream.close()

    with pytest.raises(ExportFailed) as excinfo:
        stream.result(timeout=10)
    assert excinfo.value.returncode is not None and excinfo.value.returncode < 0


@pytest.mark.skipif(not os.path.isdir("/proc/self/fd"), reason="needs /proc")
def test_repeated_exports_are_independent(fake_spawner, postgres_resource) -> None:
    spawner = fake_spawner({"pg_dump": WRITE_DATA})
    before = _open_fds()

    for _ in range(20):
        with open_export(postgres_resource, spawner=spawner) as stream:
            assert stream.read() == b"DATA"
            stream.result(timeout=10)

    assert _open_fds() <= before
    assert len(spawner.calls) == 20


def test_read_after_close_returns_empty(fake_spawner, postgres_resource) -> None:
    stream = open_export(postgres_resource, spawner=fake_spawner({"pg_dump": WRITE_DATA}))
    stream.close()

    assert stream.read() == b""
    assert list(stream) == []
