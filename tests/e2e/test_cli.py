"""End-to-end CLI coverage for the public commands exposed by lib-compose-db.

Commands run against real descriptor files in ``tmp_path``; only the command
executor is replaced, so discovery, merging, adapter dispatch and output
formatting are exercised as in production.
"""

from __future__ import annotations

import json
from pathlib import Path

import lib_cli_exit_tools
import pytest
from click.testing import CliRunner

from lib_compose_db import cli
from lib_compose_db.core import DatabaseToolkit
from lib_compose_db.domain.errors import ServiceNotFound, ValidationRejected
from lib_compose_db.domain.settings import Settings

COMPOSE = """
name: shop
services:
  db:
    image: postgres:16
    environment:
      POSTGRES_DB: app
      POSTGRES_PASSWORD: hunter2
  cache:
    image: redis:7
  web:
    image: nginx:alpine
"""


@pytest.fixture()
def project_dir(tmp_path: Path, write_compose) -> Path:
    write_compose(COMPOSE)
    return tmp_path


@pytest.fixture()
def toolkit(monkeypatch: pytest.MonkeyPatch, fake_executor) -> DatabaseToolkit:
    """Patch the CLI so every command uses a toolkit wired to the fake executor."""

    instance = DatabaseToolkit.create(Settings(snapshot_poll_interval=0.0), executor=fake_executor)
    monkeypatch.setattr(cli, "_build_toolkit", lambda: instance)
    return instance


def _runner() -> CliRunner:
    return CliRunner()


def test_cli_discover_prints_project_json(project_dir: Path, toolkit) -> None:
    result = _runner().invoke(cli.cli, ["discover", "--cwd", str(project_dir), "--indent", "2"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["name"] == "shop"
    assert payload["services"]["db"]["type"] == "postgresql"
    assert payload["services"]["web"]["type"] == "generic"


def test_cli_discover_with_project_name_only(tmp_path: Path, toolkit) -> None:
    result = _runner().invoke(cli.cli, ["discover", "--cwd", str(tmp_path), "--project-name", "remote"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"name": "remote", "descriptor_path": "", "project_dir": "", "services": {}}


def test_cli_adapters_lists_registered_types(toolkit) -> None:
    result = _runner().invoke(cli.cli, ["adapters"])

    assert result.exit_code == 0
    assert json.loads(result.output) == ["postgresql", "postgres", "redis", "sqlite", "sqlite3"]


def test_cli_query_prints_raw_output(project_dir: Path, toolkit, fake_executor) -> None:
    fake_executor.script("a,b\n1,2\n")

    result = _runner().invoke(cli.cli, ["query", "db", "SELECT 1, 2;", "--cwd", str(project_dir), "--format", "csv"])

    assert result.exit_code == 0, result.output
    assert result.output == "a,b\n1,2\n"
    assert fake_executor.commands == [["psql", "-U", "postgres", "-d", "app", "--csv", "-c", "SELECT 1, 2;"]]


def test_cli_query_rejects_destructive_sql(project_dir: Path, toolkit, fake_executor) -> None:
    result = _runner().invoke(cli.cli, ["query", "db", "DROP TABLE users;", "--cwd", str(project_dir)])

    assert isinstance(result.exception, ValidationRejected)
    assert fake_executor.commands == []


def test_cli_backup_prints_path(project_dir: Path, toolkit, fake_executor) -> None:
    result = _runner().invoke(
        cli.cli,
        ["backup", "db", "--cwd", str(project_dir), "--format", "sql", "--table", "orders", "--output", "/backups/o.sql"],
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"service": "db", "path": "/backups/o.sql"}
    assert fake_executor.commands[0] == ["pg_dump", "-U", "postgres", "-d", "app", "-t", "orders", "-f", "/backups/o.sql"]


def test_cli_restore_rejects_conflicting_flags(project_dir: Path, toolkit) -> None:
    result = _runner().invoke(
        cli.cli, ["restore", "db", "/backups/a.dump", "--cwd", str(project_dir), "--data-only", "--schema-only"]
    )

    assert result.exit_code != 0
    assert "mutually exclusive" in result.output


def test_cli_restore_redis_cycles_service(project_dir: Path, toolkit, fake_executor) -> None:
    result = _runner().invoke(cli.cli, ["restore", "cache", "/backups/c.rdb", "--cwd", str(project_dir)])

    assert result.exit_code == 0, result.output
    assert fake_executor.lifecycle == [("stop", "cache"), ("exec", "cache"), ("start", "cache")]


def test_cli_status_prints_report(project_dir: Path, toolkit, fake_executor) -> None:
    fake_executor.script("# Server\r\nredis_version:7.2.4\r\nuptime_in_seconds:120\r\nconnected_clients:1\r\n")

    result = _runner().invoke(cli.cli, ["status", "cache", "--cwd", str(project_dir)])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["version"] == "7.2.4"
    assert payload["uptime"] == "2 minutes"


def test_cli_env_masks_secrets(project_dir: Path, toolkit) -> None:
    result = _runner().invoke(cli.cli, ["env", "db", "--cwd", str(project_dir)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"POSTGRES_DB": "app", "POSTGRES_PASSWORD": "***MASKED***"}


def test_cli_unknown_service_raises(project_dir: Path, toolkit) -> None:
    result = _runner().invoke(cli.cli, ["status", "search", "--cwd", str(project_dir)])

    assert isinstance(result.exception, ServiceNotFound)


def test_main_returns_non_zero_for_library_errors(project_dir: Path, toolkit) -> None:
    assert cli.main(["status", "web", "--cwd", str(project_dir)]) != 0


def test_main_restores_traceback_flag(project_dir: Path, toolkit) -> None:
    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)

    assert cli.main(["--traceback", "discover", "--cwd", str(project_dir)], restore_traceback=True) == 0
    assert getattr(lib_cli_exit_tools.config, "traceback", False) == previous_traceback


def test_main_succeeds_for_discover(project_dir: Path, toolkit, capsys) -> None:
    assert cli.main(["discover", "--cwd", str(project_dir)]) == 0
    assert json.loads(capsys.readouterr().out)["name"] == "shop"


def test_cli_info_handles_missing_metadata(monkeypatch) -> None:
    def _raise_pkg_not_found(*_args, **_kwargs):
        raise cli.metadata.PackageNotFoundError()

    monkeypatch.setattr(cli.metadata, "metadata", _raise_pkg_not_found)
    result = _runner().invoke(cli.cli, ["info"])

    assert result.exit_code == 0
    assert "metadata unavailable" in result.output
