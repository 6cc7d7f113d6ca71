from __future__ import annotations

import pytest

from lib_compose_db.adapters.databases.sqlite import SQLiteAdapter
from lib_compose_db.core import create_resolver
from lib_compose_db.domain.database import BackupOptions
from lib_compose_db.domain.project import ServiceConfig

pytestmark = pytest.mark.anyio

APP = ServiceConfig("app", image="python:3.12", environment={"SQLITE_DATABASE": "/data/app.db"})
DEFAULT_APP = ServiceConfig("app", image="keinos/sqlite3")


@pytest.fixture()
def adapter(fake_executor, env_provider, validator, fast_settings) -> SQLiteAdapter:
    return SQLiteAdapter(fake_executor, env_provider, create_resolver(fast_settings), validator, fast_settings)


async def test_query_uses_database_path(adapter, fake_executor, validator, project_factory) -> None:
    fake_executor.script("1|alice\n")

    output = await adapter.query("app", "SELECT * FROM users;", project=project_factory(APP))

    assert output == "1|alice\n"
    assert fake_executor.commands == [["sqlite3", "/data/app.db", "SELECT * FROM users;"]]
    assert validator.seen == ["SELECT * FROM users;"]


async def test_dot_commands_bypass_validation(adapter, fake_executor, validator, project_factory) -> None:
    await adapter.query("app", ".tables", project=project_factory(DEFAULT_APP))

    assert validator.seen == []
    assert fake_executor.commands == [["sqlite3", "/app/db.sqlite3", ".tables"]]


async def test_backup_uses_dot_backup(adapter, fake_executor, project_factory) -> None:
    path = await adapter.backup("app", BackupOptions(output="/backups/app.db"), project_factory(APP))

    assert path == "/backups/app.db"
    assert fake_executor.commands == [["sqlite3", "/data/app.db", ".backup /backups/app.db"]]


async def test_backup_default_output(adapter, project_factory) -> None:
    path = await adapter.backup("app", project=project_factory(APP))

    assert path.startswith("/backups/sqlite-backup-") and path.endswith(".db")


async def test_restore_copies_file_over_database(adapter, fake_executor, project_factory) -> None:
    await adapter.restore("app", "/backups/app.db", project=project_factory(APP))

    assert fake_executor.commands == [["cp", "/backups/app.db", "/data/app.db"]]


async def test_status_reports_version_and_table_count(adapter, fake_executor, project_factory) -> None:
    fake_executor.script("3.45.1\n", "4\n")

    status = await adapter.status("app", project_factory(APP))

    assert status.as_dict() == {
        "type": "sqlite",
        "version": "3.45.1",
        "status": "healthy",
        "additional": {"tables": 4, "database_path": "/data/app.db"},
    }
