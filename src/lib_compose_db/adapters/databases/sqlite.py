"""SQLite adapter driving the ``sqlite3`` shell inside the service container."""

from __future__ import annotations

from typing import Mapping

from ...domain.database import BackupOptions, ConnectionInfo, DBStatus, QueryOptions, RestoreOptions
from ...domain.project import ProjectConfig, ServiceConfig
from ...observability import log_info
from .base import BaseDatabaseAdapter

DEFAULT_DATABASE = "/app/db.sqlite3"


class SQLiteAdapter(BaseDatabaseAdapter):
    """Embedded-file adapter; the database path comes from ``SQLITE_DATABASE``.

    Dot-commands (``.tables``, ``.schema``) skip the query validator.
    """

    engine = "sqlite"

    def get_connection_info(self, service_config: ServiceConfig, env: Mapping[str, str]) -> ConnectionInfo:
        return ConnectionInfo(
            host="localhost",
            port=0,
            user="",
            database=env.get("SQLITE_DATABASE") or DEFAULT_DATABASE,
        )

    async def query(
        self,
        service: str,
        query: str,
        options: QueryOptions | None = None,
        project: ProjectConfig | None = None,
    ) -> str:
        context = await self._context(service, project)
        if not query.startswith("."):
            self.validator.validate(query)
        path = self.get_connection_info(context.service, context.env).database
        return await self._exec(context, ["sqlite3", path, query])

    async def backup(self, service: str, options: BackupOptions | None = None, project: ProjectConfig | None = None) -> str:
        options = options or BackupOptions()
        context = await self._context(service, project)
        path = self.get_connection_info(context.service, context.env).database
        output = options.output or self._default_backup_path(".db")
        await self._exec(context, ["sqlite3", path, f".backup {output}"])
        log_info("backup_created", engine=self.engine, service=service, path=output)
        return output

    async def restore(
        self,
        service: str,
        backup_path: str,
        options: RestoreOptions | None = None,
        project: ProjectConfig | None = None,
    ) -> None:
        context = await self._context(service, project)
        path = self.get_connection_info(context.service, context.env).database
        await self._exec(context, ["cp", backup_path, path])
        log_info("backup_restored", engine=self.engine, service=service, path=backup_path)

    async def status(self, service: str, project: ProjectConfig | None = None) -> DBStatus:
        context = await self._context(service, project)
        path = self.get_connection_info(context.service, context.env).database
        version = (await self._exec(context, ["sqlite3", path, "SELECT sqlite_version();"])).strip()
        tables = (
            await self._exec(context, ["sqlite3", path, "SELECT COUNT(*) FROM sqlite_master WHERE type='table';"])
        ).strip()
        return DBStatus(
            type="sqlite",
            version=version or "unknown",
            additional={"tables": int(tables) if tables.isdigit() else 0, "database_path": path},
        )
