"""PostgreSQL adapter driving ``psql``, ``pg_dump`` and ``pg_restore``."""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Mapping

from ...domain.database import (
    BackupFormat,
    BackupOptions,
    ConnectionInfo,
    DBStatus,
    ExecOptions,
    QueryFormat,
    QueryOptions,
    RestoreOptions,
)
from ...domain.project import ProjectConfig, ServiceConfig
from ...observability import log_info
from .base import BaseDatabaseAdapter, ServiceContext, parse_scalar_table

_DUMP_FLAGS: dict[BackupFormat, str | None] = {
    BackupFormat.CUSTOM: "-Fc",
    BackupFormat.TAR: "-Ft",
    BackupFormat.DIRECTORY: "-Fd",
    BackupFormat.SQL: None,
}

_DUMP_EXTENSIONS: dict[BackupFormat, str] = {
    BackupFormat.CUSTOM: ".dump",
    BackupFormat.TAR: ".tar",
    BackupFormat.DIRECTORY: "",
    BackupFormat.SQL: ".sql",
}

_ARCHIVE_SUFFIXES = (".dump", ".backup", ".tar")

_VERSION_PATTERN = re.compile(r"PostgreSQL\s+(\d+\.\d+)")

VERSION_QUERY = "SELECT version();"
SIZE_QUERY = "SELECT pg_size_pretty(pg_database_size(current_database())) as size;"
CONNECTIONS_QUERY = "SELECT count(*) as connections FROM pg_stat_activity WHERE datname = current_database();"
UPTIME_QUERY = "SELECT date_trunc('second', current_timestamp - pg_postmaster_start_time()) as uptime;"


class PostgresAdapter(BaseDatabaseAdapter):
    """Relational adapter for ``postgres`` images.

    The password never appears on a command line; it travels as
    ``PGPASSWORD`` in the exec environment.
    """

    engine = "postgres"

    def get_connection_info(self, service_config: ServiceConfig, env: Mapping[str, str]) -> ConnectionInfo:
        """Derive connection parameters from the ``POSTGRES_*`` variables."""

        return ConnectionInfo(
            host="localhost",
            port=5432,
            user=env.get("POSTGRES_USER") or "postgres",
            password=env.get("POSTGRES_PASSWORD") or None,
            database=env.get("POSTGRES_DB") or "postgres",
        )

    async def query(
        self,
        service: str,
        query: str,
        options: QueryOptions | None = None,
        project: ProjectConfig | None = None,
    ) -> str:
        options = options or QueryOptions()
        context = await self._context(service, project)
        if not query.startswith("\\"):
            self.validator.validate(query)
        info = self.get_connection_info(context.service, context.env)
        command = ["psql", "-U", options.user or info.user, "-d", options.database or info.database]
        if options.format is QueryFormat.JSON:
            command.append("--json")
        elif options.format is QueryFormat.CSV:
            command.append("--csv")
        command.extend(["-c", query])
        return await self._exec(context, command, _password_env(info))

    async def backup(self, service: str, options: BackupOptions | None = None, project: ProjectConfig | None = None) -> str:
        options = options or BackupOptions()
        context = await self._context(service, project)
        info = self.get_connection_info(context.service, context.env)
        output = options.output or self._default_backup_path(_DUMP_EXTENSIONS[options.format])

        command = ["pg_dump", "-U", info.user, "-d", options.database or info.database]
        flag = _DUMP_FLAGS[options.format]
        if flag:
            command.append(flag)
        for table in options.tables:
            command.extend(["-t", table])
        command.extend(["-f", output])

        await self._exec(context, command, _password_env(info))
        log_info("backup_created", engine=self.engine, service=service, path=output, format=options.format.value)
        return output

    async def restore(
        self,
        service: str,
        backup_path: str,
        options: RestoreOptions | None = None,
        project: ProjectConfig | None = None,
    ) -> None:
        options = options or RestoreOptions()
        context = await self._context(service, project)
        info = self.get_connection_info(context.service, context.env)
        database = options.database or info.database

        if is_archive_path(backup_path):
            command = ["pg_restore", "-U", info.user, "-d", database]
            if options.clean:
                command.append("--clean")
            if options.data_only:
                command.append("--data-only")
            if options.schema_only:
                command.append("--schema-only")
            command.append(backup_path)
        else:
            command = ["psql", "-U", info.user, "-d", database, "-f", backup_path]

        await self._exec(context, command, _password_env(info))
        log_info("backup_restored", engine=self.engine, service=service, path=backup_path)

    async def status(self, service: str, project: ProjectConfig | None = None) -> DBStatus:
        context = await self._context(service, project)
        info = self.get_connection_info(context.service, context.env)

        version_text = await self._scalar(context, info, VERSION_QUERY)
        size = await self._scalar(context, info, SIZE_QUERY)
        connections = await self._scalar(context, info, CONNECTIONS_QUERY)
        uptime = await self._scalar(context, info, UPTIME_QUERY)

        match = _VERSION_PATTERN.search(version_text)
        return DBStatus(
            type="postgresql",
            version=match.group(1) if match else "unknown",
            size=size,
            connections=int(connections) if connections.isdigit() else 0,
            uptime=uptime,
        )

    async def _scalar(self, context: ServiceContext, info: ConnectionInfo, sql: str) -> str:
        output = await self._exec(
            context, ["psql", "-U", info.user, "-d", info.database, "-c", sql], _password_env(info)
        )
        return parse_scalar_table(output)


def _password_env(info: ConnectionInfo) -> ExecOptions:
    if info.password:
        return ExecOptions(env={"PGPASSWORD": info.password})
    return ExecOptions()


def is_archive_path(backup_path: str) -> bool:
    """Return ``True`` when *backup_path* needs ``pg_restore`` rather than ``psql``.

    Custom and tar archives are recognised by suffix; a path without a suffix
    or with a trailing slash is a directory-format dump.

    Examples
    --------
    >>> [is_archive_path(p) for p in ("/b/a.dump", "/b/a.tar", "/b/dir", "/b/dir.d/", "/b/a.sql")]
    [True, True, True, True, False]
    """

    if backup_path.endswith("/"):
        return True
    suffix = PurePosixPath(backup_path).suffix
    return suffix == "" or suffix in _ARCHIVE_SUFFIXES
