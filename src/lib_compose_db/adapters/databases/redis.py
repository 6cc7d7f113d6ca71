"""Redis adapter driving ``redis-cli``.

Backups trigger ``BGSAVE`` and wait for the snapshot to finish before copying
``/data/dump.rdb``. Restores stop the service, replace the dump file, and start
the service again; a failure part-way leaves the service as it is (there is no
rollback).
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping

from ...domain.database import BackupOptions, ConnectionInfo, DBStatus, QueryOptions, RestoreOptions
from ...domain.errors import BackupTimeout
from ...domain.project import ProjectConfig, ServiceConfig
from ...observability import log_debug, log_info
from .base import BaseDatabaseAdapter, ServiceContext

DUMP_PATH = "/data/dump.rdb"


class RedisAdapter(BaseDatabaseAdapter):
    """Key-value adapter for ``redis`` images."""

    engine = "redis"

    def get_connection_info(self, service_config: ServiceConfig, env: Mapping[str, str]) -> ConnectionInfo:
        return ConnectionInfo(
            host="localhost",
            port=6379,
            user="",
            password=env.get("REDIS_PASSWORD") or None,
            database="0",
        )

    async def query(
        self,
        service: str,
        query: str,
        options: QueryOptions | None = None,
        project: ProjectConfig | None = None,
    ) -> str:
        context = await self._context(service, project)
        return await self._cli(context, query.split())

    async def backup(self, service: str, options: BackupOptions | None = None, project: ProjectConfig | None = None) -> str:
        options = options or BackupOptions()
        context = await self._context(service, project)
        output = options.output or self._default_backup_path(".rdb")

        await self._cli(context, ["BGSAVE"])
        await self._wait_for_snapshot(context)
        await self._exec(context, ["cp", DUMP_PATH, output])
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
        location = {"descriptor_path": context.project.descriptor_path, "project_dir": context.project.project_dir}

        await self.executor.stop_service(service, context.project.name, **location)
        await self._exec(context, ["cp", backup_path, DUMP_PATH])
        await self.executor.start_service(service, context.project.name, **location)
        log_info("backup_restored", engine=self.engine, service=service, path=backup_path)

    async def status(self, service: str, project: ProjectConfig | None = None) -> DBStatus:
        context = await self._context(service, project)
        info = parse_info(await self._cli(context, ["INFO"]))
        keyspace = info.get("db0")
        keys = keyspace.get("keys", "0") if isinstance(keyspace, dict) else "0"
        return DBStatus(
            type="redis",
            version=str(info.get("redis_version", "unknown")),
            memory=info.get("used_memory_human"),
            uptime=format_uptime(_as_int(info.get("uptime_in_seconds"))),
            additional={"keys": _as_int(keys), "clients": _as_int(info.get("connected_clients"))},
        )

    async def _wait_for_snapshot(self, context: ServiceContext) -> None:
        attempts = self.settings.snapshot_poll_attempts
        for attempt in range(1, attempts + 1):
            persistence = parse_info(await self._cli(context, ["INFO", "persistence"]))
            if persistence.get("rdb_bgsave_in_progress") == "0":
                log_debug("snapshot_finished", service=context.name, attempts=attempt)
                return
            if attempt < attempts:
                await asyncio.sleep(self.settings.snapshot_poll_interval)
        raise BackupTimeout(f"Redis BGSAVE did not finish after {attempts} checks")

    async def _cli(self, context: ServiceContext, args: list[str]) -> str:
        info = self.get_connection_info(context.service, context.env)
        command = ["redis-cli"]
        if info.password:
            command.extend(["-a", info.password])
        command.extend(args)
        return await self._exec(context, command)


def parse_info(output: str) -> dict[str, Any]:
    """Parse ``INFO`` output into a mapping.

    Keys starting with ``db0`` are grouped under ``db0``; a bare ``db0`` entry
    (``keys=1,expires=0``) is expanded into that sub-mapping.

    Examples
    --------
    >>> info = parse_info("# Server\\r\\nredis_version:7.2.4\\r\\n\\r\\ndb0:keys=3,expires=0,avg_ttl=0\\r\\n")
    >>> info["redis_version"], info["db0"]["keys"]
    ('7.2.4', '3')
    """

    result: dict[str, Any] = {}
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        if key.startswith("db0"):
            bucket = result.setdefault("db0", {})
            if key == "db0":
                for pair in value.split(","):
                    sub_key, _, sub_value = pair.partition("=")
                    if sub_key:
                        bucket[sub_key] = sub_value
            else:
                bucket[key[len("db0") :].lstrip("_.")] = value
            continue
        result[key] = value
    return result


def format_uptime(seconds: int) -> str:
    """Render *seconds* as days, hours, and minutes.

    Examples
    --------
    >>> format_uptime(2 * 86400 + 3 * 3600 + 60)
    '2 days 3 hours 1 minute'
    >>> format_uptime(59)
    '0 minutes'
    """

    days, remainder = divmod(max(seconds, 0), 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes = remainder // 60
    parts = [_plural(count, unit) for count, unit in ((days, "day"), (hours, "hour"), (minutes, "minute")) if count]
    return " ".join(parts) or "0 minutes"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
