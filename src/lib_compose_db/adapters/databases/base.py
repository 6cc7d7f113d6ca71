"""Shared plumbing for database adapters.

Purpose
-------
Every adapter resolves the project, looks up the service, snapshots the
service environment, and then runs engine commands through the executor. This
module holds those steps once so the engine modules only describe commands and
parse output.

Contents
--------
* :class:`ServiceContext` – the resolved project, service, and environment.
* :class:`BaseDatabaseAdapter` – abstract base with the shared steps.
* :func:`parse_scalar_table` – extracts the single value of a tabular result.
* :func:`timestamp_ms` – epoch milliseconds used in default backup names.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping, Sequence

from ...application.ports import CommandExecutor, EnvironmentProvider, QueryValidator
from ...application.resolver import ProjectResolver
from ...domain.database import (
    BackupOptions,
    ConnectionInfo,
    DBStatus,
    ExecOptions,
    QueryOptions,
    RestoreOptions,
)
from ...domain.project import ProjectConfig, ServiceConfig
from ...domain.settings import Settings
from ...observability import log_debug


@dataclass(frozen=True, slots=True)
class ServiceContext:
    """Everything an engine command needs about its target service."""

    project: ProjectConfig
    service: ServiceConfig
    env: Mapping[str, str]

    @property
    def name(self) -> str:
        return self.service.name


class BaseDatabaseAdapter(ABC):
    """Common implementation of the :class:`DatabaseAdapter` protocol.

    Parameters
    ----------
    executor:
        Runs command vectors inside the service container.
    env_provider:
        Fallback environment source when the container cannot be inspected.
    resolver:
        Resolves the project when the caller does not supply one.
    validator:
        Query guard; engines decide which queries it sees.
    settings:
        Backup directory and polling budget.
    """

    #: Engine label used for logging and default backup file names.
    engine: str = "generic"

    def __init__(
        self,
        executor: CommandExecutor,
        env_provider: EnvironmentProvider,
        resolver: ProjectResolver,
        validator: QueryValidator,
        settings: Settings | None = None,
    ) -> None:
        self.executor = executor
        self.env_provider = env_provider
        self.resolver = resolver
        self.validator = validator
        self.settings = settings or Settings()

    @abstractmethod
    async def query(
        self,
        service: str,
        query: str,
        options: QueryOptions | None = None,
        project: ProjectConfig | None = None,
    ) -> str: ...

    @abstractmethod
    async def backup(self, service: str, options: BackupOptions | None = None, project: ProjectConfig | None = None) -> str: ...

    @abstractmethod
    async def restore(
        self,
        service: str,
        backup_path: str,
        options: RestoreOptions | None = None,
        project: ProjectConfig | None = None,
    ) -> None: ...

    @abstractmethod
    async def status(self, service: str, project: ProjectConfig | None = None) -> DBStatus: ...

    @abstractmethod
    def get_connection_info(self, service_config: ServiceConfig, env: Mapping[str, str]) -> ConnectionInfo: ...

    async def _context(self, service: str, project: ProjectConfig | None) -> ServiceContext:
        """Resolve *service* and snapshot its environment.

        Raises ``ServiceNotFound`` before any command runs when the service is
        not declared.
        """

        resolved = project if project is not None else self.resolver.find_project()
        service_config = resolved.service(service)
        env = await self.executor.get_service_environment(
            service,
            resolved.name,
            descriptor_path=resolved.descriptor_path,
            project_dir=resolved.project_dir,
        )
        source = "container"
        if env is None:
            env = self.env_provider.load_env(resolved.project_dir, service, service_config)
            source = "files"
        log_debug("service_env_snapshot", engine=self.engine, service=service, source=source)
        return ServiceContext(project=resolved, service=service_config, env=dict(env))

    async def _exec(self, context: ServiceContext, command: Sequence[str], options: ExecOptions | None = None) -> str:
        return await self.executor.execute(
            context.name,
            context.project.name,
            list(command),
            options,
            descriptor_path=context.project.descriptor_path,
            project_dir=context.project.project_dir,
        )

    def _default_backup_path(self, extension: str) -> str:
        """Return ``<backup_dir>/<engine>-backup-<epoch ms><extension>``."""

        return f"{self.settings.backup_dir.rstrip('/')}/{self.engine}-backup-{timestamp_ms()}{extension}"


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def parse_scalar_table(output: str) -> str:
    """Return the single value of a header/separator/value table.

    Why
    ----
    Status queries print one value framed by a header and a separator row; the
    value sits on the third non-blank line. Two-line output carries the value
    on the second line unless that line is itself a separator.

    Examples
    --------
    >>> parse_scalar_table(" size \\n------\\n 8 MB\\n(1 row)\\n")
    '8 MB'
    >>> parse_scalar_table("count\\n42\\n")
    '42'
    >>> parse_scalar_table("header\\n----+----\\n")
    ''
    >>> parse_scalar_table("")
    ''
    """

    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if len(lines) >= 3:
        candidate = lines[2]
    elif len(lines) == 2:
        candidate = lines[1]
    else:
        return ""
    if set(candidate) <= {"-", "+", " "}:
        return ""
    return candidate
