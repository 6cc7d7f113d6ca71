"""Composition root for ``lib_compose_db``.

Purpose
-------
Wire the default adapters (descriptor parser, path resolver, dotenv provider,
SQL validator, compose executor, database engines) into a ready-to-use
:class:`DatabaseToolkit`, and expose the caller-facing flow: resolve the
project, pick the adapter registered for the service's type, run the
operation.

Contents
--------
* :func:`load_settings` – reads ``LIB_COMPOSE_DB_*`` environment variables.
* :func:`create_resolver` – project resolver over the filesystem adapters.
* :func:`create_registry` – registry holding one adapter per engine family.
* :class:`DatabaseToolkit` – resolve → dispatch → execute, one trace id per call.
* :func:`find_project` – one-shot project resolution with default wiring.

System Role
-----------
The only module that knows every concrete adapter. Consumers and the CLI use
this module; tests substitute collaborators through the keyword arguments of
:meth:`DatabaseToolkit.create`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .adapters.databases.postgres import PostgresAdapter
from .adapters.databases.redis import RedisAdapter
from .adapters.databases.sqlite import SQLiteAdapter
from .adapters.dotenv.default import DotEnvEnvironmentProvider
from .adapters.env.default import DefaultEnvLoader, default_env_prefix
from .adapters.executors.compose import ComposeCommandExecutor
from .adapters.file_loaders.descriptor import ComposeDescriptorParser
from .adapters.path_resolvers.default import DescriptorPathResolver
from .adapters.validators.sql import SqlSafetyValidator
from .application.cache import ProjectCache
from .application.ports import CommandExecutor, DatabaseAdapter, EnvironmentProvider, QueryValidator
from .application.registry import AdapterRegistry
from .application.resolver import ProjectResolver
from .domain.database import BackupOptions, DBStatus, QueryOptions, RestoreOptions
from .domain.project import ProjectConfig
from .domain.settings import Settings
from .observability import log_debug, log_info, new_trace_id

SETTINGS_PREFIX = default_env_prefix("lib-compose-db")
TEXT_SETTINGS = ("environment", "backup_dir", "docker_binary")

PathLike = str | os.PathLike[str]


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``LIB_COMPOSE_DB_*`` variables.

    Examples
    --------
    >>> load_settings({"LIB_COMPOSE_DB_ENVIRONMENT": "staging", "LIB_COMPOSE_DB_VALIDATE_SQL": "false"})
    Settings(environment='staging', validate_sql=False, backup_dir='/backups', snapshot_poll_attempts=30, snapshot_poll_interval=1.0, docker_binary='docker')
    """

    payload = DefaultEnvLoader(environ=environ).load(SETTINGS_PREFIX, text_keys=TEXT_SETTINGS)
    return Settings.from_mapping(payload)


def create_resolver(settings: Settings | None = None, *, cache: ProjectCache | None = None) -> ProjectResolver:
    settings = settings or Settings()
    return ProjectResolver(
        ComposeDescriptorParser(),
        DescriptorPathResolver(environment=settings.environment),
        cache,
    )


def create_registry(
    executor: CommandExecutor,
    env_provider: EnvironmentProvider,
    resolver: ProjectResolver,
    validator: QueryValidator,
    settings: Settings | None = None,
) -> AdapterRegistry:
    """Return a registry with the built-in engines and their common aliases.

    Examples
    --------
    >>> settings = Settings()
    >>> registry = create_registry(
    ...     ComposeCommandExecutor(settings), DotEnvEnvironmentProvider(),
    ...     create_resolver(settings), SqlSafetyValidator(), settings)
    >>> registry.registered_types()
    ['postgresql', 'postgres', 'redis', 'sqlite', 'sqlite3']
    """

    settings = settings or Settings()
    collaborators = (executor, env_provider, resolver, validator, settings)
    postgres = PostgresAdapter(*collaborators)
    sqlite = SQLiteAdapter(*collaborators)

    registry = AdapterRegistry()
    registry.register("postgresql", postgres)
    registry.register("postgres", postgres)
    registry.register("redis", RedisAdapter(*collaborators))
    registry.register("sqlite", sqlite)
    registry.register("sqlite3", sqlite)
    return registry


@dataclass
class DatabaseToolkit:
    """Caller-facing facade over the resolver and the adapter registry.

    Every operation accepts the same discovery keywords as
    :meth:`ProjectResolver.find_project` (``cwd`` and ``explicit_path``) or an
    already resolved ``project``.
    """

    settings: Settings
    resolver: ProjectResolver
    registry: AdapterRegistry

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        *,
        executor: CommandExecutor | None = None,
        env_provider: EnvironmentProvider | None = None,
        validator: QueryValidator | None = None,
        resolver: ProjectResolver | None = None,
    ) -> DatabaseToolkit:
        """Wire the default adapters, replacing any collaborator passed explicitly."""

        settings = settings or load_settings()
        resolver = resolver or create_resolver(settings)
        registry = create_registry(
            executor or ComposeCommandExecutor(settings),
            env_provider or DotEnvEnvironmentProvider(environment=settings.environment),
            resolver,
            validator or SqlSafetyValidator(enabled=settings.validate_sql),
            settings,
        )
        return cls(settings=settings, resolver=resolver, registry=registry)

    def resolve_project(
        self,
        *,
        cwd: PathLike | None = None,
        explicit_path: PathLike | None = None,
        project_name: str | None = None,
    ) -> ProjectConfig:
        return self.resolver.find_project(cwd=cwd, explicit_path=explicit_path, project_name=project_name)

    def adapter_for(self, project: ProjectConfig, service: str) -> DatabaseAdapter:
        """Return the adapter registered for *service*'s inferred type.

        Raises ``ServiceNotFound`` for undeclared services and
        ``UnknownAdapter`` when no engine handles the type.
        """

        return self.registry.for_service(project.service(service))

    async def query(
        self,
        service: str,
        query: str,
        options: QueryOptions | None = None,
        *,
        project: ProjectConfig | None = None,
        cwd: PathLike | None = None,
        explicit_path: PathLike | None = None,
    ) -> str:
        project, adapter = self._prepare("query", service, project, cwd, explicit_path)
        return await adapter.query(service, query, options, project)

    async def backup(
        self,
        service: str,
        options: BackupOptions | None = None,
        *,
        project: ProjectConfig | None = None,
        cwd: PathLike | None = None,
        explicit_path: PathLike | None = None,
    ) -> str:
        project, adapter = self._prepare("backup", service, project, cwd, explicit_path)
        return await adapter.backup(service, options, project)

    async def restore(
        self,
        service: str,
        backup_path: str,
        options: RestoreOptions | None = None,
        *,
        project: ProjectConfig | None = None,
        cwd: PathLike | None = None,
        explicit_path: PathLike | None = None,
    ) -> None:
        project, adapter = self._prepare("restore", service, project, cwd, explicit_path)
        await adapter.restore(service, backup_path, options, project)

    async def status(
        self,
        service: str,
        *,
        project: ProjectConfig | None = None,
        cwd: PathLike | None = None,
        explicit_path: PathLike | None = None,
    ) -> DBStatus:
        project, adapter = self._prepare("status", service, project, cwd, explicit_path)
        return await adapter.status(service, project)

    def _prepare(
        self,
        operation: str,
        service: str,
        project: ProjectConfig | None,
        cwd: PathLike | None,
        explicit_path: PathLike | None,
    ) -> tuple[ProjectConfig, DatabaseAdapter]:
        new_trace_id()
        if project is None:
            project = self.resolve_project(cwd=cwd, explicit_path=explicit_path)
        adapter = self.adapter_for(project, service)
        log_info("operation_started", operation=operation, service=service, project=project.name)
        return project, adapter


def find_project(
    *,
    cwd: PathLike | None = None,
    explicit_path: PathLike | None = None,
    project_name: str | None = None,
    settings: Settings | None = None,
) -> ProjectConfig:
    """Resolve a project with the default filesystem adapters.

    Examples
    --------
    >>> from pathlib import Path
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> descriptor = Path(tmp.name) / "docker-compose.yml"
    >>> _ = descriptor.write_text("name: shop\\nservices:\\n  db:\\n    image: postgres:16\\n", encoding="utf-8")
    >>> project = find_project(cwd=tmp.name, settings=Settings())
    >>> project.name, project.service("db").type.value
    ('shop', 'postgresql')
    >>> tmp.cleanup()
    """

    settings = settings or load_settings()
    log_debug("find_project", cwd=None if cwd is None else os.fspath(cwd), environment=settings.environment)
    return create_resolver(settings).find_project(cwd=cwd, explicit_path=explicit_path, project_name=project_name)


__all__ = [
    "DatabaseToolkit",
    "SETTINGS_PREFIX",
    "create_registry",
    "create_resolver",
    "find_project",
    "load_settings",
]
