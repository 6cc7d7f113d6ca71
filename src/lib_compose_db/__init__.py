"""Public package surface for ``lib_compose_db``.

Resolve docker compose projects from their (layered) descriptor files and run
uniform query/backup/restore/status operations against the databases inside
them. Everything exported here is stable; adapter modules are importable for
advanced wiring but not re-exported.
"""

from __future__ import annotations

from .application.registry import AdapterRegistry
from .application.resolver import ProjectResolver
from .core import DatabaseToolkit, create_registry, create_resolver, find_project, load_settings
from .domain.database import (
    BackupFormat,
    BackupOptions,
    ConnectionInfo,
    DBStatus,
    ExecOptions,
    HealthState,
    QueryFormat,
    QueryOptions,
    RestoreOptions,
)
from .domain.errors import (
    BackupTimeout,
    ComposeDbError,
    ExecutionFailed,
    InvalidEnvFile,
    InvalidSettings,
    MalformedDescriptor,
    NotFound,
    ServiceNotFound,
    UnknownAdapter,
    ValidationRejected,
)
from .domain.project import BuildSpec, ProjectConfig, ServiceConfig, ServiceType
from .domain.settings import Settings
from .observability import bind_trace_id, get_logger

__all__ = [
    "AdapterRegistry",
    "BackupFormat",
    "BackupOptions",
    "BackupTimeout",
    "BuildSpec",
    "ComposeDbError",
    "ConnectionInfo",
    "DBStatus",
    "DatabaseToolkit",
    "ExecOptions",
    "ExecutionFailed",
    "HealthState",
    "InvalidEnvFile",
    "InvalidSettings",
    "MalformedDescriptor",
    "NotFound",
    "ProjectConfig",
    "ProjectResolver",
    "QueryFormat",
    "QueryOptions",
    "RestoreOptions",
    "ServiceConfig",
    "ServiceNotFound",
    "ServiceType",
    "Settings",
    "UnknownAdapter",
    "ValidationRejected",
    "bind_trace_id",
    "create_registry",
    "create_resolver",
    "find_project",
    "get_logger",
    "load_settings",
]
