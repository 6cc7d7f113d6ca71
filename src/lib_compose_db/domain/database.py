"""Value objects exchanged with database adapters.

Purpose
-------
Describe the parameter bags and result shapes of the adapter contract without
tying them to any engine. Everything here is pure data.

Contents
--------
* :class:`QueryFormat` / :class:`BackupFormat` / :class:`HealthState` – enums.
* :class:`ConnectionInfo` – engine connection parameters derived from env.
* :class:`QueryOptions` / :class:`BackupOptions` / :class:`RestoreOptions` –
  operation parameters.
* :class:`DBStatus` – structured status report.
* :class:`ExecOptions` – per-command options handed to the command executor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class QueryFormat(str, Enum):
    TABLE = "table"
    JSON = "json"
    CSV = "csv"


class BackupFormat(str, Enum):
    SQL = "sql"
    CUSTOM = "custom"
    TAR = "tar"
    DIRECTORY = "directory"


class HealthState(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass(frozen=True, slots=True)
class ConnectionInfo:
    """Connection parameters for one engine, derived from a service environment."""

    host: str
    port: int
    user: str
    database: str
    password: str | None = None


@dataclass(frozen=True, slots=True)
class QueryOptions:
    database: str | None = None
    user: str | None = None
    format: QueryFormat = QueryFormat.TABLE


@dataclass(frozen=True, slots=True)
class BackupOptions:
    """Backup parameters; ``tables`` restricts the dump to a subset of tables."""

    output: str | None = None
    format: BackupFormat = BackupFormat.CUSTOM
    tables: tuple[str, ...] = ()
    database: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tables", tuple(self.tables))


@dataclass(frozen=True, slots=True)
class RestoreOptions:
    database: str | None = None
    clean: bool = False
    data_only: bool = False
    schema_only: bool = False


@dataclass(frozen=True, slots=True)
class DBStatus:
    """Status report returned by :meth:`DatabaseAdapter.status`.

    Examples
    --------
    >>> DBStatus(type="redis", version="7.2.4", memory="1.02M").as_dict()
    {'type': 'redis', 'version': '7.2.4', 'status': 'healthy', 'memory': '1.02M'}
    """

    type: str
    version: str
    status: HealthState = HealthState.HEALTHY
    size: str | None = None
    connections: int | None = None
    uptime: str | None = None
    memory: str | None = None
    additional: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "additional", MappingProxyType(dict(self.additional)))

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly dictionary omitting unset optional fields."""

        payload: dict[str, Any] = {"type": self.type, "version": self.version, "status": self.status.value}
        for name in ("size", "connections", "uptime", "memory"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        if self.additional:
            payload["additional"] = dict(self.additional)
        return payload


@dataclass(frozen=True, slots=True)
class ExecOptions:
    """Options for a single command run inside a service container."""

    env: Mapping[str, str] = field(default_factory=dict)
    user: str | None = None
    workdir: str | None = None
