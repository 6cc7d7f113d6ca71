"""Runtime settings value object.

Purpose
-------
Hold the handful of tunables the resolver and adapters read (environment
identifier, SQL validation switch, backup directory, snapshot polling budget,
docker binary). Loading from the process environment happens in
:func:`lib_compose_db.core.load_settings`; this module only validates and
freezes the values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, TypeVar

from .errors import InvalidSettings

_T = TypeVar("_T")


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable runtime settings.

    Attributes
    ----------
    environment:
        Current environment identifier (``production``, ``staging`` ...). Selects
        ``docker-compose.<environment>.yml`` and ``.env.<environment>`` layers.
    validate_sql:
        When ``False`` the SQL safety validator accepts every query.
    backup_dir:
        Directory (inside the container) receiving default backup artifacts.
    snapshot_poll_attempts / snapshot_poll_interval:
        Budget for waiting on a key-value snapshot to finish.
    docker_binary:
        Executable used by the compose command executor.
    """

    environment: str | None = None
    validate_sql: bool = True
    backup_dir: str = "/backups"
    snapshot_poll_attempts: int = 30
    snapshot_poll_interval: float = 1.0
    docker_binary: str = "docker"

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> Settings:
        """Build settings from a loosely typed mapping, ignoring unknown keys.

        Examples
        --------
        >>> Settings.from_mapping({"validate_sql": False, "environment": "prod", "other": 1}).validate_sql
        False
        >>> Settings.from_mapping({}).snapshot_poll_attempts
        30
        """

        defaults = cls()
        environment = payload.get("environment", defaults.environment)
        return cls(
            environment=str(environment) if environment not in (None, "") else None,
            validate_sql=_as_bool(payload.get("validate_sql", defaults.validate_sql)),
            backup_dir=str(payload.get("backup_dir", defaults.backup_dir)).rstrip("/") or "/",
            snapshot_poll_attempts=_convert(payload, "snapshot_poll_attempts", int, defaults.snapshot_poll_attempts),
            snapshot_poll_interval=_convert(payload, "snapshot_poll_interval", float, defaults.snapshot_poll_interval),
            docker_binary=str(payload.get("docker_binary", defaults.docker_binary)),
        )


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in {"false", "0", "no", "off"}
    return bool(value)


def _convert(payload: Mapping[str, Any], key: str, kind: Callable[[Any], _T], default: _T) -> _T:
    value = payload.get(key, default)
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise InvalidSettings(f"Setting {key!r} expects {kind.__name__}, got {value!r}") from exc
