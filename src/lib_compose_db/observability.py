"""Logging for discovery, dispatch and container command execution.

Every entry goes through the ``lib_compose_db`` logger and carries a
``context`` mapping on the log record. One toolkit call (a query, backup,
restore or status check) shares one trace id, so a handler can group the
descriptor layers it loaded, the adapter it picked and the commands it ran.

Nothing is printed unless the host application configures a handler; the
package logger only owns a :class:`logging.NullHandler`. Passwords and other
secrets are never passed as fields.
"""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_compose_db_trace_id", default=None)
"""Trace id of the toolkit call running in the current context."""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_compose_db")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Return the ``lib_compose_db`` logger for handler and level setup."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Set the trace id for the current context; ``None`` unbinds it.

    Examples
    --------
    >>> bind_trace_id('op-1')
    >>> TRACE_ID.get()
    'op-1'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def new_trace_id() -> str:
    """Start a new toolkit call: bind a 16 character hex id and return it."""

    trace_id = uuid.uuid4().hex[:16]
    bind_trace_id(trace_id)
    return trace_id


def log_debug(message: str, **fields: Any) -> None:
    """Discovery and command details (layers found, argv lengths, cache hits)."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Completed operations such as a resolved project or a written backup."""

    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    _emit(logging.WARNING, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Failures that are about to be raised to the caller."""

    _emit(logging.ERROR, message, fields)


def make_event(
    layer: str,
    path: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Describe one descriptor layer (``base``, ``environment``, ``override``).

    Examples
    --------
    >>> make_event('override', '/srv/app/docker-compose.override.yml', {'services': 2})
    {'layer': 'override', 'path': '/srv/app/docker-compose.override.yml', 'services': 2}
    """

    event: dict[str, Any] = {"layer": layer, "path": path}
    if payload:
        event |= dict(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    if not _LOGGER.isEnabledFor(level):
        return
    context: dict[str, Any] = {"trace_id": TRACE_ID.get(), **fields}
    _LOGGER.log(level, message, extra={"context": context})
