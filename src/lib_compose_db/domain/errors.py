"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by adapters, the resolver, the
composition root, and consuming applications. The hierarchy lives in the domain
layer so outer layers may depend on it without pulling in any I/O.

Contents
--------
* :class:`ComposeDbError` – umbrella base class for every failure raised by the
  package.
* :class:`MalformedDescriptor` – unparsable or structurally invalid compose file.
* :class:`NotFound` – no descriptor discoverable, or an explicit path is missing.
* :class:`ServiceNotFound` – named service absent from the resolved project.
* :class:`UnknownAdapter` – no adapter registered for a service type.
* :class:`ValidationRejected` – the query validator refused the query text.
* :class:`BackupTimeout` – an engine snapshot did not finish in time.
* :class:`ExecutionFailed` – the command executor reported a failure.
* :class:`InvalidEnvFile` – a ``.env`` file contains a malformed line.
* :class:`InvalidSettings` – a runtime setting has the wrong type.

System Role
-----------
Callers catch :class:`ComposeDbError` to handle all library failures uniformly;
adapters never downgrade these errors, they propagate them unchanged.
"""

from __future__ import annotations

from typing import Iterable


class ComposeDbError(Exception):
    """Base type for all exceptions emitted by ``lib_compose_db``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class MalformedDescriptor(ComposeDbError):
    """Raised when a compose descriptor cannot be parsed into a project model.

    Typical Sources
    ---------------
    YAML syntax errors, documents that are not mappings, and documents that lack
    a ``services`` section. The message always names the offending file.
    """


class NotFound(ComposeDbError):
    """Raised when no descriptor can be located or an explicit path is missing."""


class ServiceNotFound(ComposeDbError):
    """Raised when a service name is not declared in the resolved project."""

    def __init__(self, service: str, project: str, available: Iterable[str] = ()) -> None:
        names = ", ".join(sorted(available)) or "none"
        super().__init__(f"Service '{service}' not found in project '{project}' (available: {names})")
        self.service = service
        self.project = project


class UnknownAdapter(ComposeDbError):
    """Raised when the registry holds no adapter for a database type."""

    def __init__(self, service_type: str, registered: Iterable[str]) -> None:
        available = ", ".join(registered) or "none"
        super().__init__(f"No adapter found for database type: {service_type}. Available adapters: {available}")
        self.service_type = service_type


class ValidationRejected(ComposeDbError):
    """Raised by the query validator when a query looks destructive."""


class BackupTimeout(ComposeDbError):
    """Raised when an engine snapshot is still in progress after the poll budget."""


class ExecutionFailed(ComposeDbError):
    """Raised when a command could not be executed inside a service container.

    Transport failures and non-zero exit codes are not distinguished; both
    surface through this type.
    """

    def __init__(self, message: str, *, returncode: int | None = None, output: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class InvalidEnvFile(ComposeDbError):
    """Raised when a ``.env`` file contains a line that is not ``KEY=VALUE``."""


class InvalidSettings(ComposeDbError):
    """Raised when a ``LIB_COMPOSE_DB_*`` setting cannot be converted to its type."""
