"""Application-layer ports describing collaborator responsibilities.

Purpose
-------
Define the structural contracts the resolver and the database adapters depend
on, so concrete transports, environment sources, and validators can be swapped
(for example by fakes in tests) without touching the core.

Contents
--------
* :class:`DescriptorLocator` – finds the ordered descriptor layers of a directory.
* :class:`DescriptorParser` – turns compose files into raw documents / projects.
* :class:`CommandExecutor` – runs command vectors inside service containers.
* :class:`EnvironmentProvider` – loads a service environment from files.
* :class:`QueryValidator` – rejects unsafe query text.
* :class:`DatabaseAdapter` – uniform operations over one engine family.

System Role
-----------
These protocols enforce Dependency Inversion. Each adapter module implements
one protocol and the composition root (:mod:`lib_compose_db.core`) wires them.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from ..domain.database import BackupOptions, ConnectionInfo, DBStatus, ExecOptions, QueryOptions, RestoreOptions
from ..domain.project import ProjectConfig, ServiceConfig


@runtime_checkable
class DescriptorLocator(Protocol):
    """Discover descriptor layers.

    Why
    ----
    Encapsulate filesystem search rules while keeping the resolver agnostic of
    naming conventions.
    """

    def layers(self, start_dir: str) -> list[str]:
        """Return layer paths ordered from lowest to highest precedence."""


@runtime_checkable
class DescriptorParser(Protocol):
    """Parse compose descriptors.

    Why
    ----
    The resolver needs raw documents for merging and a way to turn the merged
    document into a :class:`ProjectConfig`.
    """

    def load_raw(self, path: str) -> Mapping[str, Any]:
        """Read *path* and return the raw mapping or raise ``MalformedDescriptor``."""

    def build_project(self, document: Mapping[str, Any], descriptor_path: str) -> ProjectConfig:
        """Convert a raw (possibly merged) document into a project model."""


@runtime_checkable
class CommandExecutor(Protocol):
    """Run commands inside the container backing a service.

    Why
    ----
    Adapters only know which command vector to run; local docker, remote hosts,
    or test doubles decide how.
    """

    async def execute(
        self,
        service: str,
        project_name: str,
        command: Sequence[str],
        options: ExecOptions | None = None,
        *,
        descriptor_path: str = "",
        project_dir: str = "",
    ) -> str:
        """Run *command* and return its textual output or raise ``ExecutionFailed``."""

    async def stop_service(self, service: str, project_name: str, *, descriptor_path: str = "", project_dir: str = "") -> None:
        """Stop the container backing *service*."""

    async def start_service(self, service: str, project_name: str, *, descriptor_path: str = "", project_dir: str = "") -> None:
        """Start the container backing *service*."""

    async def get_service_environment(
        self, service: str, project_name: str, *, descriptor_path: str = "", project_dir: str = ""
    ) -> dict[str, str] | None:
        """Return the live container environment, or ``None`` when unavailable."""


@runtime_checkable
class EnvironmentProvider(Protocol):
    """Load the environment of a service from project files.

    Why
    ----
    Used as the fallback when the live container environment is unavailable.
    """

    def load_env(self, project_dir: str, service_name: str, service_config: ServiceConfig | None = None) -> dict[str, str]:
        """Return the merged environment for *service_name*."""


@runtime_checkable
class QueryValidator(Protocol):
    """Guard against destructive query text."""

    def validate(self, query: str) -> None:
        """Raise ``ValidationRejected`` when *query* is judged unsafe."""


@runtime_checkable
class DatabaseAdapter(Protocol):
    """Uniform database operations over one engine family.

    Every operation resolves *service* against *project* (or a freshly resolved
    project when omitted) and fails with ``ServiceNotFound`` when absent.
    """

    async def query(
        self,
        service: str,
        query: str,
        options: QueryOptions | None = None,
        project: ProjectConfig | None = None,
    ) -> str:
        """Run *query* and return the raw engine output."""

    async def backup(self, service: str, options: BackupOptions | None = None, project: ProjectConfig | None = None) -> str:
        """Create a backup and return the artifact path."""

    async def restore(
        self,
        service: str,
        backup_path: str,
        options: RestoreOptions | None = None,
        project: ProjectConfig | None = None,
    ) -> None:
        """Restore *backup_path* into the service."""

    async def status(self, service: str, project: ProjectConfig | None = None) -> DBStatus:
        """Return a structured status report."""

    def get_connection_info(self, service_config: ServiceConfig, env: Mapping[str, str]) -> ConnectionInfo:
        """Derive connection parameters from *env*."""
