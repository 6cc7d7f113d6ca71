"""Domain value objects describing a resolved compose project.

Purpose
-------
Anchor the immutable :class:`ProjectConfig` and :class:`ServiceConfig` value
objects that travel from the resolver to the database adapters. This module
belongs to the domain layer and performs no I/O.

Contents
--------
* :class:`ServiceType` – closed enumeration of engine families.
* :func:`infer_service_type` – image-name heuristics mapping images to types.
* :class:`BuildSpec` – normalised ``build:`` section.
* :class:`ServiceConfig` – one declared service.
* :class:`ProjectConfig` – one resolved project with its services.

System Role
-----------
Instances are built once per resolution pass by the descriptor parser, cached
by the project resolver, and handed to adapters by reference. Mapping fields are
wrapped in ``MappingProxyType`` so nobody downstream can mutate them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from .errors import ServiceNotFound


class ServiceType(str, Enum):
    """Engine family of a service, inferred from its image name."""

    GENERIC = "generic"
    POSTGRESQL = "postgresql"
    REDIS = "redis"
    SQLITE = "sqlite"
    MYSQL = "mysql"
    MONGODB = "mongodb"


#: Ordered substring rules; the first matching rule wins.
_IMAGE_RULES: tuple[tuple[tuple[str, ...], ServiceType], ...] = (
    (("postgres", "pgvector", "timescale", "postgis"), ServiceType.POSTGRESQL),
    (("redis",), ServiceType.REDIS),
    (("mysql", "mariadb"), ServiceType.MYSQL),
    (("mongo",), ServiceType.MONGODB),
    (("sqlite",), ServiceType.SQLITE),
)


def infer_service_type(image: str | None) -> ServiceType:
    """Return the :class:`ServiceType` implied by *image*.

    Examples
    --------
    >>> infer_service_type("pgvector/pgvector:pg16").value
    'postgresql'
    >>> infer_service_type("redis:7-alpine").value
    'redis'
    >>> infer_service_type("unknown/foo").value
    'generic'
    >>> infer_service_type(None).value
    'generic'
    """

    lowered = (image or "").lower()
    for needles, service_type in _IMAGE_RULES:
        if any(needle in lowered for needle in needles):
            return service_type
    return ServiceType.GENERIC


@dataclass(frozen=True, slots=True)
class BuildSpec:
    """Build context of a service plus an optional alternate Dockerfile."""

    context: str
    dockerfile: str | None = None


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    """Immutable description of one declared service.

    Attributes
    ----------
    name:
        Service key from the descriptor.
    type:
        Engine family used to select a database adapter.
    ports:
        ``"published:target"`` strings in declaration order.
    environment:
        Read-only mapping of compose-declared variables.
    """

    name: str
    type: ServiceType = ServiceType.GENERIC
    image: str | None = None
    build: BuildSpec | None = None
    ports: tuple[str, ...] = ()
    environment: Mapping[str, str] = field(default_factory=dict)
    working_dir: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "ports", tuple(self.ports))
        object.__setattr__(self, "environment", MappingProxyType(dict(self.environment)))

    def as_dict(self) -> dict[str, Any]:
        """Return a mutable, JSON-friendly copy of the service."""

        payload: dict[str, Any] = {"name": self.name, "type": self.type.value}
        if self.image is not None:
            payload["image"] = self.image
        if self.build is not None:
            payload["build"] = {"context": self.build.context, "dockerfile": self.build.dockerfile}
        if self.ports:
            payload["ports"] = list(self.ports)
        if self.environment:
            payload["environment"] = dict(self.environment)
        if self.working_dir is not None:
            payload["working_dir"] = self.working_dir
        return payload


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """Immutable model of one resolved compose project.

    Why
    ----
    Resolved projects are cached and shared between concurrent callers, so the
    value object must be safe to hand out by reference.

    What
    ----
    Stores the project name, the canonical descriptor path and directory (both
    may be empty for projects that were named explicitly without a local file),
    and a read-only mapping of services.

    Examples
    --------
    >>> project = ProjectConfig("demo", "", "", {"db": ServiceConfig("db", ServiceType.POSTGRESQL)})
    >>> project.service("db").type.value
    'postgresql'
    >>> project.service("cache")
    Traceback (most recent call last):
    ...
    lib_compose_db.domain.errors.ServiceNotFound: Service 'cache' not found in project 'demo' (available: db)
    """

    name: str
    descriptor_path: str = ""
    project_dir: str = ""
    services: Mapping[str, ServiceConfig] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "services", MappingProxyType(dict(self.services)))

    def service(self, name: str) -> ServiceConfig:
        """Return the service called *name* or raise :class:`ServiceNotFound`."""

        try:
            return self.services[name]
        except KeyError:
            raise ServiceNotFound(name, self.name, self.services.keys()) from None

    def as_dict(self) -> dict[str, Any]:
        """Construct a deep mutable copy suitable for serialisation."""

        return {
            "name": self.name,
            "descriptor_path": self.descriptor_path,
            "project_dir": self.project_dir,
            "services": {name: service.as_dict() for name, service in self.services.items()},
        }

    def to_json(self, *, indent: int | None = None) -> str:
        """Serialise the project to JSON using :meth:`as_dict`."""

        return json.dumps(self.as_dict(), indent=indent, ensure_ascii=False)
