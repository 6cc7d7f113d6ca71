"""Compose descriptor loader and normaliser.

Purpose
-------
Convert on-disk ``docker-compose.yml`` artifacts into raw mappings the merge
layer understands, and convert raw (possibly merged) documents into typed
:class:`ProjectConfig` instances. YAML parsing is delegated to
``yaml.safe_load`` so error handling and observability live in one place.

Contents
--------
* :class:`ComposeDescriptorParser` – file reading, YAML decoding, project
  construction.
* :func:`normalize_ports` / :func:`normalize_environment` /
  :func:`normalize_build` – shape normalisers for individual service keys.
* :func:`project_name_for` – explicit ``name:`` or the descriptor directory name.

System Role
-----------
Invoked by :class:`lib_compose_db.application.resolver.ProjectResolver` for each
descriptor layer before merging, and once more on the merged document.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from ...domain.errors import MalformedDescriptor, NotFound
from ...domain.project import BuildSpec, ProjectConfig, ServiceConfig, infer_service_type
from ...observability import log_debug, log_error


class ComposeDescriptorParser:
    """Parse compose descriptors into raw documents and project models."""

    def _read(self, path: str) -> bytes:
        """Read *path* as bytes, raising :class:`NotFound` when the file is missing."""

        file_path = Path(path)
        if not file_path.is_file():
            raise NotFound(f"Compose file not found: {path}")
        payload = file_path.read_bytes()
        log_debug("descriptor_read", path=path, layer="file", size=len(payload))
        return payload

    @staticmethod
    def _ensure_mapping(data: object, *, path: str) -> Mapping[str, Any]:
        """Ensure *data* behaves like a mapping, otherwise raise ``MalformedDescriptor``.

        Examples
        --------
        >>> ComposeDescriptorParser._ensure_mapping({"services": {}}, path="demo")
        {'services': {}}
        >>> ComposeDescriptorParser._ensure_mapping([1], path="demo")
        Traceback (most recent call last):
        ...
        lib_compose_db.domain.errors.MalformedDescriptor: Failed to parse demo: document is not a mapping
        """

        if not isinstance(data, Mapping):
            raise MalformedDescriptor(f"Failed to parse {path}: document is not a mapping")
        return data

    def load_raw(self, path: str) -> Mapping[str, Any]:
        """Return the raw mapping stored in the YAML file at *path*.

        An empty file yields ``{}`` so override layers may be blank.
        """

        return self.loads_raw(self._read(path), path)

    def loads_raw(self, content: str | bytes, path: str) -> Mapping[str, Any]:
        """Decode YAML *content* attributed to *path* into a raw mapping."""

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            log_error("descriptor_invalid", layer="file", path=path, error=str(exc))
            raise MalformedDescriptor(f"Failed to parse {path}: {exc}") from exc
        if data is None:
            data = {}
        result = self._ensure_mapping(data, path=path)
        log_debug("descriptor_loaded", layer="file", path=path, keys=sorted(str(key) for key in result))
        return result

    def parse(self, path: str) -> ProjectConfig:
        """Parse the single descriptor at *path* into a :class:`ProjectConfig`."""

        return self.build_project(self.load_raw(path), path)

    def parse_text(self, content: str, path: str) -> ProjectConfig:
        """Parse descriptor *content* as if it had been read from *path*.

        Used for descriptors fetched from somewhere other than the local disk.
        """

        return self.build_project(self.loads_raw(content, path), path)

    def build_project(self, document: Mapping[str, Any], descriptor_path: str) -> ProjectConfig:
        """Convert a raw document into a :class:`ProjectConfig`.

        Raises
        ------
        MalformedDescriptor
            When the document lacks a ``services`` mapping or a service entry is
            not a mapping.
        """

        services = document.get("services")
        if services is None:
            raise MalformedDescriptor(f"Failed to parse {descriptor_path}: missing services")
        if not isinstance(services, Mapping):
            raise MalformedDescriptor(f"Failed to parse {descriptor_path}: services must be a mapping")

        parsed: dict[str, ServiceConfig] = {}
        for name, config in services.items():
            parsed[str(name)] = _parse_service(str(name), config or {}, descriptor_path)

        return ProjectConfig(
            name=project_name_for(descriptor_path, document),
            descriptor_path=descriptor_path,
            project_dir=str(Path(descriptor_path).parent),
            services=parsed,
        )


def _parse_service(name: str, config: Any, descriptor_path: str) -> ServiceConfig:
    if not isinstance(config, Mapping):
        raise MalformedDescriptor(f"Failed to parse {descriptor_path}: service '{name}' must be a mapping")
    image = config.get("image")
    working_dir = config.get("working_dir") or config.get("workingDir")
    return ServiceConfig(
        name=name,
        type=infer_service_type(image),
        image=str(image) if image is not None else None,
        build=normalize_build(config.get("build")),
        ports=normalize_ports(config.get("ports")),
        environment=normalize_environment(config.get("environment")),
        working_dir=str(working_dir) if working_dir else None,
    )


def normalize_ports(ports: Any) -> tuple[str, ...]:
    """Return ports as ``"published:target"`` strings.

    Examples
    --------
    >>> normalize_ports(["5432:5432", {"published": 8000, "target": 80}, 9000])
    ('5432:5432', '8000:80', '9000')
    >>> normalize_ports(None)
    ()
    """

    if not isinstance(ports, list):
        return ()
    normalized: list[str] = []
    for port in ports:
        if isinstance(port, str):
            normalized.append(port)
        elif isinstance(port, Mapping) and port.get("published") and port.get("target"):
            normalized.append(f"{port['published']}:{port['target']}")
        else:
            normalized.append(str(port))
    return tuple(normalized)


def normalize_environment(env: Any) -> dict[str, str]:
    """Return the environment section as a flat ``str`` mapping.

    The list form splits on the first ``=``; further ``=`` characters stay in the
    value and entries without ``=`` map to an empty string.

    Examples
    --------
    >>> normalize_environment(["A=1", "B=2=x"])
    {'A': '1', 'B': '2=x'}
    >>> normalize_environment({"PORT": 5432, "EMPTY": None})
    {'PORT': '5432', 'EMPTY': ''}
    """

    if not env:
        return {}
    if isinstance(env, list):
        result: dict[str, str] = {}
        for item in env:
            key, _, value = str(item).partition("=")
            if key:
                result[key] = value
        return result
    if isinstance(env, Mapping):
        return {str(key): "" if value is None else _scalar_text(value) for key, value in env.items()}
    return {}


def normalize_build(build: Any) -> BuildSpec | None:
    """Return the ``build:`` section as a :class:`BuildSpec`.

    Examples
    --------
    >>> normalize_build("./api")
    BuildSpec(context='./api', dockerfile=None)
    >>> normalize_build({"context": ".", "dockerfile": "Dockerfile.dev"})
    BuildSpec(context='.', dockerfile='Dockerfile.dev')
    """

    if build is None:
        return None
    if isinstance(build, str):
        return BuildSpec(context=build)
    if isinstance(build, Mapping):
        dockerfile = build.get("dockerfile")
        return BuildSpec(context=str(build.get("context", ".")), dockerfile=str(dockerfile) if dockerfile else None)
    return None


def project_name_for(descriptor_path: str, document: Mapping[str, Any]) -> str:
    """Return the explicit ``name:`` of *document* or the descriptor's directory name.

    Examples
    --------
    >>> project_name_for("/srv/shop/docker-compose.yml", {})
    'shop'
    >>> project_name_for("/srv/shop/docker-compose.yml", {"name": "storefront"})
    'storefront'
    """

    name = document.get("name")
    if name:
        return str(name)
    return Path(descriptor_path).parent.name


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
