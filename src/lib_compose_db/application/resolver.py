"""Project resolution: discovery, layered parsing, merging, and caching.

Purpose
-------
Provide the single entry point that turns "where am I?" into a resolved
:class:`ProjectConfig`. The resolver orchestrates the descriptor locator, the
parser, and the merge policy, and owns the project cache.

Contents
--------
* :class:`ProjectResolver` – ``find_project`` plus cache management.
* :func:`cache_key` – the resolution-context key used for caching.

System Role
-----------
Adapters call :meth:`ProjectResolver.find_project` when the caller did not hand
them a project; the toolkit calls it once per operation. Any failure during a
resolution invalidates the cache entry for that context before propagating, so
a stale project never outlives a broken or deleted descriptor.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Sequence

from ..domain.errors import NotFound
from ..domain.project import ProjectConfig
from ..observability import log_debug, log_error, log_info, make_event
from .cache import ProjectCache
from .merge import merge_documents
from .ports import DescriptorLocator, DescriptorParser


def cache_key(*, explicit_path: str | None = None, cwd: str | None = None) -> str:
    """Return the cache key for a resolution context.

    Examples
    --------
    >>> cache_key(explicit_path="/srv/app/compose.yaml")
    'project:/srv/app/compose.yaml'
    >>> cache_key(cwd="/srv/app")
    'project:/srv/app'
    """

    if explicit_path:
        return f"project:{explicit_path}"
    return f"project:{cwd or os.getcwd()}"


class ProjectResolver:
    """Locate, parse, merge, and cache compose projects.

    Parameters
    ----------
    parser:
        Descriptor parser producing raw documents and project models.
    locator:
        Descriptor locator producing ordered layer paths.
    cache:
        Project cache; a private one is created when omitted.
    """

    def __init__(
        self,
        parser: DescriptorParser,
        locator: DescriptorLocator,
        cache: ProjectCache | None = None,
    ) -> None:
        self._parser = parser
        self._locator = locator
        self._cache = cache if cache is not None else ProjectCache()

    @property
    def cache(self) -> ProjectCache:
        return self._cache

    def find_project(
        self,
        *,
        cwd: str | os.PathLike[str] | None = None,
        explicit_path: str | os.PathLike[str] | None = None,
        project_name: str | None = None,
    ) -> ProjectConfig:
        """Return the project for the given resolution context.

        Why
        ----
        Callers should not care whether a project comes from one file, several
        layered files, or the cache.

        What
        ----
        1. ``project_name`` without ``explicit_path`` returns a stub project with
           no services (the topology comes from elsewhere) and bypasses the cache.
        2. Otherwise the cache is consulted under :func:`cache_key`.
        3. On a miss the explicit file (which must exist) or the discovered
           layers are parsed, merged, converted, and cached.

        Raises
        ------
        NotFound
            No descriptor could be located, or the explicit path is missing.
        MalformedDescriptor
            A layer (or the merged document) is not a valid descriptor.
        """

        if project_name and explicit_path is None:
            log_debug("project_stub", project=project_name)
            return ProjectConfig(name=project_name)

        explicit = os.fspath(explicit_path) if explicit_path is not None else None
        effective_cwd = os.fspath(cwd) if cwd is not None else os.getcwd()
        key = cache_key(explicit_path=explicit, cwd=effective_cwd)

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            if explicit is not None:
                if not Path(explicit).is_file():
                    raise NotFound(f"Compose file not found: {explicit}")
                files = [explicit]
            else:
                files = self._locator.layers(effective_cwd)
                if not files:
                    raise NotFound(_not_found_message(effective_cwd))
            project = self.load_project(files)
        except Exception as exc:
            self._cache.invalidate(key)
            log_error("project_resolution_failed", key=key, error=str(exc))
            raise

        self._cache.set(key, project)
        log_info("project_resolved", project=project.name, path=project.descriptor_path, services=len(project.services))
        return project

    def load_project(self, files: Sequence[str]) -> ProjectConfig:
        """Parse *files* independently, merge them in order, and build the project.

        The first file provides the canonical descriptor path and project
        directory.
        """

        if not files:
            raise NotFound("No compose files provided")

        documents = []
        for index, path in enumerate(files):
            layer = "base" if index == 0 else "overlay"
            documents.append(self._parser.load_raw(path))
            log_debug("layer_loaded", **make_event(layer, path))

        merged = merge_documents(documents)
        if len(files) > 1:
            log_debug("layers_merged", layer="final", path=files[0], total_layers=len(files))
        return self._parser.build_project(merged, files[0])

    def invalidate(
        self,
        *,
        cwd: str | os.PathLike[str] | None = None,
        explicit_path: str | os.PathLike[str] | None = None,
    ) -> bool:
        """Drop the cached project for a resolution context."""

        explicit = os.fspath(explicit_path) if explicit_path is not None else None
        effective_cwd = os.fspath(cwd) if cwd is not None else None
        return self._cache.invalidate(cache_key(explicit_path=explicit, cwd=effective_cwd))

    def clear_cache(self) -> None:
        self._cache.clear()


def _not_found_message(cwd: str) -> str:
    return (
        "docker-compose.yml not found. Searched "
        f"{cwd} and its parent directories. "
        "Supported filenames: docker-compose.yml, docker-compose.yaml, compose.yml, compose.yaml"
    )
