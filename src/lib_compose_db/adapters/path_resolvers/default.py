"""Filesystem discovery of compose descriptor layers.

Purpose
-------
Implement the :class:`lib_compose_db.application.ports.DescriptorLocator`
protocol by encapsulating the search rules for compose files: walk upward from
a working directory to the first directory holding a recognised base file, then
assemble the base, environment, and override layers found next to it.

Contents
--------
* :data:`BASE_FILENAMES` – recognised base descriptor names in priority order.
* :class:`DescriptorPathResolver` – upward search plus layer assembly.
* :func:`_layer_names` – candidate environment/override names for a base file.

System Role
-----------
Feeds deterministic, ordered path lists into
:class:`lib_compose_db.application.resolver.ProjectResolver`. The resolver
merges the layers in the returned order, so the last entry wins conflicts.
"""

from __future__ import annotations

import os
from pathlib import Path

from ...observability import log_debug

#: Recognised base descriptor names, checked in this order inside each directory.
BASE_FILENAMES: tuple[str, ...] = (
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
)


class DescriptorPathResolver:
    """Resolve the ordered descriptor layers for a working directory.

    Why
    ----
    Centralise path discovery so the resolver stays filesystem-agnostic and
    easy to test.
    """

    def __init__(self, *, environment: str | None = None) -> None:
        """Store the environment identifier selecting ``<base>.<environment>.yml``."""

        self.environment = environment

    def find_base(self, start_dir: str | os.PathLike[str]) -> Path | None:
        """Return the first base descriptor found walking upward from *start_dir*.

        Why
        ----
        Commands are often run from a sub-directory of the project; searching
        parents mirrors how ``docker compose`` itself locates the project.

        What
        ----
        Tracks visited directories (absolute, normalised, symlinks untouched) so
        a cyclic parent chain cannot loop forever, and stops after the
        filesystem root.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> tmp = TemporaryDirectory()
        >>> root = Path(tmp.name)
        >>> _ = (root / "compose.yaml").write_text("services: {}", encoding="utf-8")
        >>> nested = root / "src" / "pkg"
        >>> nested.mkdir(parents=True)
        >>> DescriptorPathResolver().find_base(nested).name
        'compose.yaml'
        >>> tmp.cleanup()
        """

        current = Path(os.path.abspath(start_dir))
        visited: set[Path] = set()
        while current not in visited:
            visited.add(current)
            for filename in BASE_FILENAMES:
                candidate = current / filename
                if candidate.is_file():
                    log_debug("descriptor_found", layer="base", path=str(candidate))
                    return candidate
            parent = current.parent
            if parent == current:
                break
            current = parent
        log_debug("descriptor_not_found", layer="base", path=str(start_dir), searched=len(visited))
        return None

    def layers(self, start_dir: str | os.PathLike[str]) -> list[str]:
        """Return the ordered layer paths for *start_dir* (empty when none exist).

        Order is fixed: base file, environment file (only when an environment
        is configured and the file exists), override file.
        """

        base = self.find_base(start_dir)
        if base is None:
            return []

        directory = base.parent
        env_names, override_names = _layer_names(base.name, self.environment)
        files = [str(base)]

        env_file = _first_existing(directory, env_names)
        if env_file is not None:
            files.append(str(env_file))
            log_debug("descriptor_found", layer="environment", path=str(env_file))

        override_file = _first_existing(directory, override_names)
        if override_file is not None:
            files.append(str(override_file))
            log_debug("descriptor_found", layer="override", path=str(override_file))
        return files


def _layer_names(base_name: str, environment: str | None) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Return candidate ``(environment_files, override_files)`` names for *base_name*.

    The canonical ``docker-compose.<environment>.yml`` and
    ``docker-compose.override.yml`` names are always candidates; names derived
    from the base file come first when they differ.

    Examples
    --------
    >>> _layer_names("docker-compose.yml", "production")
    (('docker-compose.production.yml',), ('docker-compose.override.yml',))
    >>> _layer_names("compose.yaml", None)
    ((), ('compose.override.yaml', 'docker-compose.override.yml'))
    """

    stem, _, suffix = base_name.rpartition(".")
    env_names: tuple[str, ...] = ()
    if environment:
        env_names = _unique(f"{stem}.{environment}.{suffix}", f"docker-compose.{environment}.yml")
    return env_names, _unique(f"{stem}.override.{suffix}", "docker-compose.override.yml")


def _unique(*names: str) -> tuple[str, ...]:
    return tuple(dict.fromkeys(names))


def _first_existing(directory: Path, names: tuple[str, ...]) -> Path | None:
    for name in names:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None
