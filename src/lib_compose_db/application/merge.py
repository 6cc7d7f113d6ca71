"""Application-layer merge policy for compose descriptors.

Purpose
-------
Combine the raw documents of several descriptor layers (base, environment,
override) into a single document using docker-compose merge semantics. The
module is free of I/O so it can be reused by alternative resolvers.

Contents
    - ``merge_documents``: public entry point folding documents left to right.
    - ``merge_values``: recursive merge of two arbitrary YAML values.
    - ``_merge_mappings``: key-by-key stanza used for mapping/mapping pairs.

Merge rules
-----------
* mapping + mapping → merged key by key, recursing on collisions;
* sequence + sequence → concatenated, earlier elements first (duplicates are
  kept, so a port published in two layers is bound twice);
* sequence vs anything else → the later value, without coercion;
* ``None`` on one side → the other side unchanged; on both sides → ``None``;
* scalars → the later value.

System Role
-----------
Called by :class:`lib_compose_db.application.resolver.ProjectResolver` between
parsing individual layers and building the :class:`ProjectConfig`.
"""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from typing import Any, Sequence


def merge_documents(documents: Sequence[Any]) -> Any:
    """Merge *documents* from lowest to highest precedence.

    Why
    ----
    Layered compose files are the common way to tailor a project per
    environment; callers need the same result ``docker compose -f a -f b``
    would compute.

    Returns
    -------
    Any
        The merged document. A single document is returned as-is; an empty
        sequence yields ``{}``.

    Side Effects
    ------------
    None; inputs are never mutated.

    Examples
    --------
    >>> merge_documents([
    ...     {"services": {"web": {"image": "nginx", "ports": ["80:80"]}}},
    ...     {"services": {"web": {"ports": ["443:443"]}}},
    ... ])
    {'services': {'web': {'image': 'nginx', 'ports': ['80:80', '443:443']}}}
    """

    if not documents:
        return {}
    if len(documents) == 1:
        return documents[0]

    merged: Any = None
    for document in documents:
        merged = merge_values(merged, document)
    return merged


def merge_values(target: Any, source: Any) -> Any:
    """Return the merge of *target* (earlier) and *source* (later).

    Examples
    --------
    >>> merge_values([1, 2], [2, 3])
    [1, 2, 2, 3]
    >>> merge_values({"a": 1}, None)
    {'a': 1}
    >>> merge_values(["x"], "y")
    'y'
    >>> merge_values(None, None) is None
    True
    """

    if source is None:
        return deepcopy(target)
    if target is None:
        return deepcopy(source)
    if isinstance(target, list) and isinstance(source, list):
        return deepcopy(target) + deepcopy(source)
    if isinstance(target, Mapping) and isinstance(source, Mapping):
        return _merge_mappings(target, source)
    return deepcopy(source)


def _merge_mappings(target: Mapping[str, Any], source: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *source* into a copy of *target*, recursing on shared keys."""

    result: dict[str, Any] = {key: deepcopy(value) for key, value in target.items()}
    for key, value in source.items():
        result[key] = merge_values(target.get(key), value)
    return result
