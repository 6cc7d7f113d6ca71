"""Environment variable adapter for runtime settings.

Purpose
-------
Translate ``LIB_COMPOSE_DB_*`` process environment variables into the loosely
typed mapping consumed by :meth:`lib_compose_db.domain.settings.Settings.from_mapping`.

Key behaviours
--------------
* Enforces a prefix (``default_env_prefix``) so only relevant keys are captured.
* Lower-cases the remaining key (``LIB_COMPOSE_DB_VALIDATE_SQL`` →
  ``validate_sql``).
* Performs light type coercion for common scalar types (bools, ints, decimal
  floats, ``null``/``none``). Keys named in ``text_keys`` are left as text.
"""

from __future__ import annotations

import os
import re
from typing import Iterable, Mapping

from ...observability import log_debug

_DECIMAL = re.compile(r"-?\d+\.\d+")


def default_env_prefix(slug: str) -> str:
    """Return the canonical environment prefix for *slug*.

    Examples
    --------
    >>> default_env_prefix('lib-compose-db')
    'LIB_COMPOSE_DB'
    """

    return slug.replace("-", "_").upper()


class DefaultEnvLoader:
    """Load environment variables that belong to the settings namespace."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the loader with a specific ``environ`` mapping for testability."""

        self._environ = environ if environ is not None else os.environ

    def load(self, prefix: str, *, text_keys: Iterable[str] = ()) -> dict[str, object]:
        """Return settings whose variable names start with *prefix*.

        Keys listed in *text_keys* keep their raw string value.

        Examples
        --------
        >>> loader = DefaultEnvLoader(environ={
        ...     'LIB_COMPOSE_DB_VALIDATE_SQL': 'false',
        ...     'LIB_COMPOSE_DB_SNAPSHOT_POLL_ATTEMPTS': '5',
        ...     'HOME': '/root',
        ... })
        >>> sorted(loader.load('LIB_COMPOSE_DB').items())
        [('snapshot_poll_attempts', 5), ('validate_sql', False)]
        """

        prefix = f"{prefix}_" if prefix and not prefix.endswith("_") else prefix
        collected: dict[str, object] = {}
        raw = set(text_keys)
        for key, value in self._environ.items():
            if not key.startswith(prefix):
                continue
            stripped = key[len(prefix) :].lower()
            if stripped:
                collected[stripped] = value if stripped in raw else _coerce(value)
        log_debug("env_settings_loaded", layer="env", path=None, keys=sorted(collected))
        return collected


def _coerce(value: str) -> object:
    """Coerce textual environment values to Python primitives where possible.

    Examples
    --------
    >>> _coerce('true'), _coerce('10'), _coerce('0.5'), _coerce('1e3'), _coerce('staging')
    (True, 10, 0.5, '1e3', 'staging')
    """

    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
        return int(value)
    if _DECIMAL.fullmatch(value):
        return float(value)
    return value
