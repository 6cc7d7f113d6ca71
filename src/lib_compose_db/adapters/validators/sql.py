"""Pattern-based guard against destructive SQL.

Purpose
-------
Implement the :class:`lib_compose_db.application.ports.QueryValidator` protocol
for ad-hoc queries typed at a terminal. The check is deliberately shallow: it
catches the obvious "wipe everything" statements, it is not a SQL parser.
"""

from __future__ import annotations

import re

from ...domain.errors import ValidationRejected
from ...observability import log_warning

#: Rejected statement shapes, matched case-insensitively anywhere in the query.
DANGEROUS_PATTERNS: tuple[str, ...] = (
    r"DROP\s+DATABASE",
    r"DROP\s+TABLE",
    r"TRUNCATE\s+TABLE",
    r"DELETE\s+FROM\s+\w+\s*;",
    r"UPDATE\s+\w+\s+SET\s+.*\s*;",
)


class SqlSafetyValidator:
    """Reject queries that drop, truncate, or rewrite whole tables.

    ``DELETE``/``UPDATE`` statements are only rejected when the statement ends
    right after the table or ``SET`` clause, i.e. without a ``WHERE``.

    Examples
    --------
    >>> validator = SqlSafetyValidator()
    >>> validator.validate("SELECT * FROM users WHERE id = 1;")
    >>> validator.validate("drop table users;")
    Traceback (most recent call last):
    ...
    lib_compose_db.domain.errors.ValidationRejected: Potentially dangerous query detected: matches pattern DROP\\s+TABLE
    >>> SqlSafetyValidator(enabled=False).validate("DROP DATABASE prod;")
    """

    def __init__(self, *, enabled: bool = True) -> None:
        self.enabled = enabled
        self._patterns = [(pattern, re.compile(pattern, re.IGNORECASE)) for pattern in DANGEROUS_PATTERNS]

    def validate(self, query: str) -> None:
        if not self.enabled:
            return
        for source, compiled in self._patterns:
            if compiled.search(query) and not _has_where(source, query):
                log_warning("query_rejected", pattern=source)
                raise ValidationRejected(f"Potentially dangerous query detected: matches pattern {source}")


def _has_where(source: str, query: str) -> bool:
    """Return ``True`` when an ``UPDATE ... SET`` pattern hit is actually filtered.

    ``UPDATE t SET a = 1 WHERE id = 2;`` matches the greedy ``SET .*;`` shape
    but is not a whole-table rewrite.

    Examples
    --------
    >>> _has_where(r"UPDATE\\s+\\w+\\s+SET\\s+.*\\s*;", "UPDATE t SET a = 1 WHERE id = 2;")
    True
    >>> _has_where(r"DROP\\s+TABLE", "DROP TABLE t WHERE 1;")
    False
    """

    if not source.startswith("UPDATE"):
        return False
    return re.search(r"\bWHERE\b", query, re.IGNORECASE) is not None
