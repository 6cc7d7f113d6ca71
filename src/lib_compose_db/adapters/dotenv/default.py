"""`.env` environment provider.

Purpose
-------
Implement the :class:`lib_compose_db.application.ports.EnvironmentProvider`
protocol by layering the dotenv files that sit next to a compose project with
the environment declared for the service in the descriptor itself.

Contents
--------
* :class:`DotEnvEnvironmentProvider` – layered loading for one service.
* :func:`parse_dotenv` – strict ``KEY=VALUE`` parser.
* :func:`mask_secrets` – redacts secret-looking values for display.

System Role
-----------
Database adapters fall back to this provider when the executor cannot report
the live container environment (for example when the container is stopped).
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from ...domain.errors import InvalidEnvFile
from ...domain.project import ServiceConfig
from ...observability import log_debug, log_error

#: Substrings that mark an environment key as secret (matched upper-case).
SECRET_MARKERS: tuple[str, ...] = ("PASSWORD", "TOKEN", "KEY", "SECRET", "API_KEY", "PRIVATE", "CREDENTIALS")

MASK = "***MASKED***"


class DotEnvEnvironmentProvider:
    """Merge ``.env`` layers with the compose-declared service environment.

    Why
    ----
    Compose itself reads ``.env`` for interpolation while teams keep per-stage
    and per-developer overrides in ``.env.<stage>`` and ``.env.local``. The
    service's own ``environment:`` section is the most specific source and
    therefore wins.

    Parameters
    ----------
    environment:
        Stage identifier selecting ``.env.<environment>``; ``development`` when
        omitted.
    """

    def __init__(self, *, environment: str | None = None) -> None:
        self.environment = environment or "development"

    def layer_paths(self, project_dir: str) -> list[Path]:
        """Return the dotenv candidates for *project_dir* in precedence order.

        Examples
        --------
        >>> [p.name for p in DotEnvEnvironmentProvider(environment="staging").layer_paths("/srv/app")]
        ['.env', '.env.staging', '.env.local']
        """

        directory = Path(project_dir)
        return [directory / ".env", directory / f".env.{self.environment}", directory / ".env.local"]

    def load_env(
        self,
        project_dir: str,
        service_name: str,
        service_config: ServiceConfig | None = None,
    ) -> dict[str, str]:
        """Return the merged environment for *service_name*; later layers win.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> tmp = TemporaryDirectory()
        >>> _ = (Path(tmp.name) / ".env").write_text("POSTGRES_USER=app\\nPOSTGRES_DB=base\\n", encoding="utf-8")
        >>> _ = (Path(tmp.name) / ".env.local").write_text("POSTGRES_DB=local\\n", encoding="utf-8")
        >>> env = DotEnvEnvironmentProvider().load_env(tmp.name, "db")
        >>> env["POSTGRES_USER"], env["POSTGRES_DB"]
        ('app', 'local')
        >>> tmp.cleanup()
        """

        merged: dict[str, str] = {}
        for candidate in self.layer_paths(project_dir):
            if candidate.is_file():
                data = parse_dotenv(candidate)
                merged.update(data)
                log_debug("dotenv_loaded", layer="dotenv", path=str(candidate), keys=sorted(data))
        if service_config is not None and service_config.environment:
            merged.update(service_config.environment)
            log_debug("service_env_applied", layer="service", path=None, service=service_name, keys=sorted(service_config.environment))
        return merged


def parse_dotenv(path: Path) -> dict[str, str]:
    """Parse ``path`` into a flat mapping, raising ``InvalidEnvFile`` on malformed lines.

    Blank lines and ``#`` comments are skipped and an ``export`` prefix is
    accepted. Keys keep their original case.
    """

    result: dict[str, str] = {}
    with path.open("r", encoding="utf-8") as handle:
        for line_number, raw_line in enumerate(handle, start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[len("export ") :].lstrip()
            key, sep, value = line.partition("=")
            key = key.strip()
            if not sep or not key:
                log_error("dotenv_invalid_line", layer="dotenv", path=str(path), line=line_number)
                raise InvalidEnvFile(f"Malformed line {line_number} in {path}")
            result[key] = _strip_quotes(value.strip())
    return result


def _strip_quotes(value: str) -> str:
    """Trim surrounding quotes and inline comments from ``value``.

    Examples
    --------
    >>> _strip_quotes('"s3cr3t # not a comment"')
    's3cr3t # not a comment'
    >>> _strip_quotes("value # comment")
    'value'
    >>> _strip_quotes("# only a comment")
    ''
    """

    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    if value.startswith("#"):
        return ""
    if " #" in value:
        return value.split(" #", 1)[0].strip()
    return value


def mask_secrets(env: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of *env* with secret-looking values replaced.

    Examples
    --------
    >>> mask_secrets({"POSTGRES_PASSWORD": "pw", "POSTGRES_DB": "app", "api_key": "k"})
    {'POSTGRES_PASSWORD': '***MASKED***', 'POSTGRES_DB': 'app', 'api_key': '***MASKED***'}
    """

    return {key: MASK if _is_secret(key) else value for key, value in env.items()}


def _is_secret(key: str) -> bool:
    upper = key.upper()
    return any(marker in upper for marker in SECRET_MARKERS)
