"""CLI adapter for ``lib_compose_db`` built on ``lib_cli_exit_tools``.

Purpose
-------
Expose project discovery and the uniform database operations on the command
line so operators can inspect a compose project, run a query, or take a backup
without writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_discover` – prints the resolved project as JSON.
* :func:`cli_adapters` – lists the registered engine types.
* :func:`cli_env` – prints a service environment with secrets masked.
* :func:`cli_query` / :func:`cli_backup` / :func:`cli_restore` /
  :func:`cli_status` – the database operations.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. It talks to
:class:`lib_compose_db.core.DatabaseToolkit` only; ``lib_cli_exit_tools``
centralises the exit code strategy so every command fails the same way.
"""

from __future__ import annotations

import asyncio
import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.dotenv.default import DotEnvEnvironmentProvider, mask_secrets
from .core import DatabaseToolkit
from .domain.database import BackupFormat, BackupOptions, QueryFormat, QueryOptions, RestoreOptions
from .domain.project import ProjectConfig

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

_DIST_NAME: Final[str] = "lib_compose_db"


def _resolve_version() -> str:
    """Return the installed package version, or ``"0.0.0"`` for source checkouts."""

    try:
        return metadata.version(_DIST_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0"


def _build_toolkit() -> DatabaseToolkit:
    """Return the toolkit used by every command (replaced in tests)."""

    return DatabaseToolkit.create()


def _discovery_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the shared ``--cwd`` / ``--file`` project discovery options."""

    func = click.option(
        "--file",
        "descriptor",
        type=click.Path(path_type=Path, dir_okay=False),
        default=None,
        help="Explicit compose file (skips upward discovery)",
    )(func)
    func = click.option(
        "--cwd",
        type=click.Path(path_type=Path, exists=True, file_okay=False, dir_okay=True),
        default=None,
        help="Directory to start discovery from (defaults to CWD)",
    )(func)
    return func


def _resolve(toolkit: DatabaseToolkit, cwd: Optional[Path], descriptor: Optional[Path]) -> ProjectConfig:
    return toolkit.resolve_project(cwd=cwd, explicit_path=descriptor)


@click.group(
    help="Uniform database operations for docker compose projects",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DIST_NAME,
    message="lib_compose_db version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command storing the traceback preference.

    The preference is mirrored into :mod:`lib_cli_exit_tools.config`, which
    :func:`main` reads when formatting exceptions.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(_DIST_NAME)
    except metadata.PackageNotFoundError:
        click.echo(f"{_DIST_NAME} (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', _DIST_NAME)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("discover", context_settings=CLICK_CONTEXT_SETTINGS)
@_discovery_options
@click.option("--project-name", default=None, help="Use this project name without reading any compose file")
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
def cli_discover(cwd: Optional[Path], descriptor: Optional[Path], project_name: Optional[str], indent: Optional[int]) -> None:
    """Resolve the compose project and print it as JSON.

    Layers (``docker-compose.yml``, ``docker-compose.<environment>.yml``,
    ``docker-compose.override.yml``) are merged before printing.
    """

    project = _build_toolkit().resolve_project(cwd=cwd, explicit_path=descriptor, project_name=project_name)
    click.echo(project.to_json(indent=indent))


@cli.command("adapters", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_adapters() -> None:
    """List the database types that have a registered adapter."""

    click.echo(json.dumps(_build_toolkit().registry.registered_types()))


@cli.command("env", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("service")
@_discovery_options
def cli_env(service: str, cwd: Optional[Path], descriptor: Optional[Path]) -> None:
    """Print the file-based environment of SERVICE with secret values masked."""

    toolkit = _build_toolkit()
    project = _resolve(toolkit, cwd, descriptor)
    provider = DotEnvEnvironmentProvider(environment=toolkit.settings.environment)
    env = provider.load_env(project.project_dir, service, project.service(service))
    click.echo(json.dumps(mask_secrets(env), indent=2, sort_keys=True))


@cli.command("query", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("service")
@click.argument("query")
@_discovery_options
@click.option("--database", default=None, help="Database name (defaults to the service environment)")
@click.option("--user", default=None, help="Database user (defaults to the service environment)")
@click.option(
    "--format",
    "output_format",
    type=click.Choice([item.value for item in QueryFormat], case_sensitive=False),
    default=QueryFormat.TABLE.value,
    show_default=True,
    help="Output format requested from the engine",
)
def cli_query(
    service: str,
    query: str,
    cwd: Optional[Path],
    descriptor: Optional[Path],
    database: Optional[str],
    user: Optional[str],
    output_format: str,
) -> None:
    """Run QUERY against SERVICE and print the raw engine output."""

    toolkit = _build_toolkit()
    project = _resolve(toolkit, cwd, descriptor)
    options = QueryOptions(database=database, user=user, format=QueryFormat(output_format.lower()))
    output = asyncio.run(toolkit.query(service, query, options, project=project))
    click.echo(output, nl=not output.endswith("\n"))


@cli.command("backup", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("service")
@_discovery_options
@click.option("--output", default=None, help="Backup path inside the container")
@click.option(
    "--format",
    "backup_format",
    type=click.Choice([item.value for item in BackupFormat], case_sensitive=False),
    default=BackupFormat.CUSTOM.value,
    show_default=True,
    help="Dump format (relational engines only)",
)
@click.option("--table", "tables", multiple=True, help="Restrict the dump to this table (repeatable)")
@click.option("--database", default=None, help="Database name (defaults to the service environment)")
def cli_backup(
    service: str,
    cwd: Optional[Path],
    descriptor: Optional[Path],
    output: Optional[str],
    backup_format: str,
    tables: Sequence[str],
    database: Optional[str],
) -> None:
    """Back up SERVICE and print the artifact path as JSON."""

    toolkit = _build_toolkit()
    project = _resolve(toolkit, cwd, descriptor)
    options = BackupOptions(output=output, format=BackupFormat(backup_format.lower()), tables=tuple(tables), database=database)
    path = asyncio.run(toolkit.backup(service, options, project=project))
    click.echo(json.dumps({"service": service, "path": path}))


@cli.command("restore", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("service")
@click.argument("backup_path")
@_discovery_options
@click.option("--database", default=None, help="Target database (defaults to the service environment)")
@click.option("--clean/--no-clean", default=False, help="Drop objects before recreating them")
@click.option("--data-only", is_flag=True, default=False, help="Restore data without schema")
@click.option("--schema-only", is_flag=True, default=False, help="Restore schema without data")
def cli_restore(
    service: str,
    backup_path: str,
    cwd: Optional[Path],
    descriptor: Optional[Path],
    database: Optional[str],
    clean: bool,
    data_only: bool,
    schema_only: bool,
) -> None:
    """Restore BACKUP_PATH (a path inside the container) into SERVICE."""

    if data_only and schema_only:
        raise click.UsageError("--data-only and --schema-only are mutually exclusive")
    toolkit = _build_toolkit()
    project = _resolve(toolkit, cwd, descriptor)
    options = RestoreOptions(database=database, clean=clean, data_only=data_only, schema_only=schema_only)
    asyncio.run(toolkit.restore(service, backup_path, options, project=project))
    click.echo(json.dumps({"service": service, "restored": backup_path}))


@cli.command("status", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("service")
@_discovery_options
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
def cli_status(service: str, cwd: Optional[Path], descriptor: Optional[Path], indent: Optional[int]) -> None:
    """Print the engine status report of SERVICE as JSON."""

    toolkit = _build_toolkit()
    project = _resolve(toolkit, cwd, descriptor)
    report = asyncio.run(toolkit.status(service, project=project))
    click.echo(json.dumps(report.as_dict(), indent=indent))


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DIST_NAME,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
