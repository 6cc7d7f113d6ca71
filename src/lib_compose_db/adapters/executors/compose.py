"""``docker compose`` command executor.

Purpose
-------
Implement the :class:`lib_compose_db.application.ports.CommandExecutor`
protocol on top of the local ``docker compose`` CLI. Every call spawns one
subprocess via :func:`asyncio.create_subprocess_exec`; no shell is involved, so
query text reaches the container verbatim.

Contents
--------
* :class:`ComposeCommandExecutor` – exec/stop/start plus environment inspection.
* :func:`build_exec_command` – pure construction of the ``exec`` vector.

System Role
-----------
The database adapters only build engine command vectors; this module decides
how they reach the container.
"""

from __future__ import annotations

import asyncio
import json
from typing import Sequence

from ...domain.database import ExecOptions
from ...domain.errors import ExecutionFailed
from ...domain.settings import Settings
from ...observability import log_debug, log_error


def build_exec_command(
    docker_binary: str,
    service: str,
    project_name: str,
    command: Sequence[str],
    options: ExecOptions | None = None,
    *,
    descriptor_path: str = "",
) -> list[str]:
    """Return the full ``docker compose exec`` argument vector.

    Examples
    --------
    >>> build_exec_command("docker", "db", "shop", ["psql", "-c", "SELECT 1"],
    ...                    ExecOptions(env={"PGPASSWORD": "pw"}, user="postgres"))
    ['docker', 'compose', '-p', 'shop', 'exec', '-T', '-e', 'PGPASSWORD=pw', '-u', 'postgres', 'db', 'psql', '-c', 'SELECT 1']
    """

    options = options or ExecOptions()
    argv = [*_compose_prefix(docker_binary, project_name, descriptor_path), "exec", "-T"]
    for key, value in options.env.items():
        argv.extend(["-e", f"{key}={value}"])
    if options.user:
        argv.extend(["-u", options.user])
    if options.workdir:
        argv.extend(["-w", options.workdir])
    argv.append(service)
    argv.extend(command)
    return argv


class ComposeCommandExecutor:
    """Run commands in compose service containers through the docker CLI."""

    def __init__(self, settings: Settings | None = None, *, docker_binary: str | None = None) -> None:
        settings = settings or Settings()
        self.docker_binary = docker_binary or settings.docker_binary

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
        """Run *command* inside *service* and return its standard output."""

        argv = build_exec_command(
            self.docker_binary, service, project_name, command, options, descriptor_path=descriptor_path
        )
        log_debug("exec_command", service=service, project=project_name, program=command[0] if command else None)
        return await self._run(argv, project_dir)

    async def stop_service(self, service: str, project_name: str, *, descriptor_path: str = "", project_dir: str = "") -> None:
        argv = [*_compose_prefix(self.docker_binary, project_name, descriptor_path), "stop", service]
        await self._run(argv, project_dir)

    async def start_service(self, service: str, project_name: str, *, descriptor_path: str = "", project_dir: str = "") -> None:
        argv = [*_compose_prefix(self.docker_binary, project_name, descriptor_path), "start", service]
        await self._run(argv, project_dir)

    async def get_service_environment(
        self, service: str, project_name: str, *, descriptor_path: str = "", project_dir: str = ""
    ) -> dict[str, str] | None:
        """Return the running container's environment or ``None`` when no container exists.

        Uses ``ps -q`` to find the container id, then reads ``.Config.Env``
        through ``docker inspect``.
        """

        argv = [*_compose_prefix(self.docker_binary, project_name, descriptor_path), "ps", "-q", service]
        container_ids = (await self._run(argv, project_dir)).split()
        if not container_ids:
            log_debug("container_not_running", service=service, project=project_name)
            return None
        raw = await self._run(
            [self.docker_binary, "inspect", "--format", "{{json .Config.Env}}", container_ids[0]], project_dir
        )
        try:
            entries = json.loads(raw.strip() or "null") or []
        except json.JSONDecodeError as exc:
            log_error("inspect_unreadable", service=service, container=container_ids[0])
            raise ExecutionFailed(
                f"Unreadable environment for container {container_ids[0]}: {exc}", output=raw
            ) from exc
        if not isinstance(entries, list):
            raise ExecutionFailed(
                f"Unexpected environment for container {container_ids[0]}: {raw.strip()}", output=raw
            )
        env: dict[str, str] = {}
        for entry in entries:
            key, _, value = str(entry).partition("=")
            if key:
                env[key] = value
        return env

    async def _run(self, argv: Sequence[str], project_dir: str) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=project_dir or None,
            )
        except OSError as exc:
            log_error("exec_spawn_failed", program=argv[0], error=str(exc))
            raise ExecutionFailed(f"Failed to run {argv[0]}: {exc}") from exc
        stdout, stderr = await process.communicate()
        output = stdout.decode("utf-8", errors="replace")
        if process.returncode != 0:
            detail = (stderr.decode("utf-8", errors="replace") + output).strip()
            log_error("exec_failed", program=argv[0], returncode=process.returncode)
            raise ExecutionFailed(
                f"Command failed with exit code {process.returncode}: {detail}",
                returncode=process.returncode,
                output=output,
            )
        return output


def _compose_prefix(docker_binary: str, project_name: str, descriptor_path: str) -> list[str]:
    prefix = [docker_binary, "compose", "-p", project_name]
    if descriptor_path:
        prefix.extend(["-f", descriptor_path])
    return prefix
