"""Compose executor tests with ``asyncio.create_subprocess_exec`` replaced by a fake process."""

from __future__ import annotations

import json

import pytest

from lib_compose_db.adapters.executors.compose import ComposeCommandExecutor, build_exec_command
from lib_compose_db.domain.database import ExecOptions
from lib_compose_db.domain.errors import ExecutionFailed

pytestmark = pytest.mark.anyio

TARGET = "lib_compose_db.adapters.executors.compose.asyncio.create_subprocess_exec"


class _Process:
    def __init__(self, stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> None:
        self._stdout = stdout
        self._stderr = stderr
        self.returncode = returncode

    async def communicate(self) -> tuple[bytes, bytes]:
        return self._stdout, self._stderr


def _install(monkeypatch: pytest.MonkeyPatch, *processes: _Process) -> list[dict]:
    spawned: list[dict] = []
    queue = list(processes)

    async def fake_create_subprocess_exec(*command: str, stdout, stderr, cwd) -> _Process:
        assert stdout is not None
        assert stderr is not None
        spawned.append({"argv": list(command), "cwd": cwd})
        return queue.pop(0)

    monkeypatch.setattr(TARGET, fake_create_subprocess_exec)
    return spawned


def test_build_exec_command_includes_descriptor_user_and_workdir() -> None:
    argv = build_exec_command(
        "docker",
        "db",
        "shop",
        ["psql", "-c", "SELECT 1"],
        ExecOptions(user="postgres", workdir="/tmp"),
        descriptor_path="/srv/shop/docker-compose.yml",
    )

    assert argv == [
        "docker", "compose", "-p", "shop", "-f", "/srv/shop/docker-compose.yml",
        "exec", "-T", "-u", "postgres", "-w", "/tmp", "db", "psql", "-c", "SELECT 1",
    ]


async def test_execute_returns_stdout_and_runs_in_project_dir(monkeypatch) -> None:
    spawned = _install(monkeypatch, _Process(stdout=b"hello\n"))

    output = await ComposeCommandExecutor().execute("db", "shop", ["echo", "hello"], project_dir="/srv/shop")

    assert output == "hello\n"
    assert spawned[0]["cwd"] == "/srv/shop"
    assert spawned[0]["argv"][:4] == ["docker", "compose", "-p", "shop"]


async def test_execute_raises_on_non_zero_exit(monkeypatch) -> None:
    _install(monkeypatch, _Process(stdout=b"", stderr=b"service not running", returncode=1))

    with pytest.raises(ExecutionFailed, match="service not running") as excinfo:
        await ComposeCommandExecutor().execute("db", "shop", ["true"])
    assert excinfo.value.returncode == 1


async def test_spawn_failure_becomes_execution_failed(monkeypatch) -> None:
    async def missing_binary(*command, stdout, stderr, cwd):
        raise FileNotFoundError("docker")

    monkeypatch.setattr(TARGET, missing_binary)

    with pytest.raises(ExecutionFailed, match="Failed to run docker"):
        await ComposeCommandExecutor().execute("db", "shop", ["true"])


async def test_stop_and_start_service(monkeypatch) -> None:
    spawned = _install(monkeypatch, _Process(), _Process())
    executor = ComposeCommandExecutor(docker_binary="podman")

    await executor.stop_service("cache", "shop")
    await executor.start_service("cache", "shop")

    assert [entry["argv"] for entry in spawned] == [
        ["podman", "compose", "-p", "shop", "stop", "cache"],
        ["podman", "compose", "-p", "shop", "start", "cache"],
    ]


async def test_service_environment_from_inspect(monkeypatch) -> None:
    env = json.dumps(["PATH=/usr/bin", "POSTGRES_DB=app", "EMPTY=", "EQ=a=b"]).encode()
    spawned = _install(monkeypatch, _Process(stdout=b"abc123\n"), _Process(stdout=env + b"\n"))

    result = await ComposeCommandExecutor().get_service_environment("db", "shop")

    assert result == {"PATH": "/usr/bin", "POSTGRES_DB": "app", "EMPTY": "", "EQ": "a=b"}
    assert spawned[1]["argv"] == ["docker", "inspect", "--format", "{{json .Config.Env}}", "abc123"]


async def test_service_environment_none_without_container(monkeypatch) -> None:
    spawned = _install(monkeypatch, _Process(stdout=b"\n"))

    assert await ComposeCommandExecutor().get_service_environment("db", "shop") is None
    assert len(spawned) == 1


@pytest.mark.parametrize("payload", [b"Error: template parsing failed\n", b'{"PATH": "/usr/bin"}\n'])
async def test_service_environment_unreadable_inspect_output(monkeypatch, payload: bytes) -> None:
    _install(monkeypatch, _Process(stdout=b"abc123\n"), _Process(stdout=payload))

    with pytest.raises(ExecutionFailed, match="abc123") as excinfo:
        await ComposeCommandExecutor().get_service_environment("db", "shop")

    assert excinfo.value.output == payload.decode()
