"""Shared fixtures: compose project sandboxes and a scripted command executor.

The fake executor records every command vector and answers from a queue of
canned outputs, so adapter tests can assert on the exact commands without a
docker daemon.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

import pytest

from lib_compose_db.domain.database import ExecOptions
from lib_compose_db.domain.project import ProjectConfig, ServiceConfig
from lib_compose_db.domain.settings import Settings
from lib_compose_db.observability import bind_trace_id


@dataclass
class ExecCall:
    service: str
    project_name: str
    command: list[str]
    options: ExecOptions | None


@dataclass
class FakeExecutor:
    """Command executor double answering from scripted outputs."""

    outputs: deque[str | Exception] = field(default_factory=deque)
    environment: dict[str, str] | None = None
    calls: list[ExecCall] = field(default_factory=list)
    lifecycle: list[tuple[str, str]] = field(default_factory=list)

    def script(self, *outputs: str | Exception) -> FakeExecutor:
        self.outputs.extend(outputs)
        return self

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
        self.calls.append(ExecCall(service, project_name, list(command), options))
        self.lifecycle.append(("exec", service))
        if not self.outputs:
            return ""
        result = self.outputs.popleft()
        if isinstance(result, Exception):
            raise result
        return result

    async def stop_service(self, service: str, project_name: str, *, descriptor_path: str = "", project_dir: str = "") -> None:
        self.lifecycle.append(("stop", service))

    async def start_service(self, service: str, project_name: str, *, descriptor_path: str = "", project_dir: str = "") -> None:
        self.lifecycle.append(("start", service))

    async def get_service_environment(
        self, service: str, project_name: str, *, descriptor_path: str = "", project_dir: str = ""
    ) -> dict[str, str] | None:
        return None if self.environment is None else dict(self.environment)

    @property
    def commands(self) -> list[list[str]]:
        return [call.command for call in self.calls]


@dataclass
class StaticEnvProvider:
    """Environment provider double returning the service's declared environment plus extras."""

    extra: dict[str, str] = field(default_factory=dict)
    requests: list[tuple[str, str]] = field(default_factory=list)

    def load_env(self, project_dir: str, service_name: str, service_config: ServiceConfig | None = None) -> dict[str, str]:
        self.requests.append((project_dir, service_name))
        env = dict(self.extra)
        if service_config is not None:
            env.update(service_config.environment)
        return env


@dataclass
class RecordingValidator:
    seen: list[str] = field(default_factory=list)

    def validate(self, query: str) -> None:
        self.seen.append(query)


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _clear_trace_id():
    yield
    bind_trace_id(None)


@pytest.fixture()
def fast_settings() -> Settings:
    """Settings with a zero-length snapshot poll interval."""

    return Settings(snapshot_poll_interval=0.0)


@pytest.fixture()
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def env_provider() -> StaticEnvProvider:
    return StaticEnvProvider()


@pytest.fixture()
def validator() -> RecordingValidator:
    return RecordingValidator()


@pytest.fixture()
def write_compose(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper writing a descriptor file under ``tmp_path``."""

    def _write(body: str, name: str = "docker-compose.yml", directory: Path | None = None) -> Path:
        target_dir = directory or tmp_path
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / name
        path.write_text(body, encoding="utf-8")
        return path

    return _write


def make_project(*services: ServiceConfig, name: str = "shop", project_dir: str = "/srv/shop") -> ProjectConfig:
    return ProjectConfig(
        name=name,
        descriptor_path=f"{project_dir}/docker-compose.yml",
        project_dir=project_dir,
        services={service.name: service for service in services},
    )


@pytest.fixture()
def project_factory() -> Callable[..., ProjectConfig]:
    return make_project
