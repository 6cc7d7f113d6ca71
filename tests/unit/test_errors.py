from __future__ import annotations

from lib_compose_db.domain.errors import (
    BackupTimeout,
    ComposeDbError,
    ExecutionFailed,
    InvalidEnvFile,
    InvalidSettings,
    MalformedDescriptor,
    NotFound,
    ServiceNotFound,
    UnknownAdapter,
    ValidationRejected,
)


def test_error_hierarchy() -> None:
    for error_cls in (
        MalformedDescriptor,
        NotFound,
        ServiceNotFound,
        UnknownAdapter,
        ValidationRejected,
        BackupTimeout,
        ExecutionFailed,
        InvalidEnvFile,
        InvalidSettings,
    ):
        assert issubclass(error_cls, ComposeDbError)


def test_service_not_found_names_available_services() -> None:
    error = ServiceNotFound("cache", "shop", ["web", "db"])
    assert str(error) == "Service 'cache' not found in project 'shop' (available: db, web)"
    assert (error.service, error.project) == ("cache", "shop")


def test_unknown_adapter_message() -> None:
    error = UnknownAdapter("mysql", [])
    assert str(error) == "No adapter found for database type: mysql. Available adapters: none"


def test_execution_failed_keeps_exit_details() -> None:
    error = ExecutionFailed("boom", returncode=2, output="partial")
    assert (str(error), error.returncode, error.output) == ("boom", 2, "partial")
