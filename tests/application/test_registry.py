from __future__ import annotations

import pytest

from lib_compose_db.application.registry import AdapterRegistry
from lib_compose_db.domain.errors import UnknownAdapter
from lib_compose_db.domain.project import ServiceConfig, ServiceType


class _Adapter:
    def __init__(self, label: str) -> None:
        self.label = label


def test_lookup_is_case_insensitive() -> None:
    registry = AdapterRegistry()
    adapter = _Adapter("pg")
    registry.register("PostgreSQL", adapter)

    assert registry.get("POSTGRESQL") is adapter
    assert registry.get(ServiceType.POSTGRESQL) is adapter
    assert registry.has("postgresql")


def test_last_registration_wins() -> None:
    registry = AdapterRegistry()
    registry.register("redis", _Adapter("first"))
    registry.register("Redis", _Adapter("second"))

    assert registry.get("redis").label == "second"
    assert registry.registered_types() == ["redis"]


def test_unknown_type_lists_registered() -> None:
    registry = AdapterRegistry()
    registry.register("redis", _Adapter("r"))

    with pytest.raises(UnknownAdapter, match="No adapter found for database type: mysql. Available adapters: redis"):
        registry.get("mysql")


def test_unknown_type_on_empty_registry_says_none() -> None:
    with pytest.raises(UnknownAdapter, match="Available adapters: none"):
        AdapterRegistry().get("redis")


def test_for_service_uses_inferred_type() -> None:
    registry = AdapterRegistry()
    adapter = _Adapter("sqlite")
    registry.register(ServiceType.SQLITE, adapter)

    assert registry.for_service(ServiceConfig("app", ServiceType.SQLITE)) is adapter
    with pytest.raises(UnknownAdapter, match="generic"):
        registry.for_service(ServiceConfig("web"))
