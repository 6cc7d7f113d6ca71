"""Registry mapping engine types to database adapters."""

from __future__ import annotations

from ..domain.errors import UnknownAdapter
from ..domain.project import ServiceConfig, ServiceType
from ..observability import log_debug
from .ports import DatabaseAdapter


class AdapterRegistry:
    """Collects database adapters keyed by lower-cased engine type.

    Re-registering a type replaces the previous adapter, which is how tests
    inject fakes into an otherwise fully wired registry.

    Examples
    --------
    >>> registry = AdapterRegistry()
    >>> registry.register("PostgreSQL", object())
    >>> registry.has("postgresql"), registry.registered_types()
    (True, ['postgresql'])
    """

    def __init__(self) -> None:
        self._adapters: dict[str, DatabaseAdapter] = {}

    def register(self, service_type: str | ServiceType, adapter: DatabaseAdapter) -> None:
        key = _normalize(service_type)
        self._adapters[key] = adapter
        log_debug("adapter_registered", type=key, adapter=type(adapter).__name__)

    def get(self, service_type: str | ServiceType) -> DatabaseAdapter:
        """Return the adapter for *service_type* or raise :class:`UnknownAdapter`."""

        key = _normalize(service_type)
        try:
            return self._adapters[key]
        except KeyError:
            raise UnknownAdapter(_display(service_type), self.registered_types()) from None

    def has(self, service_type: str | ServiceType) -> bool:
        return _normalize(service_type) in self._adapters

    def registered_types(self) -> list[str]:
        return list(self._adapters)

    def for_service(self, service: ServiceConfig) -> DatabaseAdapter:
        """Return the adapter matching the declared type of *service*."""

        return self.get(service.type)


def _display(service_type: str | ServiceType) -> str:
    return service_type.value if isinstance(service_type, ServiceType) else service_type


def _normalize(service_type: str | ServiceType) -> str:
    return _display(service_type).lower()
