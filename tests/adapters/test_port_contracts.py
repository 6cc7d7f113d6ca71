"""Adapter contract tests for the default ports implementation.

Verify the default adapters keep satisfying the application-layer protocols so
the composition root can swap any of them for a test double.
"""

from __future__ import annotations

import pytest

from lib_compose_db.adapters.databases.postgres import PostgresAdapter
from lib_compose_db.adapters.databases.redis import RedisAdapter
from lib_compose_db.adapters.databases.sqlite import SQLiteAdapter
from lib_compose_db.adapters.dotenv.default import DotEnvEnvironmentProvider
from lib_compose_db.adapters.executors.compose import ComposeCommandExecutor
from lib_compose_db.adapters.file_loaders.descriptor import ComposeDescriptorParser
from lib_compose_db.adapters.path_resolvers.default import DescriptorPathResolver
from lib_compose_db.adapters.validators.sql import SqlSafetyValidator
from lib_compose_db.application import ports
from lib_compose_db.core import create_resolver


def test_filesystem_adapters_fulfil_protocols() -> None:
    assert isinstance(DescriptorPathResolver(), ports.DescriptorLocator)
    assert isinstance(ComposeDescriptorParser(), ports.DescriptorParser)
    assert isinstance(DotEnvEnvironmentProvider(), ports.EnvironmentProvider)
    assert isinstance(SqlSafetyValidator(), ports.QueryValidator)


def test_executor_fulfils_protocol() -> None:
    assert isinstance(ComposeCommandExecutor(), ports.CommandExecutor)


@pytest.mark.parametrize("adapter_cls", [PostgresAdapter, RedisAdapter, SQLiteAdapter])
def test_database_adapters_fulfil_protocol(adapter_cls, fake_executor, env_provider, validator) -> None:
    adapter = adapter_cls(fake_executor, env_provider, create_resolver(), validator)
    assert isinstance(adapter, ports.DatabaseAdapter)


def test_test_doubles_fulfil_protocols(fake_executor, env_provider, validator) -> None:
    assert isinstance(fake_executor, ports.CommandExecutor)
    assert isinstance(env_provider, ports.EnvironmentProvider)
    assert isinstance(validator, ports.QueryValidator)
