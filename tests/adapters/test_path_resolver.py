"""Descriptor discovery tests: upward search, base-name priority, layer order."""

from __future__ import annotations

from pathlib import Path

from lib_compose_db.adapters.path_resolvers.default import DescriptorPathResolver


def test_finds_descriptor_in_parent_directory(tmp_path: Path, write_compose) -> None:
    base = write_compose("services: {}\n")
    nested = tmp_path / "src" / "pkg"
    nested.mkdir(parents=True)

    assert DescriptorPathResolver().layers(nested) == [str(base)]


def test_base_name_priority(tmp_path: Path, write_compose) -> None:
    write_compose("services: {}\n", name="compose.yaml")
    preferred = write_compose("services: {}\n", name="docker-compose.yaml")

    assert DescriptorPathResolver().find_base(tmp_path) == preferred


def test_layers_in_precedence_order(tmp_path: Path, write_compose) -> None:
    base = write_compose("services: {}\n")
    override = write_compose("services: {}\n", name="docker-compose.override.yml")
    env_layer = write_compose("services: {}\n", name="docker-compose.production.yml")

    assert DescriptorPathResolver(environment="production").layers(tmp_path) == [str(base), str(env_layer), str(override)]
    assert DescriptorPathResolver().layers(tmp_path) == [str(base), str(override)]


def test_environment_layer_ignored_when_missing(tmp_path: Path, write_compose) -> None:
    base = write_compose("services: {}\n")

    assert DescriptorPathResolver(environment="staging").layers(tmp_path) == [str(base)]


def test_compose_yaml_family_layers(tmp_path: Path, write_compose) -> None:
    base = write_compose("services: {}\n", name="compose.yaml")
    override = write_compose("services: {}\n", name="compose.override.yaml")

    assert DescriptorPathResolver().layers(tmp_path) == [str(base), str(override)]


def test_no_descriptor_returns_empty_list(tmp_path: Path) -> None:
    assert DescriptorPathResolver().layers(tmp_path) == []


def test_yaml_base_picks_up_canonical_override(tmp_path: Path, write_compose) -> None:
    base = write_compose("services: {}\n", name="docker-compose.yaml")
    override = write_compose("services: {}\n", name="docker-compose.override.yml")

    assert DescriptorPathResolver().layers(tmp_path) == [str(base), str(override)]


def test_compose_yaml_base_with_canonical_environment_layer(tmp_path: Path, write_compose) -> None:
    base = write_compose("services: {}\n", name="compose.yaml")
    env_layer = write_compose("services: {}\n", name="docker-compose.ci.yml")

    assert DescriptorPathResolver(environment="ci").layers(tmp_path) == [str(base), str(env_layer)]


def test_derived_override_name_wins_over_canonical(tmp_path: Path, write_compose) -> None:
    base = write_compose("services: {}\n", name="compose.yaml")
    derived = write_compose("services: {}\n", name="compose.override.yaml")
    write_compose("services: {}\n", name="docker-compose.override.yml")

    assert DescriptorPathResolver().layers(tmp_path) == [str(base), str(derived)]
