"""Tests for pg_named_args.config module."""

from __future__ import annotations

import logging
from dataclasses import replace

import pytest

from pg_named_args.config import (
    NamedArgsConfig,
    get_config,
    load_config_from_env,
    reset_config,
    set_config,
)
from pg_named_args.exceptions import ImproperConfigurationError


def test_defaults() -> None:
    config = NamedArgsConfig()

    assert config.enable_caching is True
    assert config.max_cache_size == 512
    assert config.allow_extra_fields is True
    assert config.log_level == "WARNING"
    assert config.log_format == "simple"
    assert config.validate() == []


def test_config_is_immutable() -> None:
    config = NamedArgsConfig()

    with pytest.raises(AttributeError):
        config.max_cache_size = 1  # type: ignore[misc]

    assert replace(config, max_cache_size=1).max_cache_size == 1


@pytest.mark.parametrize(
    "overrides,error",
    [
        ({"max_cache_size": -1}, "max_cache_size must be >= 0, got -1"),
        ({"log_level": "LOUD"}, "log_level must be one of"),
        ({"log_format": "xml"}, "log_format must be one of"),
    ],
)
def test_validate(overrides: dict[str, object], error: str) -> None:
    errors = NamedArgsConfig(**overrides).validate()  # type: ignore[arg-type]

    assert len(errors) == 1
    assert errors[0].startswith(error)


def test_lowercase_log_level_is_valid() -> None:
    assert NamedArgsConfig(log_level="debug").validate() == []


def test_load_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PG_NAMED_ARGS_ENABLE_CACHING", "false")
    monkeypatch.setenv("PG_NAMED_ARGS_MAX_CACHE_SIZE", "16")
    monkeypatch.setenv("PG_NAMED_ARGS_ALLOW_EXTRA_FIELDS", "0")
    monkeypatch.setenv("PG_NAMED_ARGS_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("PG_NAMED_ARGS_LOG_FORMAT", "structured")

    config = load_config_from_env()

    assert config == NamedArgsConfig(
        enable_caching=False,
        max_cache_size=16,
        allow_extra_fields=False,
        log_level="DEBUG",
        log_format="structured",
    )


@pytest.mark.parametrize("value", ["true", "1", "YES", "on", "enabled"])
def test_env_bool_truthy_values(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("PG_NAMED_ARGS_ENABLE_CACHING", value)

    assert load_config_from_env().enable_caching is True


def test_invalid_env_int_falls_back(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
    monkeypatch.setenv("PG_NAMED_ARGS_MAX_CACHE_SIZE", "lots")

    with caplog.at_level(logging.WARNING, logger="pg_named_args"):
        config = load_config_from_env()

    assert config.max_cache_size == 512
    assert "Invalid integer value for PG_NAMED_ARGS_MAX_CACHE_SIZE: lots" in caplog.text


def test_get_config_loads_once(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PG_NAMED_ARGS_MAX_CACHE_SIZE", "8")
    first = get_config()
    monkeypatch.setenv("PG_NAMED_ARGS_MAX_CACHE_SIZE", "9")

    assert get_config() is first
    assert first.max_cache_size == 8

    reset_config()
    assert get_config().max_cache_size == 9


def test_set_config() -> None:
    config = NamedArgsConfig(allow_extra_fields=False)

    set_config(config)

    assert get_config() is config


def test_set_config_rejects_invalid() -> None:
    with pytest.raises(ImproperConfigurationError) as exc_info:
        set_config(NamedArgsConfig(max_cache_size=-1, log_format="xml"))

    assert str(exc_info.value).startswith("max_cache_size must be >= 0, got -1; log_format must be one of")
    assert get_config() == NamedArgsConfig()


@pytest.mark.parametrize(
    "key,value,field,expected",
    [
        ("MAX_CACHE_SIZE", "-1", "max_cache_size", 512),
        ("LOG_LEVEL", "verbose", "log_level", "WARNING"),
        ("LOG_LEVEL", "debug", "log_level", "DEBUG"),
        ("LOG_FORMAT", "xml", "log_format", "simple"),
        ("LOG_FORMAT", "Structured", "log_format", "structured"),
    ],
)
def test_env_values_are_normalised_or_replaced(
    monkeypatch: pytest.MonkeyPatch, key: str, value: str, field: str, expected: object
) -> None:
    monkeypatch.setenv(f"PG_NAMED_ARGS_{key}", value)

    config = get_config()

    assert getattr(config, field) == expected
    assert config.validate() == []


def test_invalid_env_values_are_logged(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
    monkeypatch.setenv("PG_NAMED_ARGS_MAX_CACHE_SIZE", "-1")
    monkeypatch.setenv("PG_NAMED_ARGS_LOG_LEVEL", "verbose")

    with caplog.at_level(logging.WARNING, logger="pg_named_args"):
        load_config_from_env()

    assert "Value for PG_NAMED_ARGS_MAX_CACHE_SIZE must be >= 0, got -1" in caplog.text
    assert "Invalid value for PG_NAMED_ARGS_LOG_LEVEL: verbose" in caplog.text


def test_negative_env_cache_size_does_not_break_queries(monkeypatch: pytest.MonkeyPatch) -> None:
    from pg_named_args.query import query_args

    monkeypatch.setenv("PG_NAMED_ARGS_MAX_CACHE_SIZE", "-1")

    assert query_args("SELECT $a", Args={"a": 1}) == ("SELECT $1", [1])
