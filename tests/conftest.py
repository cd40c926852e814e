from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest

from pg_named_args.cache import clear_scan_cache
from pg_named_args.config import reset_config

here = Path(__file__).parent
root_path = here.parent


@pytest.fixture(autouse=True)
def isolate_global_state(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Give every test a fresh configuration, scan cache and package logger."""
    for key in ("ENABLE_CACHING", "MAX_CACHE_SIZE", "ALLOW_EXTRA_FIELDS", "LOG_LEVEL", "LOG_FORMAT"):
        monkeypatch.delenv(f"PG_NAMED_ARGS_{key}", raising=False)
    reset_config()
    clear_scan_cache()

    package_logger = logging.getLogger("pg_named_args")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    propagate = package_logger.propagate

    yield

    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
    package_logger.propagate = propagate
    reset_config()
    clear_scan_cache()
