"""Pytest configuration for test isolation.

The parser reads ``BANK_STATEMENTS_*`` variables from the environment (and
the CLI loads a local ``.env`` into it). A developer's shell or a previous
test must not leak settings such as ``BANK_STATEMENTS_STRICT`` into another
test, so every test starts with those variables removed.

The CLI configures the package logger once per process. Tests that invoke it
would otherwise leave a handler bound to a closed capture stream behind, so
the logger is restored after each test.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Make sure `packages/` and the repo root are importable so both
# `bank_statements` and `tests.helpers` resolve without an install.
_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]

from bank_statements import logging_setup  # noqa: E402

_ENV_PREFIX = "BANK_STATEMENTS_"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _reset_package_logger(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    logger = logging.getLogger("bank_statements")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
