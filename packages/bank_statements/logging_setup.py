"""Logging for the statement parser.

Everything the parser logs goes to the ``"bank_statements"`` logger tree and,
once configured, to a single stderr handler, so the JSON document written to
stdout is never interleaved with log output. Levels follow what a run needs
to explain itself:

- ``INFO``: per-file progress and the detected statement layout
- ``WARNING``: recovered anomalies, the same strings kept on
  ``Statement.warnings``
- ``DEBUG``: dropped lines, folded wrap rows and per-stage counts

``bank-statements parse`` calls :func:`configure_logging` once, with
``--verbose`` forcing ``DEBUG`` and ``BANK_STATEMENTS_LOG_LEVEL`` supplying the
default otherwise. Imported as a library, the package stays silent: modules
only ever call ``get_logger("bank_statements.<module>")``, which leaves a
``NullHandler`` on the package logger until the host configures logging.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "bank_statements"
_LEVEL_ENV_VAR = "BANK_STATEMENTS_LOG_LEVEL"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        # Numeric strings or standard level names (INFO/DEBUG/etc.).
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
    env_val = os.getenv(_LEVEL_ENV_VAR)
    if env_val:
        return _parse_level(env_val)
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    verbose: bool = False,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package root logger exactly once.

    Parameters
    ----------
    level:
        Logging level as ``int`` or level-name string. When ``None`` the
        ``BANK_STATEMENTS_LOG_LEVEL`` environment variable is consulted, then
        ``logging.INFO``.
    verbose:
        Force ``DEBUG`` regardless of ``level`` (the CLI ``--verbose`` flag).
    fmt:
        Optional format string. Defaults to
        ``"%(asctime)s %(name)s %(levelname)s %(message)s"``.
    stream:
        Output stream for the single ``StreamHandler`` (``sys.stderr``).
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)

    # NullHandlers installed by get_logger would otherwise linger.
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = logging.DEBUG if verbose else _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(
        logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s")
    )

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name with a library-safe default handler."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
