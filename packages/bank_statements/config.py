"""Parser configuration threaded through every pipeline stage.

All tunables (layout gap thresholds, tolerances, confidence defaults, parser
identity) live on a single immutable :class:`ParserConfig`. Pipeline functions
accept it explicitly instead of reading module globals.

Environment overrides use the ``BANK_STATEMENTS_`` prefix followed by the
upper-cased field name, e.g. ``BANK_STATEMENTS_RECONCILIATION_TOLERANCE=0.05``.
The CLI loads a local ``.env`` with ``python-dotenv`` before reading them.
"""

from __future__ import annotations

import os
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

PARSER_NAME = "bank-statements"
PARSER_VERSION = "1.1.1"

_ENV_PREFIX = "BANK_STATEMENTS_"


class ParserConfig(BaseModel):
    """Immutable settings for one parse run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # ---- Layout reconstruction ------------------------------------------------
    row_tolerance: float = 3.0
    space_gap: float = 2.5
    column_gap: float = 18.0
    column_x_tolerance: float = 10.0
    merge_wrapped_rows: bool = True

    # ---- Line classification --------------------------------------------------
    max_continuation_length: int = 50
    combined_lookback_chars: int = 500

    # ---- Reconciliation -------------------------------------------------------
    reconciliation_tolerance: Decimal = Decimal("0.01")
    integrity_warning_threshold: Decimal = Decimal("1.00")
    integrity_error_threshold: Decimal = Decimal("100.00")

    # ---- Categorization -------------------------------------------------------
    confidence_default: float = 0.5
    confidence_fees: float = 0.95

    # ---- Identity / output ----------------------------------------------------
    institution: str = "Bank of America"
    parser_name: str = PARSER_NAME
    parser_version: str = PARSER_VERSION

    # ---- Run mode -------------------------------------------------------------
    strict: bool = False
    verbose: bool = False

    @field_validator("row_tolerance", "space_gap", "column_gap", "column_x_tolerance")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("layout thresholds must be non-negative")
        return v

    @field_validator("confidence_default", "confidence_fees")
    @classmethod
    def _unit_interval(cls, v: float) -> float:
        if 0.0 <= v <= 1.0:
            return v
        raise ValueError("confidence must be within [0,1]")

    @classmethod
    def from_env(cls, **overrides: Any) -> ParserConfig:
        """Build a config from ``BANK_STATEMENTS_*`` variables plus explicit overrides.

        Explicit keyword overrides win over the environment; ``None`` overrides
        are ignored so CLI options left unset fall through.
        """

        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.getenv(_ENV_PREFIX + name.upper())
            if raw is not None and raw.strip() != "":
                values[name] = raw.strip()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)


DEFAULT_CONFIG = ParserConfig()


__all__ = ["DEFAULT_CONFIG", "PARSER_NAME", "PARSER_VERSION", "ParserConfig"]
