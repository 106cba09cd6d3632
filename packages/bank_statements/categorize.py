"""Categorizer seam.

Categorization is a collaborator: any callable matching :class:`Categorizer`
can be plugged into the pipeline. The bundled :class:`DefaultCategorizer`
assigns nothing and reports ``Uncategorized`` at the configured default
confidence. Callers never see a categorizer exception; :func:`categorize_safely`
logs it and falls back to the default.
"""

from __future__ import annotations

from typing import Protocol

from .config import DEFAULT_CONFIG, ParserConfig
from .logging_setup import get_logger
from .models import Categorization, ChannelType

_logger = get_logger("bank_statements.categorize")

UNCATEGORIZED = "Uncategorized"
FEES_CATEGORY = "Fees"
FEES_SUBCATEGORY = "Bank Fee"
FEES_RULE_ID = "section-service-fees"


class Categorizer(Protocol):
    def __call__(
        self, description: str, channel_type: ChannelType | None = None
    ) -> Categorization: ...


class DefaultCategorizer:
    """Return ``Uncategorized`` for every description."""

    def __init__(self, config: ParserConfig = DEFAULT_CONFIG) -> None:
        self._confidence = config.confidence_default

    def __call__(
        self, description: str, channel_type: ChannelType | None = None
    ) -> Categorization:
        return Categorization(category=UNCATEGORIZED, confidence=self._confidence)


def fees_categorization(config: ParserConfig = DEFAULT_CONFIG) -> Categorization:
    return Categorization(
        category=FEES_CATEGORY,
        subcategory=FEES_SUBCATEGORY,
        confidence=config.confidence_fees,
        rule_id=FEES_RULE_ID,
        rationale="Listed under the statement's service fees section",
    )


def categorize_safely(
    categorizer: Categorizer,
    description: str,
    channel_type: ChannelType | None,
    *,
    config: ParserConfig = DEFAULT_CONFIG,
) -> Categorization:
    try:
        return categorizer(description, channel_type)
    except Exception as exc:  # noqa: BLE001 - categorizers are third-party code
        _logger.warning("Categorizer failed for %r: %s", description, exc)
        return DefaultCategorizer(config)(description, channel_type)


__all__ = [
    "FEES_CATEGORY",
    "FEES_RULE_ID",
    "FEES_SUBCATEGORY",
    "UNCATEGORIZED",
    "Categorizer",
    "DefaultCategorizer",
    "categorize_safely",
    "fees_categorization",
]
