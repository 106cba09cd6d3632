"""Field normalization: channel, bank references, merchant, sign, flags."""

from __future__ import annotations

from .channel import classify_channel, extract_bank_reference
from .merchant import extract_merchant, normalize_merchant_name
from .transaction import NormalizeContext, compute_flags, normalize_transaction, resolve_direction

__all__ = [
    "NormalizeContext",
    "classify_channel",
    "compute_flags",
    "extract_bank_reference",
    "extract_merchant",
    "normalize_merchant_name",
    "normalize_transaction",
    "resolve_direction",
]
