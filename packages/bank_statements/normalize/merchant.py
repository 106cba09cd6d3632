"""Merchant identity recovered from a transaction description."""

from __future__ import annotations

import re

from ..models import Merchant
from ..values import TRACE_SUFFIX_RE

US_STATES = frozenset(
    """
    AL AK AZ AR CA CO CT DE FL GA HI ID IL IN IA KS KY LA ME MD MA MI MN MS MO
    MT NE NV NH NJ NM NY NC ND OH OK OR PA RI SC SD TN TX UT VT VA WA WV WI WY DC
    """.split()
)

_PREFIXES = (
    re.compile(r"^CHECKCARD\s+\d{4}\s+", re.I),
    re.compile(r"^PURCHASE\s+", re.I),
    re.compile(r"^POS\s+", re.I),
    re.compile(r"^DEBIT\s+", re.I),
    re.compile(r"^RECURRING\s+", re.I),
    re.compile(r"^PREAUTHORIZED\s+", re.I),
)
_SUFFIXES = (TRACE_SUFFIX_RE, re.compile(r"\s+CARD\s+\d{4}$", re.I))

_ONLINE_INDICATORS = (
    re.compile(r"\.com\b", re.I),
    re.compile(r"\.net\b", re.I),
    re.compile(r"\.org\b", re.I),
    re.compile(r"\*[A-Z0-9]+", re.I),
    re.compile(r"AMZN|AMAZON|PAYPAL|NETFLIX|SPOTIFY|DOORDASH|GRUBHUB|INSTACART", re.I),
    re.compile(r"GOOGLE\s*\*", re.I),
    re.compile(r"APPLE\.COM", re.I),
    re.compile(r"UBER\s*\*?EATS", re.I),
)

_PHONE_RE = re.compile(r"\b(\d{3}[-.]?\d{3}[-.]?\d{4})\b")
_CITY_STATE_SLASH_RE = re.compile(r"\b([A-Z][A-Za-z ]+)/([A-Z]{2})\b")
_TRAILING_STATE_RE = re.compile(r"^(.*?)\s+([A-Z]{2})\s*$")
_WIDE_GAP_RE = re.compile(r"\s{2,}|\t")
_NAME_RE = re.compile(r"^([A-Z][A-Z0-9\s&'.\-#]+?)(?:\s+\d|$)", re.I)
_SHORT_DATE_RE = re.compile(r"\d{2}/\d{2}")
_MASKED_DIGITS_RE = re.compile(r"\*+\d+")
_NAME_JUNK_RE = re.compile(r"[^A-Za-z0-9\s&'.\-#]")

# Checked in order; "UBER EATS" must precede "UBER".
_DISPLAY_NAMES: tuple[tuple[str, str], ...] = (
    ("AMZN", "Amazon"),
    ("AMAZON", "Amazon"),
    ("STARBUCKS", "Starbucks"),
    ("SBUX", "Starbucks"),
    ("MCDONALD", "McDonald's"),
    ("WALMART", "Walmart"),
    ("WAL-MART", "Walmart"),
    ("TARGET", "Target"),
    ("COSTCO", "Costco"),
    ("UBER EATS", "Uber Eats"),
    ("UBER", "Uber"),
    ("LYFT", "Lyft"),
    ("DOORDASH", "DoorDash"),
    ("GRUBHUB", "Grubhub"),
    ("NETFLIX", "Netflix"),
    ("SPOTIFY", "Spotify"),
    ("APPLE", "Apple"),
    ("GOOGLE", "Google"),
    ("PAYPAL", "PayPal"),
    ("VENMO", "Venmo"),
    ("ZELLE", "Zelle"),
)


def _strip_boilerplate(description: str) -> str:
    cleaned = description.strip()
    for pattern in _PREFIXES:
        cleaned = pattern.sub("", cleaned)
    for pattern in _SUFFIXES:
        cleaned = pattern.sub("", cleaned)
    return cleaned.strip()


def _city_state(text: str) -> tuple[str | None, str | None, str]:
    """Return ``(city, state, remaining_text)``.

    ``City/ST`` wins over a trailing ``... CITY ST``. For the trailing form the
    city is the last wide-gap separated chunk, else the last word.
    """

    m = _CITY_STATE_SLASH_RE.search(text)
    if m is not None and m.group(2) in US_STATES:
        remaining = (text[: m.start()] + text[m.end() :]).strip()
        return m.group(1).strip(), m.group(2), remaining

    m = _TRAILING_STATE_RE.match(text)
    if m is None or m.group(2) not in US_STATES:
        return None, None, text
    head = m.group(1).rstrip()
    chunks = [c for c in _WIDE_GAP_RE.split(head) if c.strip()]
    if len(chunks) > 1:
        return chunks[-1].strip(), m.group(2), " ".join(c.strip() for c in chunks[:-1])
    words = head.split()
    if len(words) > 1:
        return words[-1], m.group(2), " ".join(words[:-1])
    return (words[0] if words else None), m.group(2), ""


def _network(text: str) -> str | None:
    if re.search(r"\bVISA\b", text, re.I):
        return "VISA"
    if re.search(r"\bMASTERCARD\b", text, re.I) or re.search(r"\bMC\b", text):
        return "MASTERCARD"
    if re.search(r"\bAMEX\b|\bAMERICAN\s*EXPRESS\b", text, re.I):
        return "AMEX"
    if re.search(r"\bDISCOVER\b", text, re.I):
        return "DISCOVER"
    return None


def _name(text: str) -> str | None:
    name = _SHORT_DATE_RE.sub("", text)
    name = _MASKED_DIGITS_RE.sub("", name)
    name = _PHONE_RE.sub("", re.sub(r"\s{2,}", " ", name)).strip()
    m = _NAME_RE.match(name)
    if m is not None and len(m.group(1).strip()) > 2:
        return m.group(1).strip()
    words = _NAME_JUNK_RE.sub("", " ".join(name.split()[:5])).strip()
    return words if len(words) > 2 else None


def normalize_merchant_name(name: str | None) -> str | None:
    """Map well-known merchants to a display name; title-case anything else."""

    if name is None:
        return None
    upper = name.upper().strip()
    for key, display in _DISPLAY_NAMES:
        if re.search(rf"(?<![A-Z]){re.escape(key)}", upper):
            return display
    return " ".join(word[:1].upper() + word[1:].lower() for word in name.split())


def extract_merchant(description: str) -> Merchant:
    cleaned = _strip_boilerplate(description)
    phone_match = _PHONE_RE.search(cleaned)
    city, state, remaining = _city_state(cleaned)
    name = _name(remaining or cleaned)
    return Merchant(
        name=name,
        normalized_name=normalize_merchant_name(name),
        city=city,
        state=state,
        phone=phone_match.group(1) if phone_match else None,
        online=any(p.search(description) for p in _ONLINE_INDICATORS),
        network=_network(description),
    )


__all__ = ["US_STATES", "extract_merchant", "normalize_merchant_name"]
