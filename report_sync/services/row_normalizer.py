"""Convert raw report rows into canonical affiliate records.

Leaf values arrive either as plain scalars or, depending on the decoder, as a
single-field wrapper around a text node (``{"#text": "..."}``) or a one-element
list. ``parse_field`` maps every raw value onto a small closed set of shapes
and ``extract_text`` is the one total function reading text back out of them.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Union

from report_sync.integrations.base import RawRow

TEXT_NODE_KEY = "#text"
KEY_FIELD = "sub_id"
DEFAULT_KEY_PREFIX = "SPK"

_NOT_WRAPPED = object()

# Metrics beyond this magnitude (decimal exponent) are treated as garbage.
MAX_METRIC_EXPONENT = 18


@dataclass(frozen=True, slots=True)
class Scalar:
    text: str


@dataclass(frozen=True, slots=True)
class SingleWrapper:
    inner: "FieldValue"


FieldValue = Union[Scalar, SingleWrapper]


@dataclass(frozen=True, slots=True)
class AffiliateRecord:
    key: str
    clicks: int = 0
    conversions: int = 0
    revenue: Decimal = Decimal("0")


def key_pattern(prefix: str = DEFAULT_KEY_PREFIX) -> re.Pattern[str]:
    """``PREFIX-XXXX-XXXX`` with alphanumeric groups, case-insensitive."""
    return re.compile(rf"{re.escape(prefix)}-[A-Z0-9]{{4}}-[A-Z0-9]{{4}}", re.IGNORECASE | re.ASCII)


DEFAULT_KEY_PATTERN = key_pattern()


def _wrapped_payload(raw: Any) -> Any:
    if isinstance(raw, Mapping) and len(raw) == 1 and TEXT_NODE_KEY in raw:
        return raw[TEXT_NODE_KEY]
    if isinstance(raw, (list, tuple)) and len(raw) == 1:
        return raw[0]
    return _NOT_WRAPPED


def parse_field(raw: Any, depth: int = 1) -> Optional[FieldValue]:
    """Classify a raw value; ``None`` for shapes that carry no usable text.

    Unwraps at most ``depth`` wrapper levels. bool is rejected even though it
    is an int subclass.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        return Scalar(raw)
    if isinstance(raw, (int, float, Decimal)):
        return Scalar(str(raw))
    if depth > 0:
        payload = _wrapped_payload(raw)
        if payload is not _NOT_WRAPPED:
            inner = parse_field(payload, depth - 1)
            return SingleWrapper(inner) if inner is not None else None
    return None


def extract_text(value: Optional[FieldValue]) -> str:
    if isinstance(value, Scalar):
        return value.text.strip()
    if isinstance(value, SingleWrapper):
        return extract_text(value.inner)
    return ""


def text_of(raw: Any) -> str:
    return extract_text(parse_field(raw))


def _to_decimal(raw: Any) -> Decimal:
    text = text_of(raw)
    if not text:
        return Decimal("0")
    try:
        value = Decimal(text)
    except InvalidOperation:
        return Decimal("0")
    if not value.is_finite() or (value and abs(value.adjusted()) > MAX_METRIC_EXPONENT):
        return Decimal("0")
    return value


def _to_int(raw: Any) -> int:
    return int(_to_decimal(raw))


def normalize_row(raw: RawRow, pattern: re.Pattern[str] = DEFAULT_KEY_PATTERN) -> Optional[AffiliateRecord]:
    """Canonical record for ``raw``, or ``None`` when its key is not a canonical identifier.

    Missing or non-numeric metrics default to zero; they never drop the row.
    """
    if not isinstance(raw, Mapping):
        return None
    key = text_of(raw.get(KEY_FIELD))
    if not key or pattern.fullmatch(key) is None:
        return None
    return AffiliateRecord(
        key=key,
        clicks=_to_int(raw.get("clicks")),
        conversions=_to_int(raw.get("conversions")),
        revenue=_to_decimal(raw.get("revenue")),
    )


__all__ = [
    "Scalar",
    "SingleWrapper",
    "FieldValue",
    "AffiliateRecord",
    "key_pattern",
    "DEFAULT_KEY_PATTERN",
    "parse_field",
    "extract_text",
    "text_of",
    "normalize_row",
]
