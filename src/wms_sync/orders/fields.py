"""Field resolution against heterogeneous source rows.

Every resolver walks an ordered alias list and returns the first value that
is present, non-null, well-typed and non-empty; otherwise ``None``.  A bad
value under one alias never fails the lookup, it just moves on to the next
alias.  Nothing here raises or does I/O.

Examples:
    >>> resolve_string({"NarNr": " PO-7 ", "OrderNumber": ""}, ("OrderNumber", "NarNr"))
    'PO-7'
    >>> resolve_number({"Boxes": "12.5"}, ("BoxCount", "Boxes"))
    Decimal('12.5')
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping, Sequence
from datetime import UTC, date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any

from dateutil import parser as date_parser

Record = Mapping[str, Any]

_TRUE_STRINGS = frozenset({"1", "true", "t", "yes", "y"})
_FALSE_STRINGS = frozenset({"0", "false", "f", "no", "n"})


def _candidates(record: Record, aliases: Sequence[str]) -> Iterator[Any]:
    for alias in aliases:
        value = record.get(alias)
        if value is not None:
            yield value


def _finite(value: Any) -> bool:
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, Decimal):
        return value.is_finite()
    return True


# =============================================================================
# Coercions (single value → typed value or None)
# =============================================================================


def coerce_string(value: Any, max_length: int | None = None) -> str | None:
    """Trimmed, truncated text; ``None`` for empty or non-text values."""
    if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
        return None
    if not _finite(value):
        return None
    text = str(value).strip()
    if not text:
        return None
    if max_length is not None and max_length > 0:
        text = text[:max_length]
    return text


def coerce_number(value: Any) -> Decimal | None:
    """Finite ``Decimal``; strings must be a complete number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value)) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    return None


def coerce_integer(value: Any) -> int | None:
    """Integral number only (``"42"``, ``42.0``); fractions are rejected."""
    number = coerce_number(value)
    if number is None or number != number.to_integral_value():
        return None
    return int(number)


def coerce_date(value: Any) -> datetime | None:
    """Naive UTC ``datetime`` from a datetime, date or parsable string."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        # a bare number would parse as a day of the current month
        if not text or text.isdigit():
            return None
        try:
            parsed = date_parser.isoparse(text)
        except ValueError:
            try:
                # slash dates read month-first, as the WMS client does
                parsed = date_parser.parse(text, dayfirst=False)
            except (ValueError, OverflowError):
                return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


def coerce_bool(value: Any) -> bool | None:
    """Tri-state flag: ``True``, ``False`` or ``None`` when unknown."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        if not _finite(value):
            return None
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return None


# =============================================================================
# Resolvers (record + ordered aliases → first usable value)
# =============================================================================


def resolve_string(record: Record, aliases: Sequence[str], max_length: int | None = None) -> str | None:
    for value in _candidates(record, aliases):
        text = coerce_string(value, max_length)
        if text is not None:
            return text
    return None


def resolve_number(record: Record, aliases: Sequence[str]) -> Decimal | None:
    for value in _candidates(record, aliases):
        number = coerce_number(value)
        if number is not None:
            return number
    return None


def resolve_integer(record: Record, aliases: Sequence[str]) -> int | None:
    for value in _candidates(record, aliases):
        number = coerce_integer(value)
        if number is not None:
            return number
    return None


def resolve_date(record: Record, aliases: Sequence[str]) -> datetime | None:
    for value in _candidates(record, aliases):
        parsed = coerce_date(value)
        if parsed is not None:
            return parsed
    return None


def resolve_bool(record: Record, aliases: Sequence[str]) -> bool | None:
    for value in _candidates(record, aliases):
        flag = coerce_bool(value)
        if flag is not None:
            return flag
    return None


__all__ = [
    "coerce_bool",
    "coerce_date",
    "coerce_integer",
    "coerce_number",
    "coerce_string",
    "resolve_bool",
    "resolve_date",
    "resolve_integer",
    "resolve_number",
    "resolve_string",
]
