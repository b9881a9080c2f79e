"""Inline metric extraction from free-text order comments.

Warehouse staff annotate orders with ``#label: number`` tags, e.g.
``"urgent #art: 120,5 #pal: 3"``.  Labels are classified by prefix
(``art`` → articles, ``pal`` → pallets, ``box`` → boxes), the decimal
separator may be ``.`` or ``,``, and the last tag of a kind wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

_TAG = re.compile(r"#\s*([A-Za-z]+)\s*:\s*([-+]?\d+(?:[.,]\d+)?)")

_PREFIXES = (
    ("art", "article_count"),
    ("pal", "pallet_count"),
    ("box", "box_count"),
)


@dataclass(frozen=True)
class InlineMetrics:
    article_count: Decimal | None = None
    pallet_count: Decimal | None = None
    box_count: Decimal | None = None

    def __bool__(self) -> bool:
        return any(v is not None for v in (self.article_count, self.pallet_count, self.box_count))


def extract_inline_metrics(text: str | None) -> InlineMetrics:
    """Scan ``text`` for tagged counts; never raises."""
    if not text:
        return InlineMetrics()

    found: dict[str, Decimal] = {}
    for label, raw in _TAG.findall(text):
        label = label.lower()
        target = next((attr for prefix, attr in _PREFIXES if label.startswith(prefix)), None)
        if target is None:
            continue
        try:
            value = Decimal(raw.replace(",", "."))
        except InvalidOperation:
            continue
        if value.is_finite():
            found[target] = value

    return InlineMetrics(**found)


__all__ = ["InlineMetrics", "extract_inline_metrics"]
