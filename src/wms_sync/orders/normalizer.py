"""
Record normalization: raw WMS row → :class:`Order`.

Two validity gates apply before anything else is resolved: the row needs an
order key and an arrival date.  Rows failing either gate are filtered out,
which is an expected, high-volume outcome and is only logged at DEBUG with a
reason code.

Inline ``#art:/#pal:/#box:`` tags in the comment override the dedicated
count columns when present.

Example:
    >>> order = normalize({"NarID": "X1", "ArrivalDate": "2024-05-01", "Comment": "#pal: 3"})
    >>> order.order_key, order.pallet_count
    ('X1', Decimal('3'))
    >>> normalize({"Comment": "hello"}) is None
    True

Tags:
    wms-sync, normalization, validation, orders
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from wms_sync.logging import get_logger
from wms_sync.orders import aliases
from wms_sync.orders.fields import (
    resolve_bool,
    resolve_date,
    resolve_integer,
    resolve_number,
    resolve_string,
)
from wms_sync.orders.inline_metrics import extract_inline_metrics
from wms_sync.orders.models import COLUMNS_BY_NAME, INT_MAX, INT_MIN, Order

log = get_logger(__name__)

REJECT_MISSING_KEY = "MISSING_ORDER_KEY"
REJECT_MISSING_ARRIVAL = "MISSING_ARRIVAL_DATE"


def _max_len(column: str) -> int | None:
    return COLUMNS_BY_NAME[column].length


def _numeric_order_id(raw: Mapping[str, Any]) -> int | None:
    # a numeric key too wide for the INT column is left out, not rejected
    value = resolve_integer(raw, aliases.NUMERIC_ORDER_ID)
    if value is None or not INT_MIN <= value <= INT_MAX:
        return None
    return value


def _reject_reason(raw: Mapping[str, Any]) -> str | None:
    if resolve_string(raw, aliases.ORDER_KEY, _max_len("NarID")) is None:
        return REJECT_MISSING_KEY
    if resolve_date(raw, aliases.ARRIVAL_DATE) is None:
        return REJECT_MISSING_ARRIVAL
    return None


def normalize(raw: Mapping[str, Any]) -> Order | None:
    """Normalize one raw row; ``None`` when a validity gate fails."""
    order_key = resolve_string(raw, aliases.ORDER_KEY, _max_len("NarID"))
    if order_key is None:
        return None

    arrival_date = resolve_date(raw, aliases.ARRIVAL_DATE)
    if arrival_date is None:
        return None

    comment = resolve_string(raw, aliases.COMMENT, _max_len("Comment"))
    customer_name = resolve_string(raw, aliases.CUSTOMER_NAME, _max_len("CustomerName"))
    importer = resolve_string(raw, aliases.IMPORTER, _max_len("Importer"))
    if importer is None and customer_name is not None:
        importer = customer_name[: _max_len("Importer")]

    inline = extract_inline_metrics(comment)
    article_count = resolve_number(raw, aliases.ARTICLE_COUNT)
    box_count = resolve_number(raw, aliases.BOX_COUNT)
    pallet_count = resolve_number(raw, aliases.PALLET_COUNT)

    return Order(
        order_key=order_key,
        arrival_date=arrival_date,
        expected_date=arrival_date,
        numeric_order_id=_numeric_order_id(raw),
        order_type_code=resolve_string(raw, aliases.ORDER_TYPE_CODE, _max_len("OrderTypeCode")),
        order_number=resolve_string(raw, aliases.ORDER_NUMBER, _max_len("OrderNumber")),
        customer_code=resolve_string(raw, aliases.CUSTOMER_CODE, _max_len("CustomerCode")),
        customer_name=customer_name,
        importer=importer,
        article=resolve_string(raw, aliases.ARTICLE, _max_len("Article")),
        article_description=resolve_string(
            raw, aliases.ARTICLE_DESCRIPTION, _max_len("ArticleDescription")
        ),
        article_count=inline.article_count if inline.article_count is not None else article_count,
        box_count=inline.box_count if inline.box_count is not None else box_count,
        pallet_count=inline.pallet_count if inline.pallet_count is not None else pallet_count,
        order_date=resolve_date(raw, aliases.ORDER_DATE),
        is_realized=resolve_string(raw, aliases.IS_REALIZED, _max_len("IsRealized")),
        order_status=resolve_string(raw, aliases.ORDER_STATUS, _max_len("OrderStatus")),
        description=comment,
        comment=comment,
        source_reference=resolve_string(raw, aliases.SOURCE_REFERENCE, _max_len("SourceReference")),
        source_updated_at=resolve_date(raw, aliases.SOURCE_UPDATED_AT),
        scheduled_start=resolve_date(raw, aliases.SCHEDULED_START),
        original_order_number=resolve_string(
            raw, aliases.ORIGINAL_ORDER_NUMBER, _max_len("OriginalOrderNumber")
        ),
        can_proceed=resolve_bool(raw, aliases.CAN_PROCEED),
    )


@dataclass
class NormalizeResult:
    """Outcome of normalizing one fetched batch."""

    orders: list[Order] = field(default_factory=list)
    rejected: Counter = field(default_factory=Counter)

    @property
    def rejected_total(self) -> int:
        return sum(self.rejected.values())

    @property
    def skipped_missing_key(self) -> int:
        return self.rejected[REJECT_MISSING_KEY]

    @property
    def skipped_missing_arrival(self) -> int:
        return self.rejected[REJECT_MISSING_ARRIVAL]


def normalize_records(records: Iterable[Mapping[str, Any]]) -> NormalizeResult:
    """Normalize a batch, tallying rejects by reason code."""
    result = NormalizeResult()
    for raw in records:
        order = normalize(raw)
        if order is not None:
            result.orders.append(order)
            continue
        reason = _reject_reason(raw)
        result.rejected[reason] += 1
        log.debug("orders.normalize.dropped", reason_code=reason, columns=sorted(raw)[:20])
    return result


__all__ = [
    "NormalizeResult",
    "REJECT_MISSING_ARRIVAL",
    "REJECT_MISSING_KEY",
    "normalize",
    "normalize_records",
]
