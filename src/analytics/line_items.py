"""
Embedded Line-Item Codec

Orders carry their line items as a JSON-like string that uses single
quotes instead of double quotes:

    [{'productId': 'P1', 'quantity': 2, 'priceAtPurchase': 19.99}]

This module is the only place that payload is read or written. Decoding
failures always raise ``MalformedLineItems``; no caller substitutes an
empty list.
"""

import json
from typing import Any, Iterable, List, Union

from pydantic import ValidationError

from src.analytics.exceptions import MalformedLineItems
from src.analytics.schemas import LineItem


def normalize_quotes(raw: str) -> str:
    """Rewrite the single-quote convention into standard JSON."""
    return raw.replace("'", '"')


def decode_line_items(raw: Union[str, List[Any], None], order_id) -> List[LineItem]:
    """
    Decode one order's line-item payload.

    Args:
        raw: Stored payload, or an already-structured list
        order_id: Identifier of the owning order, used in error reports

    Returns:
        Line items in stored order

    Raises:
        MalformedLineItems: If the payload cannot be parsed or validated
    """
    if raw is None:
        raise MalformedLineItems(order_id, "payload is missing")

    if isinstance(raw, str):
        try:
            payload = json.loads(normalize_quotes(raw))
        except json.JSONDecodeError as e:
            raise MalformedLineItems(order_id, f"invalid JSON at position {e.pos}") from e
    else:
        payload = raw

    if not isinstance(payload, list):
        raise MalformedLineItems(order_id, f"expected a list, got {type(payload).__name__}")

    try:
        return [LineItem.model_validate(entry) for entry in payload]
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise MalformedLineItems(order_id, f"{location}: {first['msg']}") from e


def encode_line_items(items: Iterable[LineItem]) -> str:
    """
    Encode line items in the stored single-quote convention.

    Apostrophes inside values are written as ``\\u0027`` so the quote swap
    cannot produce an unbalanced string.
    """
    payload = [item.model_dump(by_alias=True) for item in items]
    return json.dumps(payload).replace("'", "\\u0027").replace('"', "'")
