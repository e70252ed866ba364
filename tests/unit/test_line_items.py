"""
Unit Tests - Line-Item Codec
"""
import pytest

from src.analytics.exceptions import MalformedLineItems
from src.analytics.line_items import decode_line_items, encode_line_items, normalize_quotes
from src.analytics.schemas import LineItem


class TestDecodeLineItems:
    """Tests for decode_line_items"""

    def test_decodes_single_quoted_payload(self):
        """Stored single-quote convention decodes into records"""
        raw = "[{'productId': 'P1', 'quantity': 2, 'priceAtPurchase': 19.99}, {'productId': 'P2', 'quantity': 1, 'priceAtPurchase': 5}]"

        items = decode_line_items(raw, "O1")

        assert items == [
            LineItem(product_id="P1", quantity=2, price_at_purchase=19.99),
            LineItem(product_id="P2", quantity=1, price_at_purchase=5.0),
        ]

    def test_decodes_standard_json(self):
        """Payloads already in double quotes decode unchanged"""
        raw = '[{"productId": "P9", "quantity": 4, "priceAtPurchase": 2.5}]'

        items = decode_line_items(raw, "O1")

        assert items[0].product_id == "P9"
        assert items[0].quantity == 4

    def test_empty_list(self):
        """An order with no lines decodes to an empty list"""
        assert decode_line_items("[]", "O1") == []

    def test_accepts_structured_list(self):
        """Already-decoded lists are validated the same way"""
        items = decode_line_items([{"productId": "P1", "quantity": 1, "priceAtPurchase": 3.0}], "O1")
        assert items[0].price_at_purchase == 3.0

    def test_numeric_product_id_becomes_string(self):
        """Numeric ids are normalised to their string form"""
        items = decode_line_items("[{'productId': 101, 'quantity': 1, 'priceAtPurchase': 3.0}]", "O1")
        assert items[0].product_id == "101"

    def test_invalid_json_names_order(self):
        """Unparseable payloads fail with the offending order id"""
        with pytest.raises(MalformedLineItems) as exc_info:
            decode_line_items("[{'productId': 'P1', 'quantity': }]", "O42")

        assert exc_info.value.order_id == "O42"
        assert "O42" in exc_info.value.message

    def test_non_list_payload(self):
        """A bare object is not a line-item list"""
        with pytest.raises(MalformedLineItems) as exc_info:
            decode_line_items("{'productId': 'P1', 'quantity': 1, 'priceAtPurchase': 1.0}", "O7")

        assert "expected a list" in exc_info.value.reason

    def test_missing_field(self):
        """Entries without a price are rejected"""
        with pytest.raises(MalformedLineItems) as exc_info:
            decode_line_items("[{'productId': 'P1', 'quantity': 1}]", "O7")

        assert "priceAtPurchase" in exc_info.value.reason

    def test_zero_quantity_rejected(self):
        """Quantities start at 1"""
        with pytest.raises(MalformedLineItems):
            decode_line_items("[{'productId': 'P1', 'quantity': 0, 'priceAtPurchase': 1.0}]", "O7")

    def test_missing_payload(self):
        """A null payload is malformed, not empty"""
        with pytest.raises(MalformedLineItems):
            decode_line_items(None, "O7")


class TestEncodeLineItems:
    """Tests for encode_line_items"""

    def test_uses_single_quotes(self):
        """Encoded payload follows the stored convention"""
        encoded = encode_line_items([LineItem(product_id="P1", quantity=2, price_at_purchase=9.5)])

        assert '"' not in encoded
        assert "'productId': 'P1'" in encoded

    def test_round_trip(self):
        """Encoding then decoding reproduces the records"""
        items = [
            LineItem(product_id="P1", quantity=3, price_at_purchase=19.99),
            LineItem(product_id="P2", quantity=1, price_at_purchase=0.1),
        ]

        assert decode_line_items(encode_line_items(items), "O1") == items

    @pytest.mark.parametrize("product_id", ["O'Neil-1", "'", 'say "hi"', "it's \"quoted\""])
    def test_round_trip_with_quotes_in_values(self, product_id):
        """Quote characters inside values survive the single-quote convention"""
        items = [LineItem(product_id=product_id, quantity=1, price_at_purchase=2.5)]

        encoded = encode_line_items(items)

        assert '"' not in encoded
        assert decode_line_items(encoded, "O1") == items


def test_normalize_quotes():
    assert normalize_quotes("{'a': 'b'}") == '{"a": "b"}'
