"""Unit tests for order decoding and validation.

Covers:
- decode_order_payload: bytes/str input, malformed JSON, non-object JSON,
  non-UTF-8 bytes, Decimal parsing of fractional numbers.
- validate_order: a valid payload yields an OrderDTO; every violation is
  reported with its path and code, not only the first.
- Field rules: UUID, phone, e-mail, currency, ranges, column bounds, decimal
  places, blanks, item list, duplicate chrt_id.
"""

from __future__ import annotations

import json
from decimal import Decimal

import pytest

from modules.orders.constants import ViolationCode
from modules.orders.dtos import OrderDTO
from modules.orders.exceptions import OrderDecodeError, OrderValidationError
from modules.orders.validation import (
    collect_violations,
    decode_order_payload,
    parse_order_message,
    validate_order,
)

pytestmark = pytest.mark.unit


def _codes(raw) -> dict[str, str]:
    return {v.path: v.code for v in collect_violations(raw)}


# ===========================================================================
# Decoding
# ===========================================================================


class TestDecode:
    def test_bytes_and_str_accepted(self, order_payload):
        text = json.dumps(order_payload())
        assert decode_order_payload(text) == decode_order_payload(text.encode())

    def test_fractional_numbers_become_decimal(self, order_payload):
        payload = order_payload()
        payload["payment"]["amount"] = 18.17
        raw = decode_order_payload(json.dumps(payload))
        assert raw["payment"]["amount"] == Decimal("18.17")

    @pytest.mark.parametrize(
        "payload",
        [b"", b"{", b"not json", b"\xff\xfe\x00", b'{"order_uid": }'],
    )
    def test_malformed_payload(self, payload):
        with pytest.raises(OrderDecodeError):
            decode_order_payload(payload)

    @pytest.mark.parametrize("payload", [b"[]", b"42", b'"text"', b"null"])
    def test_non_object_payload(self, payload):
        with pytest.raises(OrderDecodeError, match="JSON object"):
            decode_order_payload(payload)

    def test_decode_error_is_not_validation_error(self):
        with pytest.raises(OrderDecodeError) as exc_info:
            parse_order_message(b"{broken")
        assert not isinstance(exc_info.value, OrderValidationError)


# ===========================================================================
# Valid orders
# ===========================================================================


class TestValidOrder:
    def test_sample_order_is_valid(self, order_payload):
        order = validate_order(order_payload())
        assert isinstance(order, OrderDTO)
        assert order.items[0].chrt_id == 9934930
        assert order.payment.amount == Decimal("1817")
        assert order.date_created.tzinfo is not None

    def test_parse_order_message(self, order_message):
        order = parse_order_message(order_message())
        assert order.order_uid == "b563feb7-b2b8-4b6a-9f5d-3f1c2a4e7d10"

    def test_uppercase_uuid_accepted(self, order_payload):
        uid = "B563FEB7-B2B8-4B6A-9F5D-3F1C2A4E7D10"
        assert validate_order(order_payload(order_uid=uid)).order_uid == uid

    def test_blank_internal_signature_accepted(self, order_payload):
        order = validate_order(order_payload(internal_signature=""))
        assert order.internal_signature == ""

    def test_zero_amounts_accepted(self, order_payload):
        payload = order_payload(sm_id=0)
        payload["payment"].update(amount=0, delivery_cost=0, goods_total=0)
        payload["items"][0].update(price=0, total_price=0, sale=0, status=0)
        assert validate_order(payload).payment.amount == 0

    def test_optional_email_and_sale(self, order_payload):
        payload = order_payload()
        del payload["delivery"]["email"]
        del payload["items"][0]["sale"]
        order = validate_order(payload)
        assert order.delivery.email == ""
        assert order.items[0].sale == Decimal("0")

    def test_item_order_preserved(self, order_payload):
        payload = order_payload()
        second = dict(payload["items"][0], chrt_id=1)
        payload["items"].append(second)
        order = validate_order(payload)
        assert [item.chrt_id for item in order.items] == [9934930, 1]


# ===========================================================================
# Invalid orders
# ===========================================================================


class TestRequiredFields:
    def test_empty_uid_and_empty_items_both_reported(self, order_payload):
        with pytest.raises(OrderValidationError) as exc_info:
            validate_order(order_payload(order_uid="", items=[]))
        codes = {v.path: v.code for v in exc_info.value.violations}
        assert codes["order_uid"] == ViolationCode.MISSING
        assert codes["items"] == ViolationCode.MISSING

    @pytest.mark.parametrize(
        "field", ["track_number", "entry", "customer_id", "shardkey", "oof_shard"]
    )
    def test_blank_required_string(self, order_payload, field):
        assert _codes(order_payload(**{field: "   "})) == {field: ViolationCode.MISSING}

    def test_absent_internal_signature_key(self, order_payload):
        payload = order_payload()
        del payload["internal_signature"]
        assert _codes(payload) == {"internal_signature": ViolationCode.MISSING}

    def test_missing_nested_objects(self, order_payload):
        payload = order_payload()
        del payload["delivery"]
        payload["payment"] = None
        codes = _codes(payload)
        assert codes == {
            "delivery": ViolationCode.MISSING,
            "payment": ViolationCode.MISSING,
        }

    def test_missing_items_key(self, order_payload):
        payload = order_payload()
        del payload["items"]
        assert _codes(payload) == {"items": ViolationCode.MISSING}

    def test_all_violations_collected(self, order_payload):
        payload = order_payload(order_uid="not-a-uuid", sm_id=-1, locale="x")
        payload["delivery"]["phone"] = "+1 555"
        payload["payment"]["currency"] = "GBP"
        payload["items"][0]["price"] = -5

        with pytest.raises(OrderValidationError) as exc_info:
            validate_order(payload)

        assert exc_info.value.paths == {
            "order_uid",
            "sm_id",
            "locale",
            "delivery.phone",
            "payment.currency",
            "items[0].price",
        }
        assert "payment.currency: not_allowed" in str(exc_info.value)


class TestFieldRules:
    @pytest.mark.parametrize(
        "uid",
        [
            "123",
            "b563feb7b2b84b6a9f5d3f1c2a4e7d10",
            "b563feb7-b2b8-4b6a-9f5d-3f1c2a4e7d1",
            "g563feb7-b2b8-4b6a-9f5d-3f1c2a4e7d10",
        ],
    )
    def test_order_uid_must_be_uuid(self, order_payload, uid):
        assert _codes(order_payload(order_uid=uid)) == {
            "order_uid": ViolationCode.BAD_FORMAT
        }

    def test_wrong_types(self, order_payload):
        payload = order_payload(sm_id="99", track_number=123)
        payload["payment"]["amount"] = "1817"
        payload["items"][0]["status"] = True
        assert _codes(payload) == {
            "sm_id": ViolationCode.BAD_TYPE,
            "track_number": ViolationCode.BAD_TYPE,
            "payment.amount": ViolationCode.BAD_TYPE,
            "items[0].status": ViolationCode.BAD_TYPE,
        }

    def test_invalid_timestamp(self, order_payload):
        assert _codes(order_payload(date_created="yesterday")) == {
            "date_created": ViolationCode.BAD_FORMAT
        }

    @pytest.mark.parametrize(
        "phone", ["9720000000", "972000000001", "+9720000000", "97200000a00"]
    )
    def test_phone_must_be_eleven_digits(self, order_payload, phone):
        payload = order_payload()
        payload["delivery"]["phone"] = phone
        assert _codes(payload) == {"delivery.phone": ViolationCode.BAD_FORMAT}

    def test_invalid_email(self, order_payload):
        payload = order_payload()
        payload["delivery"]["email"] = "not-an-email"
        assert _codes(payload) == {"delivery.email": ViolationCode.BAD_FORMAT}

    def test_zip_rules(self, order_payload):
        payload = order_payload()
        payload["delivery"]["zip"] = "12-345"
        assert _codes(payload) == {"delivery.zip": ViolationCode.BAD_FORMAT}
        payload["delivery"]["zip"] = "12345678901"
        assert _codes(payload) == {"delivery.zip": ViolationCode.OUT_OF_RANGE}

    def test_short_delivery_name(self, order_payload):
        payload = order_payload()
        payload["delivery"]["name"] = "Al"
        assert _codes(payload) == {"delivery.name": ViolationCode.OUT_OF_RANGE}

    @pytest.mark.parametrize("currency", ["usd", "GBP", "BTC"])
    def test_currency_enumerated(self, order_payload, currency):
        payload = order_payload()
        payload["payment"]["currency"] = currency
        assert _codes(payload) == {"payment.currency": ViolationCode.NOT_ALLOWED}

    @pytest.mark.parametrize(
        "field,value", [("sale", 101), ("status", 101), ("sale", -1)]
    )
    def test_percent_bounds(self, order_payload, field, value):
        payload = order_payload()
        payload["items"][0][field] = value
        assert _codes(payload) == {f"items[0].{field}": ViolationCode.OUT_OF_RANGE}

    def test_negative_chrt_id(self, order_payload):
        payload = order_payload()
        payload["items"][0]["chrt_id"] = -1
        assert _codes(payload) == {"items[0].chrt_id": ViolationCode.OUT_OF_RANGE}

    @pytest.mark.parametrize(
        "field,value", [("chrt_id", 2**63), ("nm_id", 2**64)]
    )
    def test_item_ids_bounded_by_bigint(self, order_payload, field, value):
        payload = order_payload()
        payload["items"][0][field] = value
        assert _codes(payload) == {f"items[0].{field}": ViolationCode.OUT_OF_RANGE}

    @pytest.mark.parametrize(
        "field,value", [("payment_dt", 2**63), ("goods_total", 2**31)]
    )
    def test_payment_integers_bounded(self, order_payload, field, value):
        payload = order_payload()
        payload["payment"][field] = value
        assert _codes(payload) == {f"payment.{field}": ViolationCode.OUT_OF_RANGE}

    def test_sm_id_bounded_by_integer_column(self, order_payload):
        assert _codes(order_payload(sm_id=2**31)) == {
            "sm_id": ViolationCode.OUT_OF_RANGE
        }

    def test_largest_column_values_accepted(self, order_payload):
        payload = order_payload(sm_id=2**31 - 1)
        payload["items"][0]["chrt_id"] = 2**63 - 1
        payload["payment"]["payment_dt"] = 2**63 - 1
        assert collect_violations(payload) == []

    @pytest.mark.parametrize(
        "section,field,value",
        [
            ("payment", "amount", Decimal("1817.005")),
            ("payment", "custom_fee", Decimal("0.001")),
            ("items", "price", Decimal("453.123")),
            ("items", "sale", Decimal("33.333")),
        ],
    )
    def test_too_many_decimal_places(self, order_payload, section, field, value):
        payload = order_payload()
        target = payload["items"][0] if section == "items" else payload[section]
        target[field] = value
        path = "items[0]" if section == "items" else section
        assert _codes(payload) == {f"{path}.{field}": ViolationCode.BAD_FORMAT}

    def test_too_many_integer_digits(self, order_payload):
        payload = order_payload()
        payload["payment"]["amount"] = Decimal("1000000000000")
        assert _codes(payload) == {"payment.amount": ViolationCode.OUT_OF_RANGE}

    @pytest.mark.parametrize(
        "value", [Decimal("999999999999.99"), Decimal("1817.50"), Decimal("1817.500")]
    )
    def test_money_that_fits_the_column_accepted(self, order_payload, value):
        payload = order_payload()
        payload["payment"]["amount"] = value
        assert collect_violations(payload) == []

    def test_duplicate_chrt_id(self, order_payload):
        payload = order_payload()
        payload["items"].append(dict(payload["items"][0]))
        assert _codes(payload) == {"items[1].chrt_id": ViolationCode.DUPLICATE}

    def test_item_must_be_object(self, order_payload):
        assert _codes(order_payload(items=["oops"])) == {
            "items[0]": ViolationCode.BAD_TYPE
        }

    def test_items_must_be_list(self, order_payload):
        assert _codes(order_payload(items={"chrt_id": 1})) == {
            "items": ViolationCode.BAD_TYPE
        }

    def test_violation_serializes_for_logging(self, order_payload):
        with pytest.raises(OrderValidationError) as exc_info:
            validate_order(order_payload(order_uid=""))
        assert exc_info.value.violations[0].as_dict() == {
            "path": "order_uid",
            "code": ViolationCode.MISSING,
            "message": "field is required",
        }
