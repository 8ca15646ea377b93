"""Decoding and validation of inbound order messages.

Validation is table driven: every wire field is listed once in a rule
table with the constraints it must satisfy, and a single routine walks the
tables collecting *all* violations.  Only a payload with no violations is
turned into an ``OrderDTO``.

Diagnostic codes (``ViolationCode``):
- ``missing``: required field absent, null or blank; empty ``items``.
- ``bad_type``: wrong JSON type (e.g. a string where a number belongs).
- ``bad_format``: right type, wrong shape (UUID, phone, e-mail, timestamp,
  more decimal places than the store keeps).
- ``out_of_range``: numeric bound, column range or string length violated.
- ``not_allowed``: value outside an enumerated set.
- ``duplicate``: repeated ``chrt_id`` within one order.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from modules.orders.constants import (
    BIGINT_MAX,
    INT_MAX,
    MONEY_DECIMAL_PLACES,
    MONEY_MAX_DIGITS,
    PERCENT_MAX,
    PHONE_DIGITS,
    SALE_MAX_DIGITS,
    Currency,
    ViolationCode,
)
from modules.orders.dtos import OrderDTO
from modules.orders.exceptions import (
    FieldViolation,
    OrderDecodeError,
    OrderValidationError,
)

# A check returns ``None`` when the value passes, else ``(code, message)``.
Failure = Tuple[str, str]
Check = Callable[[Any], Optional[Failure]]

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
PHONE_PATTERN = re.compile(rf"^\d{{{PHONE_DIGITS}}}$", re.ASCII)
ALPHANUM_PATTERN = re.compile(r"^[A-Za-z0-9]+$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def is_string(value: Any) -> Optional[Failure]:
    if not isinstance(value, str):
        return ViolationCode.BAD_TYPE, "expected a string"
    return None


def is_integer(value: Any) -> Optional[Failure]:
    if isinstance(value, bool) or not isinstance(value, int):
        return ViolationCode.BAD_TYPE, "expected an integer"
    return None


def is_number(value: Any) -> Optional[Failure]:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return ViolationCode.BAD_TYPE, "expected a number"
    if isinstance(value, (float, Decimal)) and not Decimal(str(value)).is_finite():
        return ViolationCode.BAD_TYPE, "expected a finite number"
    return None


def between(low: Optional[int] = None, high: Optional[int] = None) -> Check:
    def check(value: Any) -> Optional[Failure]:
        if low is not None and value < low:
            return ViolationCode.OUT_OF_RANGE, f"must be >= {low}"
        if high is not None and value > high:
            return ViolationCode.OUT_OF_RANGE, f"must be <= {high}"
        return None

    return check


def fits_decimal(max_digits: int, places: int) -> Check:
    """Value must fit a ``NUMERIC(max_digits, places)`` column unrounded."""
    step = Decimal(1).scaleb(-places)

    def check(value: Any) -> Optional[Failure]:
        number = Decimal(value) if isinstance(value, int) else Decimal(str(value))
        if number.adjusted() >= max_digits - places:
            return (
                ViolationCode.OUT_OF_RANGE,
                f"must have at most {max_digits - places} integer digits",
            )
        if number != number.quantize(step):
            return ViolationCode.BAD_FORMAT, f"at most {places} decimal places"
        return None

    return check


def length(low: int = 1, high: Optional[int] = None) -> Check:
    def check(value: str) -> Optional[Failure]:
        if len(value) < low or (high is not None and len(value) > high):
            bound = f"{low}..{high}" if high is not None else f">= {low}"
            return ViolationCode.OUT_OF_RANGE, f"length must be {bound}"
        return None

    return check


def matches(pattern: re.Pattern[str], description: str) -> Check:
    def check(value: str) -> Optional[Failure]:
        if not pattern.match(value):
            return ViolationCode.BAD_FORMAT, f"must be {description}"
        return None

    return check


def one_of(choices: Iterable[str]) -> Check:
    allowed = tuple(choices)

    def check(value: str) -> Optional[Failure]:
        if value not in allowed:
            return ViolationCode.NOT_ALLOWED, f"must be one of {', '.join(allowed)}"
        return None

    return check


def is_timestamp(value: str) -> Optional[Failure]:
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return ViolationCode.BAD_FORMAT, "must be an ISO 8601 timestamp"
    return None


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rule:
    """Constraints for one field.  Checks run in order; the first failure wins."""

    field: str
    checks: Tuple[Check, ...]
    required: bool = True
    allow_blank: bool = False


def rule(field: str, *checks: Check, **options: bool) -> Rule:
    return Rule(field=field, checks=checks, **options)


NON_NEGATIVE = between(0)
INT = between(0, INT_MAX)
BIGINT = between(0, BIGINT_MAX)
PERCENT = between(0, PERCENT_MAX)
MONEY = fits_decimal(MONEY_MAX_DIGITS, MONEY_DECIMAL_PLACES)
SALE = fits_decimal(SALE_MAX_DIGITS, MONEY_DECIMAL_PLACES)

ORDER_RULES: Tuple[Rule, ...] = (
    rule("order_uid", is_string, matches(UUID_PATTERN, "a UUID")),
    rule("track_number", is_string),
    rule("entry", is_string),
    rule("locale", is_string, length(2, 5)),
    rule("internal_signature", is_string, allow_blank=True),
    rule("customer_id", is_string),
    rule("delivery_service", is_string),
    rule("shardkey", is_string),
    rule("sm_id", is_integer, INT),
    rule("date_created", is_string, is_timestamp),
    rule("oof_shard", is_string),
)

DELIVERY_RULES: Tuple[Rule, ...] = (
    rule("name", is_string, length(3, 100)),
    rule("phone", is_string, matches(PHONE_PATTERN, f"{PHONE_DIGITS} digits")),
    rule(
        "zip",
        is_string,
        matches(ALPHANUM_PATTERN, "alphanumeric"),
        length(1, 10),
    ),
    rule("city", is_string, length(3, 100)),
    rule("address", is_string, length(5, 255)),
    rule("region", is_string, length(3, 100)),
    rule(
        "email",
        is_string,
        matches(EMAIL_PATTERN, "an e-mail address"),
        required=False,
    ),
)

PAYMENT_RULES: Tuple[Rule, ...] = (
    rule("transaction", is_string),
    rule("request_id", is_string),
    rule("currency", is_string, one_of(Currency.values)),
    rule("provider", is_string),
    rule("amount", is_number, NON_NEGATIVE, MONEY),
    rule("payment_dt", is_integer, BIGINT),
    rule("bank", is_string),
    rule("delivery_cost", is_number, NON_NEGATIVE, MONEY),
    rule("goods_total", is_integer, INT),
    rule("custom_fee", is_number, NON_NEGATIVE, MONEY),
)

ITEM_RULES: Tuple[Rule, ...] = (
    rule("chrt_id", is_integer, BIGINT),
    rule("track_number", is_string),
    rule("price", is_number, NON_NEGATIVE, MONEY),
    rule("rid", is_string),
    rule("name", is_string, length(1, 255)),
    rule("sale", is_number, PERCENT, SALE, required=False),
    rule("size", is_string, length(1, 10)),
    rule("total_price", is_number, NON_NEGATIVE, MONEY),
    rule("nm_id", is_integer, BIGINT),
    rule("brand", is_string, length(1, 100)),
    rule("status", is_integer, PERCENT),
)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def _is_absent(value: Any, allow_blank: bool) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not allow_blank and not value.strip()


def _apply_rules(
    data: Mapping[str, Any], rules: Iterable[Rule], prefix: str = ""
) -> List[FieldViolation]:
    violations: List[FieldViolation] = []
    for r in rules:
        path = f"{prefix}{r.field}"
        value = data.get(r.field)
        if _is_absent(value, r.allow_blank):
            if r.required:
                violations.append(
                    FieldViolation(path, ViolationCode.MISSING, "field is required")
                )
            continue
        for check in r.checks:
            failure = check(value)
            if failure is not None:
                violations.append(FieldViolation(path, *failure))
                break
    return violations


def _nested_object(
    data: Mapping[str, Any], field: str, rules: Iterable[Rule]
) -> List[FieldViolation]:
    value = data.get(field)
    if value is None:
        return [FieldViolation(field, ViolationCode.MISSING, "field is required")]
    if not isinstance(value, Mapping):
        return [FieldViolation(field, ViolationCode.BAD_TYPE, "expected an object")]
    return _apply_rules(value, rules, prefix=f"{field}.")


def _items(data: Mapping[str, Any]) -> List[FieldViolation]:
    value = data.get("items")
    if value is None or (isinstance(value, list) and not value):
        return [
            FieldViolation(
                "items", ViolationCode.MISSING, "at least one item is required"
            )
        ]
    if not isinstance(value, list):
        return [FieldViolation("items", ViolationCode.BAD_TYPE, "expected a list")]

    violations: List[FieldViolation] = []
    seen_chrt_ids: set[int] = set()
    for index, item in enumerate(value):
        prefix = f"items[{index}]"
        if not isinstance(item, Mapping):
            violations.append(
                FieldViolation(prefix, ViolationCode.BAD_TYPE, "expected an object")
            )
            continue
        item_violations = _apply_rules(item, ITEM_RULES, prefix=f"{prefix}.")
        violations.extend(item_violations)

        chrt_id = item.get("chrt_id")
        if any(v.path == f"{prefix}.chrt_id" for v in item_violations):
            continue
        if chrt_id in seen_chrt_ids:
            violations.append(
                FieldViolation(
                    f"{prefix}.chrt_id",
                    ViolationCode.DUPLICATE,
                    f"chrt_id {chrt_id} appears more than once",
                )
            )
        seen_chrt_ids.add(chrt_id)
    return violations


def collect_violations(raw: Mapping[str, Any]) -> List[FieldViolation]:
    """Evaluate every rule table against *raw* and return all violations."""
    violations = _apply_rules(raw, ORDER_RULES)
    violations.extend(_nested_object(raw, "delivery", DELIVERY_RULES))
    violations.extend(_nested_object(raw, "payment", PAYMENT_RULES))
    violations.extend(_items(raw))
    return violations


def _loc_to_path(loc: Tuple[Union[int, str], ...]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def decode_order_payload(payload: Union[bytes, str]) -> dict:
    """Decode a message payload into a raw order mapping.

    Raises:
        OrderDecodeError: payload is not UTF-8, not JSON, or not an object.
    """
    try:
        text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        raw = json.loads(text, parse_float=Decimal)
    except (UnicodeDecodeError, ValueError) as exc:
        raise OrderDecodeError(f"Payload is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise OrderDecodeError(
            f"Payload must be a JSON object, got {type(raw).__name__}."
        )
    return raw


def validate_order(raw: Mapping[str, Any]) -> OrderDTO:
    """Check *raw* against the rule tables and build the ``OrderDTO``.

    Raises:
        OrderValidationError: one or more constraints failed; carries all of
            them, not just the first.
    """
    violations = collect_violations(raw)
    if violations:
        raise OrderValidationError(violations)
    try:
        return OrderDTO.model_validate(raw)
    except PydanticValidationError as exc:
        raise OrderValidationError(
            FieldViolation(
                _loc_to_path(err["loc"]), ViolationCode.BAD_FORMAT, err["msg"]
            )
            for err in exc.errors()
        ) from exc


def parse_order_message(payload: Union[bytes, str]) -> OrderDTO:
    """Decode and validate a message payload in one step."""
    return validate_order(decode_order_payload(payload))
