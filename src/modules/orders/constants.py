"""Order domain constants.

Defines the accepted payment currencies, the diagnostic codes reported by
the validator and the names of the wire-level JSON fields.
"""

from django.db import models


class Currency(models.TextChoices):
    USD = "USD", "US Dollar"
    RUB = "RUB", "Russian Ruble"
    EUR = "EUR", "Euro"


class ViolationCode:
    MISSING = "missing"
    BAD_TYPE = "bad_type"
    BAD_FORMAT = "bad_format"
    OUT_OF_RANGE = "out_of_range"
    NOT_ALLOWED = "not_allowed"
    DUPLICATE = "duplicate"


PERCENT_MAX = 100
PHONE_DIGITS = 11

MONEY_MAX_DIGITS = 14
MONEY_DECIMAL_PLACES = 2
SALE_MAX_DIGITS = 5

# Column ranges: BigIntegerField and (Positive)IntegerField.
BIGINT_MAX = 2**63 - 1
INT_MAX = 2**31 - 1

# Stream entry field holding the JSON-encoded order.
PAYLOAD_FIELD = "payload"
