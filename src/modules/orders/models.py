"""Relational projection of the Order aggregate.

Tables:
- ``orders``: aggregate root keyed by ``order_uid``.
- ``delivery`` / ``payments``: one row per order.
- ``items``: keyed by ``chrt_id``; the store upserts items on it.
- ``order_items``: join rows carrying each item's position in the order.

Rows are written only through ``OrderDjangoRepository.save`` which replaces
the whole aggregate inside one transaction.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import BaseModel, TimestampedModel
from modules.orders.constants import (
    MONEY_DECIMAL_PLACES,
    MONEY_MAX_DIGITS,
    PERCENT_MAX,
    SALE_MAX_DIGITS,
    Currency,
)


def _money(**kwargs) -> models.DecimalField:
    return models.DecimalField(
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        validators=[MinValueValidator(Decimal("0"))],
        **kwargs,
    )


class Order(TimestampedModel):
    """Order aggregate root."""

    order_uid: models.CharField = models.CharField(max_length=64, primary_key=True)
    track_number: models.CharField = models.CharField(max_length=255)
    entry: models.CharField = models.CharField(max_length=64)
    locale: models.CharField = models.CharField(max_length=5)
    internal_signature: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    customer_id: models.CharField = models.CharField(max_length=255)
    delivery_service: models.CharField = models.CharField(max_length=255)
    shardkey: models.CharField = models.CharField(max_length=64)
    sm_id: models.PositiveIntegerField = models.PositiveIntegerField()
    date_created: models.DateTimeField = models.DateTimeField()
    oof_shard: models.CharField = models.CharField(max_length=64)

    class Meta:
        db_table = "orders"
        ordering = ["-date_created"]
        indexes = [
            models.Index(fields=["-date_created"], name="orders_date_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order_uid} ({self.track_number})"


class Delivery(BaseModel):
    order: models.OneToOneField = models.OneToOneField(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="delivery",
    )
    name: models.CharField = models.CharField(max_length=100)
    phone: models.CharField = models.CharField(max_length=20)
    zip: models.CharField = models.CharField(max_length=10)
    city: models.CharField = models.CharField(max_length=100)
    address: models.CharField = models.CharField(max_length=255)
    region: models.CharField = models.CharField(max_length=100)
    email: models.CharField = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "delivery"

    def __str__(self) -> str:
        return f"{self.name}, {self.city}"


class Payment(BaseModel):
    order: models.OneToOneField = models.OneToOneField(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="payment",
    )
    transaction: models.CharField = models.CharField(max_length=255, db_index=True)
    request_id: models.CharField = models.CharField(max_length=255)
    currency: models.CharField = models.CharField(
        max_length=3, choices=Currency.choices
    )
    provider: models.CharField = models.CharField(max_length=255)
    amount: models.DecimalField = _money()
    payment_dt: models.BigIntegerField = models.BigIntegerField()
    bank: models.CharField = models.CharField(max_length=255)
    delivery_cost: models.DecimalField = _money()
    goods_total: models.PositiveIntegerField = models.PositiveIntegerField()
    custom_fee: models.DecimalField = _money()

    class Meta:
        db_table = "payments"

    def __str__(self) -> str:
        return f"{self.transaction} {self.amount} {self.currency}"


class Item(TimestampedModel):
    """Ordered good, keyed by its ``chrt_id``."""

    chrt_id: models.BigIntegerField = models.BigIntegerField(primary_key=True)
    track_number: models.CharField = models.CharField(max_length=255)
    price: models.DecimalField = _money()
    rid: models.CharField = models.CharField(max_length=255)
    name: models.CharField = models.CharField(max_length=255)
    sale: models.DecimalField = models.DecimalField(
        max_digits=SALE_MAX_DIGITS,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(0), MaxValueValidator(PERCENT_MAX)],
    )
    size: models.CharField = models.CharField(max_length=10)
    total_price: models.DecimalField = _money()
    nm_id: models.BigIntegerField = models.BigIntegerField()
    brand: models.CharField = models.CharField(max_length=100)
    status: models.PositiveSmallIntegerField = models.PositiveSmallIntegerField(
        validators=[MaxValueValidator(PERCENT_MAX)],
    )

    class Meta:
        db_table = "items"

    def __str__(self) -> str:
        return f"{self.chrt_id} {self.name}"


class OrderItem(models.Model):
    """Join row linking an Order to one of its Items."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="order_items",
    )
    item: models.ForeignKey = models.ForeignKey(
        "orders.Item",
        on_delete=models.CASCADE,
        related_name="order_links",
    )
    position: models.PositiveIntegerField = models.PositiveIntegerField()

    class Meta:
        db_table = "order_items"
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "item"], name="order_items_order_item_uniq"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} #{self.position} -> {self.item_id}"
