"""Order DTOs.

Framework-agnostic data transfer objects using Pydantic v2.  ``OrderDTO``
is the validated business record that flows through the pipeline: it is
what the store persists, what the cache holds and what the read API
returns.  DTOs are immutable (``frozen=True``) so cached instances can be
shared between threads without copying.

- ``DeliveryDTO``: delivery contact and address.
- ``PaymentDTO``: payment transaction.
- ``ItemDTO``: one ordered item.
- ``OrderDTO``: the aggregate root with nested value objects.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List

from pydantic import BaseModel, ConfigDict, field_validator

if TYPE_CHECKING:
    from modules.orders.models import Order


class DeliveryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    phone: str
    zip: str
    city: str
    address: str
    region: str
    email: str = ""

    @field_validator("email", mode="before")
    @classmethod
    def null_email_is_blank(cls, v: Any) -> Any:
        return "" if v is None else v


class PaymentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    transaction: str
    request_id: str
    currency: str
    provider: str
    amount: Decimal
    payment_dt: int
    bank: str
    delivery_cost: Decimal
    goods_total: int
    custom_fee: Decimal


class ItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    chrt_id: int
    track_number: str
    price: Decimal
    rid: str
    name: str
    sale: Decimal = Decimal("0")
    size: str
    total_price: Decimal
    nm_id: int
    brand: str
    status: int

    @field_validator("sale", mode="before")
    @classmethod
    def null_sale_is_zero(cls, v: Any) -> Any:
        return Decimal("0") if v is None else v


class OrderDTO(BaseModel):
    """Immutable validated order aggregate.

    Field constraints are enforced by ``modules.orders.validation`` before
    an instance is built; this model only fixes shapes and types.
    """

    model_config = ConfigDict(frozen=True)

    order_uid: str
    track_number: str
    entry: str
    locale: str
    internal_signature: str
    customer_id: str
    delivery_service: str
    shardkey: str
    sm_id: int
    date_created: datetime
    oof_shard: str
    delivery: DeliveryDTO
    payment: PaymentDTO
    items: List[ItemDTO]

    @field_validator("date_created")
    @classmethod
    def naive_timestamps_are_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def to_response(self) -> Dict[str, Any]:
        """Plain ``dict`` for the JSON renderer (Decimals stay numeric)."""
        return self.model_dump(mode="python")

    @classmethod
    def from_entity(cls, order: Order) -> OrderDTO:
        """Build the DTO from an Order row.

        Assumes ``delivery``, ``payment`` and ``order_items__item`` are
        prefetched; items are returned in their original sequence.
        """
        delivery = order.delivery
        payment = order.payment
        links = sorted(order.order_items.all(), key=lambda link: link.position)
        return cls(
            order_uid=order.order_uid,
            track_number=order.track_number,
            entry=order.entry,
            locale=order.locale,
            internal_signature=order.internal_signature,
            customer_id=order.customer_id,
            delivery_service=order.delivery_service,
            shardkey=order.shardkey,
            sm_id=order.sm_id,
            date_created=order.date_created,
            oof_shard=order.oof_shard,
            delivery=DeliveryDTO(
                name=delivery.name,
                phone=delivery.phone,
                zip=delivery.zip,
                city=delivery.city,
                address=delivery.address,
                region=delivery.region,
                email=delivery.email,
            ),
            payment=PaymentDTO(
                transaction=payment.transaction,
                request_id=payment.request_id,
                currency=payment.currency,
                provider=payment.provider,
                amount=payment.amount,
                payment_dt=payment.payment_dt,
                bank=payment.bank,
                delivery_cost=payment.delivery_cost,
                goods_total=payment.goods_total,
                custom_fee=payment.custom_fee,
            ),
            items=[
                ItemDTO(
                    chrt_id=link.item.chrt_id,
                    track_number=link.item.track_number,
                    price=link.item.price,
                    rid=link.item.rid,
                    name=link.item.name,
                    sale=link.item.sale,
                    size=link.item.size,
                    total_price=link.item.total_price,
                    nm_id=link.item.nm_id,
                    brand=link.item.brand,
                    status=link.item.status,
                )
                for link in links
            ],
        )
