from __future__ import annotations

import json
import random
import string
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from django.core.management.base import BaseCommand, CommandError

from modules.orders.constants import PHONE_DIGITS, Currency
from modules.orders.sources import build_message_source

NAMES = ["Test Testov", "Ana Souza", "Bruno Lima", "Carla Mendes", "Igor Ramos"]
CITIES = ["Kiryat Mozkin", "Sao Paulo", "Moscow", "Berlin", "Lisbon"]
REGIONS = ["Kraiot", "Sudeste", "Central", "Brandenburg", "Lisboa"]
BRANDS = ["Vivienne Sabo", "Acme", "Nord", "Ponto", "Lumen"]
PROVIDERS = ["wbpay", "stripe", "paypal"]
BANKS = ["alpha", "sber", "itau", "deutsche"]


def _token(rng: random.Random, size: int) -> str:
    return "".join(rng.choices(string.ascii_uppercase + string.digits, k=size))


def build_fake_order(rng: random.Random) -> dict[str, Any]:
    """Random order that passes validation."""
    order_uid = str(uuid.UUID(int=rng.getrandbits(128), version=4))
    track_number = f"WB{_token(rng, 10)}"
    created = datetime.now(timezone.utc) - timedelta(minutes=rng.randint(0, 60 * 24))

    items = []
    for chrt_id in rng.sample(range(1, 10_000_000), k=rng.randint(1, 4)):
        price = rng.randint(100, 5000)
        sale = rng.randint(0, 50)
        items.append(
            {
                "chrt_id": chrt_id,
                "track_number": track_number,
                "price": price,
                "rid": _token(rng, 20).lower(),
                "name": rng.choice(["Mascaras", "Lipstick", "Shampoo", "Scarf"]),
                "sale": sale,
                "size": str(rng.randint(0, 5)),
                "total_price": price * (100 - sale) // 100,
                "nm_id": rng.randint(1, 9_999_999),
                "brand": rng.choice(BRANDS),
                "status": rng.choice([0, 100]),
            }
        )
    goods_total = sum(item["total_price"] for item in items)
    delivery_cost = rng.randint(0, 2000)

    return {
        "order_uid": order_uid,
        "track_number": track_number,
        "entry": "WBIL",
        "delivery": {
            "name": rng.choice(NAMES),
            "phone": "".join(rng.choices(string.digits, k=PHONE_DIGITS)),
            "zip": str(rng.randint(100000, 9999999)),
            "city": rng.choice(CITIES),
            "address": f"Ploshad Mira {rng.randint(1, 99)}",
            "region": rng.choice(REGIONS),
            "email": f"{_token(rng, 6).lower()}@example.com",
        },
        "payment": {
            "transaction": order_uid,
            "request_id": _token(rng, 12).lower(),
            "currency": rng.choice(Currency.values),
            "provider": rng.choice(PROVIDERS),
            "amount": goods_total + delivery_cost,
            "payment_dt": int(created.timestamp()),
            "bank": rng.choice(BANKS),
            "delivery_cost": delivery_cost,
            "goods_total": goods_total,
            "custom_fee": 0,
        },
        "items": items,
        "locale": rng.choice(["en", "ru", "pt"]),
        "internal_signature": "",
        "customer_id": f"customer-{rng.randint(1, 500)}",
        "delivery_service": rng.choice(["meest", "dhl", "correios"]),
        "shardkey": str(rng.randint(1, 10)),
        "sm_id": rng.randint(1, 100),
        "date_created": created.isoformat().replace("+00:00", "Z"),
        "oof_shard": str(rng.randint(1, 3)),
    }


def build_invalid_order(rng: random.Random) -> dict[str, Any]:
    """Random order with an empty ``order_uid`` and no items."""
    order = build_fake_order(rng)
    order["order_uid"] = ""
    order["items"] = []
    return order


class Command(BaseCommand):
    help = "Publish randomly generated orders to the configured message source."

    def add_arguments(self, parser):
        parser.add_argument("--count", type=int, default=10)
        parser.add_argument(
            "--invalid",
            type=int,
            default=0,
            help="Also publish this many orders that fail validation.",
        )
        parser.add_argument("--seed", type=int, default=None)

    def handle(self, *args, **options):
        if options["count"] < 0 or options["invalid"] < 0:
            raise CommandError("--count and --invalid must be non-negative.")

        rng = random.Random(options["seed"])
        source = build_message_source()
        if not hasattr(source, "publish"):
            raise CommandError(f"{type(source).__name__} does not support publishing.")

        self.stdout.write("Publishing orders...")
        try:
            for _ in range(options["count"]):
                source.publish(json.dumps(build_fake_order(rng)))
            for _ in range(options["invalid"]):
                source.publish(json.dumps(build_invalid_order(rng)))
        finally:
            source.close()

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"valid={options['count']}, "
                f"invalid={options['invalid']}"
            )
        )
