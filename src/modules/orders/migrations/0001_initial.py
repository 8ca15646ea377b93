from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import uuid6
from django.db import migrations, models


def _money():
    return models.DecimalField(
        decimal_places=2,
        max_digits=14,
        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "order_uid",
                    models.CharField(max_length=64, primary_key=True, serialize=False),
                ),
                ("track_number", models.CharField(max_length=255)),
                ("entry", models.CharField(max_length=64)),
                ("locale", models.CharField(max_length=5)),
                (
                    "internal_signature",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                ("customer_id", models.CharField(max_length=255)),
                ("delivery_service", models.CharField(max_length=255)),
                ("shardkey", models.CharField(max_length=64)),
                ("sm_id", models.PositiveIntegerField()),
                ("date_created", models.DateTimeField()),
                ("oof_shard", models.CharField(max_length=64)),
            ],
            options={
                "db_table": "orders",
                "ordering": ["-date_created"],
                "indexes": [
                    models.Index(
                        fields=["-date_created"], name="orders_date_created_idx"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Item",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "chrt_id",
                    models.BigIntegerField(primary_key=True, serialize=False),
                ),
                ("track_number", models.CharField(max_length=255)),
                ("price", _money()),
                ("rid", models.CharField(max_length=255)),
                ("name", models.CharField(max_length=255)),
                (
                    "sale",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(100),
                        ],
                    ),
                ),
                ("size", models.CharField(max_length=10)),
                ("total_price", _money()),
                ("nm_id", models.BigIntegerField()),
                ("brand", models.CharField(max_length=100)),
                (
                    "status",
                    models.PositiveSmallIntegerField(
                        validators=[django.core.validators.MaxValueValidator(100)]
                    ),
                ),
            ],
            options={
                "db_table": "items",
            },
        ),
        migrations.CreateModel(
            name="Delivery",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=100)),
                ("phone", models.CharField(max_length=20)),
                ("zip", models.CharField(max_length=10)),
                ("city", models.CharField(max_length=100)),
                ("address", models.CharField(max_length=255)),
                ("region", models.CharField(max_length=100)),
                ("email", models.CharField(blank=True, default="", max_length=255)),
                (
                    "order",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="delivery",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "db_table": "delivery",
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("transaction", models.CharField(db_index=True, max_length=255)),
                ("request_id", models.CharField(max_length=255)),
                (
                    "currency",
                    models.CharField(
                        choices=[
                            ("USD", "US Dollar"),
                            ("RUB", "Russian Ruble"),
                            ("EUR", "Euro"),
                        ],
                        max_length=3,
                    ),
                ),
                ("provider", models.CharField(max_length=255)),
                ("amount", _money()),
                ("payment_dt", models.BigIntegerField()),
                ("bank", models.CharField(max_length=255)),
                ("delivery_cost", _money()),
                ("goods_total", models.PositiveIntegerField()),
                ("custom_fee", _money()),
                (
                    "order",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payment",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "db_table": "payments",
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("position", models.PositiveIntegerField()),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="order_links",
                        to="orders.item",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="order_items",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "db_table": "order_items",
                "ordering": ["position"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("order", "item"), name="order_items_order_item_uniq"
                    )
                ],
            },
        ),
    ]
