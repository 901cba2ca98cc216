from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("category", models.CharField(max_length=100)),
                ("company", models.CharField(max_length=100)),
                ("price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("rental_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("id",),
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("price__gte", 0)),
                        name="product_price_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("rental_price__gte", 0)),
                        name="product_rental_price_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="account", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("balance__gte", 0)),
                        name="account_balance_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="UserProduct",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("ownership_type", models.CharField(choices=[("purchase", "Purchase"), ("rent", "Rent")], max_length=10)),
                ("unique_code", models.CharField(blank=True, max_length=36, null=True, unique=True)),
                ("rent_started_at", models.DateTimeField(blank=True, null=True)),
                ("rent_expires_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="user_products", to="ledger.product")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="user_products", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ("id",),
                "indexes": [
                    models.Index(fields=["user", "product", "ownership_type"], name="user_product_lookup_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("ownership_type", "purchase"),
                                ("rent_expires_at__isnull", True),
                                ("rent_started_at__isnull", True),
                            ),
                            models.Q(
                                ("ownership_type", "rent"),
                                ("rent_expires_at__isnull", False),
                                ("rent_started_at__isnull", False),
                            ),
                            _connector="OR",
                        ),
                        name="user_product_rent_fields_match_kind",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("ownership_type", "purchase")),
                        fields=("user", "product"),
                        name="user_product_single_purchase",
                    ),
                ],
            },
        ),
    ]
