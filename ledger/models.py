"""
Persistence Models: Tool Rental Ledger (Django ORM)

Three tables back the ledger:

- Account holds the user's spendable balance. It is the single shared
  mutable resource; every debit happens under a row lock on it.
- Product is the read-only catalog entry with a purchase price and a
  per-rental price.
- UserProduct is the entitlement record: the fact that a user bought or
  is renting a product.

Invariants that can be expressed in the schema are enforced there:

- balance, price and rental_price are never negative.
- A purchase row carries no rental timestamps, a rent row carries both.
- At most one purchase row exists per (user, product), via a partial
  UNIQUE constraint.
- unique_code is UNIQUE once assigned.

The 24 hour rental cap involves date arithmetic that differs between
database backends, so it is enforced by the use cases instead.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

from ledger.domain.rentals import is_rental_active


class Account(models.Model):
    """Balance holder, one per registered user."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="account",
    )

    balance = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
    )

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(balance__gte=0),
                name="account_balance_non_negative",
            ),
        ]

    def __str__(self):
        return f"Account {self.id} - Balance: {self.balance}"


class Product(models.Model):
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=100)
    company = models.CharField(max_length=100)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    rental_price = models.DecimalField(max_digits=10, decimal_places=2)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("id",)
        constraints = [
            models.CheckConstraint(
                condition=Q(price__gte=0),
                name="product_price_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(rental_price__gte=0),
                name="product_rental_price_non_negative",
            ),
        ]

    def __str__(self):
        return f"Product {self.id} - {self.name}"


class OwnershipType(models.TextChoices):
    PURCHASE = "purchase", "Purchase"
    RENT = "rent", "Rent"


class UserProduct(models.Model):
    """
    Entitlement record for a (user, product) pair.

    ownership_type tags the variant. rent_started_at and rent_expires_at
    belong to the rent variant only; the check constraint below rejects
    any row that mixes them up.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="user_products",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="user_products",
    )

    ownership_type = models.CharField(
        max_length=10,
        choices=OwnershipType.choices,
    )

    # Assigned lazily and never changed afterwards.
    unique_code = models.CharField(
        max_length=36,
        unique=True,
        null=True,
        blank=True,
    )

    rent_started_at = models.DateTimeField(null=True, blank=True)
    rent_expires_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("id",)
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(
                        ownership_type=OwnershipType.PURCHASE,
                        rent_started_at__isnull=True,
                        rent_expires_at__isnull=True,
                    )
                    | Q(
                        ownership_type=OwnershipType.RENT,
                        rent_started_at__isnull=False,
                        rent_expires_at__isnull=False,
                    )
                ),
                name="user_product_rent_fields_match_kind",
            ),
            models.UniqueConstraint(
                fields=("user", "product"),
                condition=Q(ownership_type=OwnershipType.PURCHASE),
                name="user_product_single_purchase",
            ),
        ]
        indexes = [
            models.Index(
                fields=("user", "product", "ownership_type"),
                name="user_product_lookup_idx",
            ),
        ]

    @property
    def is_rent(self):
        return self.ownership_type == OwnershipType.RENT

    def is_rental_active(self, now):
        return is_rental_active(self.ownership_type, self.rent_expires_at, now)

    def __str__(self):
        return f"UserProduct {self.id} - {self.ownership_type} of product {self.product_id}"
