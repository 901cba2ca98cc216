import random
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from unittest import mock

from django.core.cache import cache

from ledger.catalog import ToolCatalog
from ledger.models import OwnershipType, UserProduct

FIXED_NOW = datetime(2024, 12, 10, 1, 0, tzinfo=dt_timezone.utc)


class LedgerFixturesMixin:
    """
    Pins django.utils.timezone.now to FIXED_NOW and builds the standard
    fixtures: a user holding 500.00 and a product priced 200.00 / 50.00.
    """

    def setUp(self):
        super().setUp()
        cache.clear()

        patcher = mock.patch("django.utils.timezone.now", return_value=FIXED_NOW)
        self.now = patcher.start()
        self.addCleanup(patcher.stop)

        self.catalog = ToolCatalog(random.Random(1234))
        self.user = self.catalog.create_user(balance=Decimal("500.00"))
        self.product = self.catalog.create_product(
            price=Decimal("200.00"),
            rental_price=Decimal("50.00"),
        )

    def balance(self, user=None):
        user = user or self.user
        user.account.refresh_from_db()
        return user.account.balance

    def make_purchase(self, user=None, product=None, **fields):
        return UserProduct.objects.create(
            user=user or self.user,
            product=product or self.product,
            ownership_type=OwnershipType.PURCHASE,
            **fields,
        )

    def make_rental(self, started=None, expires=None, user=None, product=None, **fields):
        started = FIXED_NOW if started is None else started
        expires = started + timedelta(hours=8) if expires is None else expires
        return UserProduct.objects.create(
            user=user or self.user,
            product=product or self.product,
            ownership_type=OwnershipType.RENT,
            rent_started_at=started,
            rent_expires_at=expires,
            **fields,
        )
