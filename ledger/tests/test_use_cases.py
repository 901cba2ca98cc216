import uuid
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from ledger.application import use_cases
from ledger.domain.exceptions import (
    ActiveRentalExists,
    AlreadyOwned,
    DurationCapExceeded,
    InsufficientFunds,
    InvalidDuration,
    NotRentable,
    OperationFailed,
)
from ledger.models import Account, OwnershipType, UserProduct
from ledger.tests.helpers import FIXED_NOW, LedgerFixturesMixin


class PurchaseProductTest(LedgerFixturesMixin, TestCase):

    def test_purchase_debits_balance_and_creates_record(self):
        result = use_cases.purchase_product(self.user, self.product)

        self.assertEqual(result["product_id"], self.product.id)
        uuid.UUID(result["unique_code"])
        self.assertEqual(self.balance(), Decimal("300.00"))

        record = UserProduct.objects.get(user=self.user, product=self.product)
        self.assertEqual(record.ownership_type, OwnershipType.PURCHASE)
        self.assertEqual(record.unique_code, result["unique_code"])
        self.assertIsNone(record.rent_started_at)
        self.assertIsNone(record.rent_expires_at)

    def test_insufficient_balance_leaves_no_trace(self):
        Account.objects.filter(user=self.user).update(balance=Decimal("100.00"))

        with self.assertRaises(InsufficientFunds) as ctx:
            use_cases.purchase_product(self.user, self.product)

        self.assertEqual(ctx.exception.requested, Decimal("200.00"))
        self.assertEqual(ctx.exception.available, Decimal("100.00"))
        self.assertEqual(self.balance(), Decimal("100.00"))
        self.assertFalse(UserProduct.objects.exists())

    def test_exact_balance_can_be_spent(self):
        Account.objects.filter(user=self.user).update(balance=Decimal("200.00"))

        use_cases.purchase_product(self.user, self.product)

        self.assertEqual(self.balance(), Decimal("0.00"))

    def test_second_purchase_is_rejected(self):
        use_cases.purchase_product(self.user, self.product)

        with self.assertRaises(AlreadyOwned):
            use_cases.purchase_product(self.user, self.product)

        self.assertEqual(self.balance(), Decimal("300.00"))
        self.assertEqual(UserProduct.objects.count(), 1)

    def test_purchase_allowed_while_renting(self):
        self.make_rental()

        use_cases.purchase_product(self.user, self.product)

        self.assertEqual(self.balance(), Decimal("300.00"))

    def test_unique_constraint_race_maps_to_already_owned(self):
        """A purchase committed by a concurrent request after the checks still loses cleanly."""
        self.make_purchase(unique_code="existing")

        with mock.patch("ledger.application.use_cases._already_owns", return_value=False):
            with self.assertRaises(AlreadyOwned):
                use_cases.purchase_product(self.user, self.product)

        self.assertEqual(self.balance(), Decimal("500.00"))
        self.assertEqual(UserProduct.objects.count(), 1)

    def test_database_failure_rolls_back_debit(self):
        with mock.patch.object(UserProduct.objects, "create", side_effect=DatabaseError("disk full")):
            with self.assertRaises(OperationFailed) as ctx:
                use_cases.purchase_product(self.user, self.product)

        self.assertEqual(ctx.exception.message, "Purchase failed")
        self.assertIsInstance(ctx.exception.__cause__, DatabaseError)
        self.assertEqual(self.balance(), Decimal("500.00"))
        self.assertFalse(UserProduct.objects.exists())

    def test_code_factory_is_used(self):
        result = use_cases.purchase_product(self.user, self.product, code_factory=lambda: "code-1")

        self.assertEqual(result["unique_code"], "code-1")

    def test_account_is_created_for_users_without_one(self):
        user = self.catalog.create_user()
        Account.objects.filter(user=user).delete()
        freebie = self.catalog.create_product(price=Decimal("0.00"))

        use_cases.purchase_product(user, freebie)

        self.assertEqual(Account.objects.get(user=user).balance, Decimal("0.00"))


class RentProductTest(LedgerFixturesMixin, TestCase):

    def test_rent_sets_window_and_debits_rental_price(self):
        result = use_cases.rent_product(self.user, self.product, 8)

        self.assertEqual(result["product_id"], self.product.id)
        self.assertEqual(result["rent_started_at"], FIXED_NOW)
        self.assertEqual(result["rent_expires_at"], FIXED_NOW + timedelta(hours=8))
        uuid.UUID(result["unique_code"])
        self.assertEqual(self.balance(), Decimal("450.00"))

        record = UserProduct.objects.get(user=self.user, product=self.product)
        self.assertEqual(record.ownership_type, OwnershipType.RENT)
        self.assertEqual(record.rent_started_at, FIXED_NOW)

    def test_explicit_clock_is_used(self):
        later = FIXED_NOW + timedelta(days=3)

        result = use_cases.rent_product(self.user, self.product, 4, clock=lambda: later)

        self.assertEqual(result["rent_started_at"], later)
        self.assertEqual(result["rent_expires_at"], later + timedelta(hours=4))

    def test_invalid_duration_is_rejected_before_any_work(self):
        with self.assertRaises(InvalidDuration):
            use_cases.rent_product(self.user, self.product, 16)

        self.assertEqual(self.balance(), Decimal("500.00"))
        self.assertFalse(UserProduct.objects.exists())

    def test_cannot_rent_owned_product(self):
        self.make_purchase()

        with self.assertRaises(AlreadyOwned) as ctx:
            use_cases.rent_product(self.user, self.product, 8)

        self.assertEqual(ctx.exception.message, "Cannot rent a product you already own")
        self.assertEqual(self.balance(), Decimal("500.00"))
        self.assertEqual(UserProduct.objects.count(), 1)

    def test_cannot_rent_while_rental_active(self):
        self.make_rental(started=FIXED_NOW - timedelta(hours=1), expires=FIXED_NOW + timedelta(hours=4))

        with self.assertRaises(ActiveRentalExists):
            use_cases.rent_product(self.user, self.product, 8)

        self.assertEqual(self.balance(), Decimal("500.00"))

    def test_can_rent_again_after_expiry(self):
        self.make_rental(started=FIXED_NOW - timedelta(hours=8), expires=FIXED_NOW)

        use_cases.rent_product(self.user, self.product, 4)

        self.assertEqual(UserProduct.objects.filter(ownership_type=OwnershipType.RENT).count(), 2)
        self.assertEqual(self.balance(), Decimal("450.00"))

    def test_insufficient_balance(self):
        Account.objects.filter(user=self.user).update(balance=Decimal("30.00"))

        with self.assertRaises(InsufficientFunds):
            use_cases.rent_product(self.user, self.product, 8)

        self.assertEqual(self.balance(), Decimal("30.00"))
        self.assertFalse(UserProduct.objects.exists())

    def test_database_failure_rolls_back_debit(self):
        with mock.patch.object(UserProduct.objects, "create", side_effect=DatabaseError("boom")):
            with self.assertRaises(OperationFailed) as ctx:
                use_cases.rent_product(self.user, self.product, 8)

        self.assertEqual(ctx.exception.message, "Rental failed")
        self.assertEqual(self.balance(), Decimal("500.00"))


class RenewRentalTest(LedgerFixturesMixin, TestCase):

    def test_renewal_extends_expiry_and_charges(self):
        record = self.make_rental()

        result = use_cases.renew_rental(record, 8, self.user)

        self.assertEqual(result["new_expiration"], FIXED_NOW + timedelta(hours=16))
        self.assertEqual(result["user_balance"], "450.00")
        self.assertEqual(self.balance(), Decimal("450.00"))

        record.refresh_from_db()
        self.assertEqual(record.rent_expires_at, FIXED_NOW + timedelta(hours=16))
        self.assertEqual(record.rent_started_at, FIXED_NOW)

    def test_renewal_up_to_full_day(self):
        record = self.make_rental(expires=FIXED_NOW + timedelta(hours=16))

        result = use_cases.renew_rental(record, 8, self.user)

        self.assertEqual(result["new_expiration"], FIXED_NOW + timedelta(hours=24))

    def test_second_renewal_past_cap_changes_nothing(self):
        record = self.make_rental()
        use_cases.renew_rental(record, 8, self.user)

        with self.assertRaises(DurationCapExceeded):
            use_cases.renew_rental(record, 12, self.user)

        record.refresh_from_db()
        self.assertEqual(record.rent_expires_at, FIXED_NOW + timedelta(hours=16))
        self.assertEqual(self.balance(), Decimal("450.00"))

    def test_cap_uses_original_start(self):
        record = self.make_rental(
            started=FIXED_NOW - timedelta(hours=4),
            expires=FIXED_NOW + timedelta(hours=20),
        )

        with self.assertRaises(DurationCapExceeded):
            use_cases.renew_rental(record, 8, self.user)

        record.refresh_from_db()
        self.assertEqual(record.rent_expires_at, FIXED_NOW + timedelta(hours=20))
        self.assertEqual(self.balance(), Decimal("500.00"))

    def test_purchase_record_is_not_rentable(self):
        record = self.make_purchase()

        with self.assertRaises(NotRentable):
            use_cases.renew_rental(record, 4, self.user)

        self.assertEqual(self.balance(), Decimal("500.00"))

    def test_invalid_duration(self):
        record = self.make_rental()

        with self.assertRaises(InvalidDuration):
            use_cases.renew_rental(record, 6, self.user)

    def test_insufficient_balance_keeps_expiry(self):
        record = self.make_rental(
            started=FIXED_NOW - timedelta(hours=2),
            expires=FIXED_NOW + timedelta(hours=6),
        )
        Account.objects.filter(user=self.user).update(balance=Decimal("30.00"))

        with self.assertRaises(InsufficientFunds):
            use_cases.renew_rental(record, 4, self.user)

        record.refresh_from_db()
        self.assertEqual(record.rent_expires_at, FIXED_NOW + timedelta(hours=6))
        self.assertEqual(self.balance(), Decimal("30.00"))

    def test_renewal_uses_stored_expiry_not_stale_instance(self):
        record = self.make_rental()
        stale = UserProduct.objects.get(id=record.id)
        use_cases.renew_rental(record, 8, self.user)

        with self.assertRaises(DurationCapExceeded):
            use_cases.renew_rental(stale, 12, self.user)

        record.refresh_from_db()
        self.assertEqual(record.rent_expires_at, FIXED_NOW + timedelta(hours=16))

    def test_database_failure_rolls_back_debit(self):
        record = self.make_rental()

        with mock.patch.object(UserProduct, "save", side_effect=DatabaseError("boom")):
            with self.assertRaises(OperationFailed) as ctx:
                use_cases.renew_rental(record, 4, self.user)

        self.assertEqual(ctx.exception.message, "Rental renewal failed")
        self.assertEqual(self.balance(), Decimal("500.00"))
        record.refresh_from_db()
        self.assertEqual(record.rent_expires_at, FIXED_NOW + timedelta(hours=8))


class CheckStatusTest(LedgerFixturesMixin, TestCase):

    def test_missing_code_is_backfilled_once(self):
        record = self.make_rental()
        self.assertIsNone(record.unique_code)

        first = use_cases.check_status(record)
        second = use_cases.check_status(UserProduct.objects.get(id=record.id))

        uuid.UUID(first["unique_code"])
        self.assertEqual(first["unique_code"], second["unique_code"])
        self.assertEqual(UserProduct.objects.get(id=record.id).unique_code, first["unique_code"])

    def test_existing_code_is_never_replaced(self):
        record = self.make_purchase(unique_code="kept")
        factory = mock.Mock(return_value="other")

        snapshot = use_cases.check_status(record, code_factory=factory)

        self.assertEqual(snapshot["unique_code"], "kept")
        factory.assert_not_called()

    def test_stale_instance_does_not_overwrite_code(self):
        record = self.make_rental()
        stale = UserProduct.objects.get(id=record.id)
        first = use_cases.check_status(record, code_factory=lambda: "first")

        second = use_cases.check_status(stale, code_factory=lambda: "second")

        self.assertEqual(first["unique_code"], "first")
        self.assertEqual(second["unique_code"], "first")

    def test_snapshot_of_active_rental(self):
        record = self.make_rental(unique_code="abc")

        snapshot = use_cases.check_status(record)

        self.assertEqual(snapshot, {
            "id": record.id,
            "product_id": self.product.id,
            "ownership_type": "rent",
            "unique_code": "abc",
            "rent_started_at": FIXED_NOW,
            "rent_expires_at": FIXED_NOW + timedelta(hours=8),
            "rental_active": True,
        })

    def test_expired_rental_is_inactive(self):
        record = self.make_rental(unique_code="abc")

        snapshot = use_cases.check_status(record, clock=lambda: FIXED_NOW + timedelta(hours=8))

        self.assertFalse(snapshot["rental_active"])

    def test_purchase_is_never_an_active_rental(self):
        snapshot = use_cases.check_status(self.make_purchase(unique_code="abc"))

        self.assertFalse(snapshot["rental_active"])
        self.assertIsNone(snapshot["rent_expires_at"])


class PurchaseHistoryTest(LedgerFixturesMixin, TestCase):

    def test_only_own_purchases_are_listed(self):
        other_product = self.catalog.create_product()
        other_user = self.catalog.create_user()
        own = self.make_purchase(unique_code="a")
        self.make_rental(product=other_product)
        self.make_purchase(user=other_user, unique_code="b")

        history = use_cases.purchase_history(self.user)

        self.assertEqual([record.id for record in history], [own.id])
        self.assertEqual(history[0].product.name, self.product.name)

    def test_empty_history(self):
        self.assertEqual(use_cases.purchase_history(self.user), [])


class FindActiveRentalTest(LedgerFixturesMixin, TestCase):

    def test_returns_unexpired_rental(self):
        self.make_rental(started=FIXED_NOW - timedelta(hours=10), expires=FIXED_NOW - timedelta(hours=2))
        current = self.make_rental(started=FIXED_NOW - timedelta(hours=1), expires=FIXED_NOW + timedelta(hours=3))

        self.assertEqual(use_cases.find_active_rental(self.user, self.product), current)

    def test_none_when_only_purchased(self):
        self.make_purchase()

        self.assertIsNone(use_cases.find_active_rental(self.user, self.product))
