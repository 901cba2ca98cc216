"""
Application Use Cases: Purchase / Rental Ledger

Each mutating use case turns a (user, product, action) request into a
balance debit plus an entitlement record, inside a single database
transaction.

Core guarantees provided:

- Atomicity: the debit and the record write share one transaction.atomic()
  block; any exception leaves both untouched.
- Serialization per user: the Account row is locked with select_for_update()
  before the ownership checks, so two concurrent requests for the same user
  cannot both pass the checks and both debit.
- Race-condition safety: the balance update uses a database-level F()
  expression.
- At most one purchase: backed by a partial UNIQUE constraint; an
  IntegrityError on insert surfaces as AlreadyOwned.
- Explicit domain signaling: expected rejections raise the exceptions in
  ledger.domain.exceptions. Unexpected database failures are logged and
  re-raised as OperationFailed once the transaction has rolled back.

The clock and the unique-code generator are injectable so that tests can
pin time and codes.
"""

import logging
import uuid

from django.contrib.auth import get_user_model
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.authtoken.models import Token

from ledger.domain import rentals
from ledger.domain.exceptions import (
    ActiveRentalExists,
    AlreadyOwned,
    DurationCapExceeded,
    InsufficientFunds,
    NotRentable,
    OperationFailed,
)
from ledger.models import Account, OwnershipType, UserProduct

logger = logging.getLogger(__name__)


def generate_unique_code():
    return str(uuid.uuid4())


def _now(clock):
    return (clock or timezone.now)()


def _lock_account(user):
    # Serializes every mutating operation of this user. Accounts missing for
    # users created outside registration (e.g. createsuperuser) start at 0.00.
    account, _ = Account.objects.select_for_update().get_or_create(user_id=user.id)
    return account


def _already_owns(user, product):
    return UserProduct.objects.filter(
        user_id=user.id,
        product_id=product.id,
        ownership_type=OwnershipType.PURCHASE,
    ).exists()


def _has_active_rental(user, product, now):
    return UserProduct.objects.filter(
        user_id=user.id,
        product_id=product.id,
        ownership_type=OwnershipType.RENT,
        rent_expires_at__gt=now,
    ).exists()


def _debit(account, amount):
    """Charge `amount` to a locked account, or raise InsufficientFunds."""
    if account.balance < amount:
        logger.warning(
            "Insufficient balance: account=%s requested=%s available=%s",
            account.id, amount, account.balance,
        )
        raise InsufficientFunds(account.id, amount, account.balance)

    # F() expression ensures the UPDATE uses the database value, not the Python-cached one
    Account.objects.filter(id=account.id).update(balance=F("balance") - amount)
    account.refresh_from_db()


def purchase_product(user, product, code_factory=generate_unique_code):
    """
    Buy `product` outright for `user`.

    Returns {"product_id", "unique_code"}.
    """
    if _already_owns(user, product):
        raise AlreadyOwned(user.id, product.id)

    try:
        with transaction.atomic():
            account = _lock_account(user)

            # Re-check under the lock; a concurrent purchase may have committed meanwhile
            if _already_owns(user, product):
                raise AlreadyOwned(user.id, product.id)

            _debit(account, product.price)

            try:
                record = UserProduct.objects.create(
                    user_id=user.id,
                    product_id=product.id,
                    ownership_type=OwnershipType.PURCHASE,
                    unique_code=code_factory(),
                )
            except IntegrityError:
                logger.info(
                    "Duplicate purchase rejected: user=%s product=%s",
                    user.id, product.id,
                )
                raise AlreadyOwned(user.id, product.id)
    except DatabaseError as exc:
        logger.exception("Purchase failed: user=%s product=%s", user.id, product.id)
        raise OperationFailed("Purchase failed") from exc

    logger.info(
        "Product purchased: user=%s product=%s price=%s balance=%s",
        user.id, product.id, product.price, account.balance,
    )

    return {
        "product_id": record.product_id,
        "unique_code": record.unique_code,
    }


def rent_product(user, product, duration, clock=None, code_factory=generate_unique_code):
    """
    Rent `product` for `duration` hours.

    Returns {"product_id", "rent_started_at", "rent_expires_at", "unique_code"}.
    """
    rentals.validate_duration(duration)

    if _already_owns(user, product):
        raise AlreadyOwned(user.id, product.id, "Cannot rent a product you already own")

    if _has_active_rental(user, product, _now(clock)):
        raise ActiveRentalExists(user.id, product.id)

    try:
        with transaction.atomic():
            account = _lock_account(user)

            now = _now(clock)
            if _already_owns(user, product):
                raise AlreadyOwned(user.id, product.id, "Cannot rent a product you already own")
            if _has_active_rental(user, product, now):
                raise ActiveRentalExists(user.id, product.id)

            _debit(account, product.rental_price)

            started_at, expires_at = rentals.rental_window(now, duration)
            record = UserProduct.objects.create(
                user_id=user.id,
                product_id=product.id,
                ownership_type=OwnershipType.RENT,
                rent_started_at=started_at,
                rent_expires_at=expires_at,
                unique_code=code_factory(),
            )
    except DatabaseError as exc:
        logger.exception("Rental failed: user=%s product=%s", user.id, product.id)
        raise OperationFailed("Rental failed") from exc

    logger.info(
        "Product rented: user=%s product=%s hours=%s expires=%s balance=%s",
        user.id, product.id, duration, expires_at.isoformat(), account.balance,
    )

    return {
        "product_id": product.id,
        "rent_started_at": record.rent_started_at,
        "rent_expires_at": record.rent_expires_at,
        "unique_code": record.unique_code,
    }


def renew_rental(record, duration, user):
    """
    Extend a rent-kind record by `duration` hours and charge the rental price again.

    The new expiry may not pass rent_started_at + MAX_RENTAL_HOURS.
    Returns {"new_expiration", "user_balance"} with the balance formatted
    to two decimals.
    """
    rentals.validate_duration(duration)

    if not record.is_rent:
        raise NotRentable(record.id)

    try:
        with transaction.atomic():
            account = _lock_account(user)
            locked = (
                UserProduct.objects
                .select_for_update()
                .select_related("product")
                .get(id=record.id)
            )

            try:
                new_expiration = rentals.renewed_expiry(
                    locked.id,
                    locked.rent_started_at,
                    locked.rent_expires_at,
                    duration,
                )
            except DurationCapExceeded:
                logger.warning(
                    "Renewal over cap: record=%s started=%s expires=%s hours=%s",
                    locked.id, locked.rent_started_at, locked.rent_expires_at, duration,
                )
                raise

            _debit(account, locked.product.rental_price)

            locked.rent_expires_at = new_expiration
            locked.save(update_fields=["rent_expires_at", "updated_at"])
    except DatabaseError as exc:
        logger.exception("Rental renewal failed: record=%s user=%s", record.id, user.id)
        raise OperationFailed("Rental renewal failed") from exc

    record.rent_expires_at = locked.rent_expires_at
    record.updated_at = locked.updated_at

    logger.info(
        "Rental renewed: record=%s hours=%s expires=%s balance=%s",
        record.id, duration, new_expiration.isoformat(), account.balance,
    )

    return {
        "new_expiration": locked.rent_expires_at,
        "user_balance": f"{account.balance:.2f}",
    }


def check_status(record, clock=None, code_factory=generate_unique_code):
    """
    Snapshot an entitlement record, backfilling its unique_code if missing.

    The backfill only writes when the column is still NULL, so two
    concurrent status checks agree on a single code.
    """
    if not record.unique_code:
        updated = UserProduct.objects.filter(
            id=record.id,
            unique_code__isnull=True,
        ).update(unique_code=code_factory(), updated_at=_now(clock))

        if updated:
            logger.info("Unique code assigned: record=%s", record.id)

        record.refresh_from_db(fields=["unique_code", "updated_at"])

    return {
        "id": record.id,
        "product_id": record.product_id,
        "ownership_type": record.ownership_type,
        "unique_code": record.unique_code,
        "rent_started_at": record.rent_started_at,
        "rent_expires_at": record.rent_expires_at,
        "rental_active": record.is_rental_active(_now(clock)),
    }


def purchase_history(user):
    """All purchase-kind records of `user`, with their products joined in."""
    return list(
        UserProduct.objects
        .filter(user_id=user.id, ownership_type=OwnershipType.PURCHASE)
        .select_related("product")
        .order_by("created_at", "id")
    )


def find_active_rental(user, product, clock=None):
    """Resolve the user's current rental of `product`, or None."""
    return (
        UserProduct.objects
        .filter(
            user_id=user.id,
            product_id=product.id,
            ownership_type=OwnershipType.RENT,
            rent_expires_at__gt=_now(clock),
        )
        .order_by("-rent_expires_at", "-id")
        .first()
    )


def register_user(name, email, password):
    """Create a login plus an empty Account in one transaction."""
    User = get_user_model()

    with transaction.atomic():
        user = User.objects.create_user(
            username=email,
            email=email,
            password=password,
            first_name=name,
        )
        Account.objects.create(user=user)

    logger.info("User registered: user=%s", user.id)
    return user


def issue_token(user):
    """Replace any existing API token of `user` with a fresh one."""
    with transaction.atomic():
        Token.objects.filter(user=user).delete()
        token = Token.objects.create(user=user)

    return token


def revoke_tokens(user):
    deleted, _ = Token.objects.filter(user=user).delete()
    logger.info("Tokens revoked: user=%s count=%s", user.id, deleted)
    return deleted
