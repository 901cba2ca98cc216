"""
Rental lifecycle policy.

Pure functions over timestamps: which durations may be bought, when a new
rental expires, and whether a renewal stays inside the total rental cap.

The cap is anchored on the rental's original start time, so a single
rental record can never cover more than MAX_RENTAL_HOURS in total no
matter how many renewals are stacked on it.
"""

from datetime import timedelta

from ledger.domain.exceptions import DurationCapExceeded, InvalidDuration

VALID_RENT_DURATIONS = (4, 8, 12, 24)
MAX_RENTAL_HOURS = 24


def validate_duration(duration):
    """Return the duration as hours, or raise InvalidDuration."""
    # bool is an int subclass; True must not pass as a 1 hour rental
    if isinstance(duration, bool) or duration not in VALID_RENT_DURATIONS:
        raise InvalidDuration(duration)
    return int(duration)


def rental_window(start, duration):
    """Return (start, expiry) for a brand new rental of `duration` hours."""
    hours = validate_duration(duration)
    return start, start + timedelta(hours=hours)


def max_expiry(rent_started_at):
    return rent_started_at + timedelta(hours=MAX_RENTAL_HOURS)


def renewed_expiry(record_id, rent_started_at, rent_expires_at, duration):
    """
    Compute the expiry a renewal of `duration` hours would produce.

    Raises DurationCapExceeded when the new expiry lands after
    start + MAX_RENTAL_HOURS. Landing exactly on the cap is allowed.
    """
    hours = validate_duration(duration)
    new_expiry = rent_expires_at + timedelta(hours=hours)
    cap = max_expiry(rent_started_at)

    if new_expiry > cap:
        raise DurationCapExceeded(record_id, new_expiry, cap)

    return new_expiry


def is_rental_active(ownership_type, rent_expires_at, now):
    return ownership_type == "rent" and rent_expires_at is not None and rent_expires_at > now
