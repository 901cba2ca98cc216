class LedgerError(Exception):
    """Base class for every expected failure of a ledger operation."""

    default_message = "Ledger operation failed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidDuration(LedgerError):
    """Raised when a rental duration is not one of the allowed hour counts."""

    default_message = "Invalid rental duration"

    def __init__(self, duration, message=None):
        self.duration = duration
        super().__init__(message)


class AlreadyOwned(LedgerError):
    """Raised when the user already holds a purchase record for the product."""

    default_message = "Product already owned"

    def __init__(self, user_id, product_id, message=None):
        self.user_id = user_id
        self.product_id = product_id
        super().__init__(message)


class ActiveRentalExists(LedgerError):
    """Raised when renting a product the user is still renting."""

    default_message = "You already have an active rental for this product"

    def __init__(self, user_id, product_id, message=None):
        self.user_id = user_id
        self.product_id = product_id
        super().__init__(message)


class NotRentable(LedgerError):
    """Raised when a renewal targets a record that is not a rental."""

    default_message = "Only rentals can be renewed"

    def __init__(self, record_id, message=None):
        self.record_id = record_id
        super().__init__(message)


class DurationCapExceeded(LedgerError):
    """Raised when a renewal would push the rental past its total time cap."""

    default_message = "Cannot exceed 24 hours total rental time"

    def __init__(self, record_id, requested_expiry, max_expiry, message=None):
        self.record_id = record_id
        self.requested_expiry = requested_expiry
        self.max_expiry = max_expiry
        super().__init__(message)


class InsufficientFunds(LedgerError):
    """Raised when an account balance does not cover the price being charged."""

    default_message = "Insufficient balance"

    def __init__(self, account_id, requested, available, message=None):
        self.account_id = account_id
        self.requested = requested
        self.available = available
        super().__init__(message)


class OperationFailed(LedgerError):
    """Raised after a rollback caused by an unexpected persistence failure."""

    default_message = "Operation failed"
