"""
Purpose: Error taxonomy for the group-buying core.

Every error raised by the store, the participation engine or the lifecycle
controller derives from MarketplaceError and carries enough data for a caller
to show an actionable message (remaining quantity, existing participant id,
violated rule).

Retryable: TransportError (and StoreTimeoutError), ConflictError.
Everything else is a user-correctable or stale-id problem.
"""

from __future__ import annotations

from typing import Optional


class MarketplaceError(Exception):
    """Base class for all domain errors."""
    pass


class ValidationError(MarketplaceError):
    """
    Bad input shape or range. `rule` names the violated rule so forms can
    highlight the right field.
    """

    def __init__(self, rule: str, message: str):
        super().__init__(message)
        self.rule = rule
        self.message = message


class OrderStateError(ValidationError):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, message: str, rule: str = "invalid_transition"):
        super().__init__(rule, message)


class NotFoundError(MarketplaceError):
    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind} {identifier} not found")
        self.kind = kind
        self.identifier = identifier


class DuplicateParticipationError(MarketplaceError):
    def __init__(self, order_id: str, vendor_id: str, participant_id: str):
        super().__init__(
            f"Vendor {vendor_id} already joined order {order_id} (participant {participant_id})"
        )
        self.order_id = order_id
        self.vendor_id = vendor_id
        self.participant_id = participant_id


class CapacityExceededError(MarketplaceError):
    def __init__(self, requested: int, remaining: int, unit: str = ""):
        super().__init__(
            f"Cannot add {requested}{unit}. Only {remaining}{unit} remaining in this order"
        )
        self.requested = requested
        self.remaining = remaining


class RoleMismatchError(MarketplaceError):
    def __init__(self, actual: str, requested: str):
        super().__init__(
            f"You are registered as a {actual}, not a {requested}. Please select the correct role."
        )
        self.actual = actual
        self.requested = requested


class AuthenticationError(MarketplaceError):
    """Unknown email or wrong password."""
    pass


class TransportError(MarketplaceError):
    """Store or network unavailable. Safe to retry."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class StoreTimeoutError(TransportError):
    """A store call did not complete within the caller-supplied timeout."""
    pass


class ConflictError(MarketplaceError):
    """A concurrent write invalidated this transaction."""
    pass


RETRYABLE_ERRORS = (TransportError, ConflictError)
