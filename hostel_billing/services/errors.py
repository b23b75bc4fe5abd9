"""Custom exception classes for billing operations.

Validation and not-found errors reach the caller unchanged. Persistence errors
are raised only after the enclosing transaction has been rolled back.
"""


class BillingError(Exception):
    """Base exception for billing errors."""

    pass


class ValidationError(BillingError):
    """Invalid input: non-positive amount, malformed period or date, unknown enum value."""

    pass


class NotFoundError(BillingError):
    """Tenant, tenancy, room, payment or referenced due does not exist."""

    pass


class ConflictError(BillingError):
    """Operation conflicts with the current state of the records."""

    pass


class OverAllocationError(ConflictError):
    """Allocation exceeds the remaining balance of the due it targets."""

    pass


class ActiveTenancyExistsError(ConflictError):
    """Tenant already has an active tenancy."""

    pass


class PersistenceError(BillingError):
    """Database commit failed; the transaction was rolled back."""

    pass


__all__ = [
    "BillingError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "OverAllocationError",
    "ActiveTenancyExistsError",
    "PersistenceError",
]
