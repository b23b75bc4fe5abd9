"""Allocation engine: proposes how a payment should be split across open dues.

Suggestions are advisory and never persisted here; PaymentRecorder re-checks
every balance inside its own transaction before committing.
"""

import logging
from datetime import date
from decimal import ROUND_DOWN, Decimal
from typing import NamedTuple

from sqlalchemy.orm import Session

from hostel_billing.models.payment_allocation import DueType
from hostel_billing.services.dues_store import DuesStore
from hostel_billing.services.errors import NotFoundError, ValidationError
from hostel_billing.services.money import CENT, ZERO, positive_money, to_money

logger = logging.getLogger(__name__)


class AllocationEntry(NamedTuple):
    """Amount of a payment to apply to one due."""

    due_type: DueType
    due_id: int
    amount: Decimal


class OpenDue(NamedTuple):
    """A due with a remaining balance, as seen by the allocation sort."""

    due_type: DueType
    due_id: int
    outstanding: Decimal
    due_date: date


def split_evenly(total: Decimal, count: int) -> list[Decimal]:
    """Split an amount into `count` cent-rounded parts that sum exactly to `total`.

    Each part is total / count rounded down to the cent; the leftover cents go
    one each to the first parts.

    Args:
        total: Amount to split
        count: Number of parts

    Returns:
        List of `count` amounts (empty if count <= 0)
    """
    if count <= 0:
        return []

    total = to_money(total)
    per_part = (total / Decimal(count)).quantize(CENT, rounding=ROUND_DOWN)
    remainder = total - (per_part * count)
    remainder_cents = int((remainder / CENT).quantize(Decimal("1")))

    parts = []
    for i in range(count):
        amount = per_part
        if i < remainder_cents:
            amount += CENT
        parts.append(amount)
    return parts


class AllocationEngine:
    """Oldest-due-first allocation of a payment."""

    def __init__(self, db_session: Session):
        """Initialize with database session."""
        self.db = db_session
        self.store = DuesStore(db_session)

    def open_dues(self, tenant_id: int) -> list[OpenDue]:
        """All of the tenant's rent charges and bills with a remaining balance.

        Rent charges come before bills, each in id order; this is the stable
        input order used to break due date ties.
        """
        dues = [
            OpenDue(DueType.RENT, rent.id, rent.amount - rent.amount_paid, rent.due_date)
            for rent in self.store.list_open_rent_charges(tenant_id)
        ]
        dues.extend(
            OpenDue(DueType.BILL, bill.id, bill.amount - bill.amount_paid, bill.due_date)
            for bill in self.store.list_open_bills(tenant_id)
        )
        return dues

    def suggest_allocation(self, tenant_id: int, payment_amount) -> list[AllocationEntry]:
        """Propose an oldest-due-first split of a payment.

        Each due, in due date order, receives min(remaining, outstanding) until
        the payment or the dues run out. Any excess payment is left unallocated.

        Args:
            tenant_id: Tenant making the payment
            payment_amount: Amount received

        Returns:
            Unpersisted allocation entries with nonzero amounts

        Raises:
            ValidationError: If the amount is not positive
            NotFoundError: If the tenant does not exist
        """
        amount = positive_money(payment_amount, "payment amount")
        if self.store.get_tenant(tenant_id) is None:
            raise NotFoundError(f"Tenant {tenant_id} not found")

        # sorted() is stable, so equal due dates keep input order
        dues = sorted(self.open_dues(tenant_id), key=lambda due: due.due_date)

        remaining = amount
        suggestions: list[AllocationEntry] = []
        for due in dues:
            if remaining <= ZERO:
                break
            if due.outstanding <= ZERO:
                continue
            portion = min(remaining, due.outstanding)
            suggestions.append(AllocationEntry(due.due_type, due.due_id, portion))
            remaining -= portion

        logger.debug(
            "Suggested %d allocations for tenant %d (payment=%s, unallocated=%s)",
            len(suggestions),
            tenant_id,
            amount,
            remaining,
        )
        return suggestions


def coerce_allocation(entry) -> AllocationEntry:
    """Normalize an allocation given as AllocationEntry, tuple or mapping.

    Mappings use the keys due_type, due_id and amount.

    Raises:
        ValidationError: On unknown due type or non-positive amount
    """
    if isinstance(entry, dict):
        try:
            due_type, due_id, amount = entry["due_type"], entry["due_id"], entry["amount"]
        except KeyError as e:
            raise ValidationError(f"Allocation is missing field {e.args[0]!r}") from e
    else:
        try:
            due_type, due_id, amount = entry
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Malformed allocation: {entry!r}") from e

    try:
        due_type = DueType(due_type)
    except ValueError as e:
        raise ValidationError(f"Unknown due type: {due_type!r}") from e
    if isinstance(due_id, bool) or not isinstance(due_id, int):
        raise ValidationError(f"Invalid due id: {due_id!r}")

    return AllocationEntry(due_type, due_id, positive_money(amount, "allocation amount"))


__all__ = [
    "AllocationEngine",
    "AllocationEntry",
    "OpenDue",
    "coerce_allocation",
    "split_evenly",
]
