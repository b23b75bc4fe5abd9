"""Payment recording with multi-due allocation.

Recording a payment is the only operation that needs cross-record atomicity:
the payment row, its allocation rows and the refreshed due balances commit
together or not at all.
"""

import logging
import math
from datetime import date, datetime
from typing import NamedTuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from hostel_billing.models.bill import Bill
from hostel_billing.models.payment import Payment, PaymentMethod, PaymentType
from hostel_billing.models.payment_allocation import DueType, PaymentAllocation
from hostel_billing.models.rent_charge import RentCharge
from hostel_billing.services.actor import Actor
from hostel_billing.services.allocation_service import AllocationEntry, coerce_allocation
from hostel_billing.services.audit_service import AuditEntry, record_audit, snapshot
from hostel_billing.services.db import UnitOfWork
from hostel_billing.services.dues_store import DuesStore
from hostel_billing.services.errors import (
    BillingError,
    NotFoundError,
    OverAllocationError,
    PersistenceError,
    ValidationError,
)
from hostel_billing.services.money import ZERO, positive_money

logger = logging.getLogger(__name__)

DUE_ENTITY_NAMES = {
    DueType.RENT: "RentCharge",
    DueType.BILL: "Bill",
}

MAX_PAGE_SIZE = 500

# Marks an optional field that update_payment should leave as it is
UNCHANGED = object()


class PaymentPage(NamedTuple):
    """One page of a filtered payment listing."""

    items: list[Payment]
    total: int
    page: int
    page_size: int
    pages: int


def _coerce_enum(enum_cls, value, label: str):
    try:
        return enum_cls(value)
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Unknown {label}: {value!r} (expected one of: {allowed})") from e


def _require_date(value, label: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError as e:
            raise ValidationError(f"Invalid {label}: {value!r}") from e
    raise ValidationError(f"Invalid {label}: {value!r}")


def _due_state(due: RentCharge | Bill) -> dict:
    return snapshot(amount=due.amount, amount_paid=due.amount_paid, status=due.status)


def _payment_state(payment: Payment) -> dict:
    return snapshot(
        tenant_id=payment.tenant_id,
        amount=payment.amount,
        method=payment.method,
        payment_type=payment.payment_type,
        payment_date=payment.payment_date,
        period_start=payment.period_start,
        period_end=payment.period_end,
        description=payment.description,
    )


class PaymentRecorder:
    """Records payments and their allocations inside one unit of work.

    Balances are always re-read inside the transaction; values previously
    returned by DuesAggregator or AllocationEngine are not trusted.
    """

    def __init__(self, uow: UnitOfWork):
        """Initialize with an active unit of work."""
        self.uow = uow

    @property
    def db(self):
        return self.uow.session

    def record_payment(
        self,
        actor: Actor,
        tenant_id: int,
        amount,
        method: PaymentMethod | str,
        payment_date: date,
        allocations=(),
        period_start: date | None = None,
        period_end: date | None = None,
        description: str | None = None,
        payment_type: PaymentType | str = PaymentType.PARTIAL,
    ) -> Payment:
        """Atomically persist a payment, its allocations and the due updates.

        An empty allocation list records an unapplied payment; no due changes.

        Args:
            actor: Who is recording the payment
            tenant_id: Tenant who paid
            amount: Amount received (must be > 0)
            method: cash, bank_transfer, cheque or other
            payment_date: Date the money was received
            allocations: AllocationEntry items (or (due_type, due_id, amount)
                tuples / mappings) to apply
            period_start: Optional start of the period the payment covers
            period_end: Optional end of the period the payment covers
            description: Optional free text
            payment_type: full or partial; a full payment clears the tenant's
                utility charge override

        Returns:
            The committed Payment, reloaded with its allocations so it can be
            read after the unit of work closes

        Raises:
            ValidationError: Invalid input, allocations above the payment
                amount, or a due that belongs to another tenant
            NotFoundError: Tenant or referenced due does not exist
            OverAllocationError: An allocation exceeds the due's remaining balance
            PersistenceError: The commit failed
        """
        amount = positive_money(amount, "payment amount")
        method = _coerce_enum(PaymentMethod, method, "payment method")
        payment_type = _coerce_enum(PaymentType, payment_type, "payment type")
        payment_date = _require_date(payment_date, "payment date")
        if period_start is not None:
            period_start = _require_date(period_start, "period start")
        if period_end is not None:
            period_end = _require_date(period_end, "period end")
        if period_start and period_end and period_start > period_end:
            raise ValidationError(f"Period start {period_start} is after period end {period_end}")

        entries: list[AllocationEntry] = [coerce_allocation(entry) for entry in allocations]
        allocated = sum((entry.amount for entry in entries), ZERO)
        if allocated > amount:
            raise ValidationError(
                f"Allocations total {allocated} exceeds payment amount {amount}"
            )

        store = DuesStore(self.db)
        audit_entries: list[AuditEntry] = []

        try:
            if store.get_tenant(tenant_id) is None:
                raise NotFoundError(f"Tenant {tenant_id} not found")

            payment = Payment(
                tenant_id=tenant_id,
                amount=amount,
                method=method,
                payment_type=payment_type,
                payment_date=payment_date,
                period_start=period_start,
                period_end=period_end,
                description=description,
            )
            self.db.add(payment)
            self.db.flush()
            payment_id = payment.id
            audit_entries.append(AuditEntry("Payment", payment_id, "create", None, _payment_state(payment)))

            for entry in entries:
                audit_entries.extend(self._apply_allocation(store, payment, tenant_id, entry))

            if payment_type == PaymentType.FULL:
                audit_entries.extend(self._clear_utility_override(store, tenant_id))

            self.uow.commit()
        except BillingError:
            self.uow.rollback()
            raise
        except SQLAlchemyError as e:
            self.uow.rollback()
            logger.error("Failed to record payment for tenant %d: %s", tenant_id, e)
            raise PersistenceError(f"Failed to record payment for tenant {tenant_id}") from e

        logger.info(
            "Recorded payment %d for tenant %d: amount=%s, allocated=%s across %d dues",
            payment_id,
            tenant_id,
            amount,
            allocated,
            len(entries),
        )

        record_audit(self.db, actor, audit_entries)
        return self._reload(payment_id)

    def _reload(self, payment_id: int) -> Payment:
        # Column values and allocations are loaded eagerly so the instance
        # stays readable once detached
        return (
            self.db.query(Payment)
            .options(selectinload(Payment.allocations))
            .populate_existing()
            .filter(Payment.id == payment_id)
            .one()
        )

    def _apply_allocation(
        self,
        store: DuesStore,
        payment: Payment,
        tenant_id: int,
        entry: AllocationEntry,
    ) -> list[AuditEntry]:
        due = store.get_due(entry.due_type, entry.due_id, for_update=True)
        if due is None:
            raise NotFoundError(f"{DUE_ENTITY_NAMES[entry.due_type]} {entry.due_id} not found")
        if due.tenancy.tenant_id != tenant_id:
            raise ValidationError(
                f"{DUE_ENTITY_NAMES[entry.due_type]} {entry.due_id} does not belong to tenant {tenant_id}"
            )

        before = _due_state(due)
        remaining = due.amount - store.allocated_total(entry.due_type, due.id)
        if entry.amount > remaining:
            raise OverAllocationError(
                f"Allocation {entry.amount} exceeds remaining balance {remaining} "
                f"of {DUE_ENTITY_NAMES[entry.due_type]} {due.id}"
            )

        allocation = PaymentAllocation(
            payment_id=payment.id,
            due_type=entry.due_type,
            due_id=due.id,
            amount=entry.amount,
        )
        self.db.add(allocation)
        self.db.flush()
        store.refresh_due_balance(entry.due_type, due)

        return [
            AuditEntry(
                "PaymentAllocation",
                allocation.id,
                "create",
                None,
                snapshot(
                    payment_id=payment.id,
                    due_type=entry.due_type,
                    due_id=due.id,
                    amount=entry.amount,
                ),
            ),
            AuditEntry(DUE_ENTITY_NAMES[entry.due_type], due.id, "update", before, _due_state(due)),
        ]

    def _clear_utility_override(self, store: DuesStore, tenant_id: int) -> list[AuditEntry]:
        tenancy = store.get_active_tenancy(tenant_id)
        if tenancy is None or tenancy.utility_charge_override is None:
            return []
        before = snapshot(utility_charge_override=tenancy.utility_charge_override)
        # Cleared, not zeroed: the next read falls back to the prorated share
        tenancy.utility_charge_override = None
        return [
            AuditEntry(
                "Tenancy",
                tenancy.id,
                "update",
                before,
                snapshot(utility_charge_override=tenancy.utility_charge_override),
            )
        ]

    def delete_payment(self, actor: Actor, payment_id: int) -> None:
        """Remove a payment and its allocations, then recompute affected dues.

        Because amount_paid is derived from live allocations, dues settled by
        this payment move back to partial or due.

        Raises:
            NotFoundError: If the payment does not exist
            PersistenceError: The commit failed
        """
        store = DuesStore(self.db)
        audit_entries: list[AuditEntry] = []

        try:
            payment = store.get_payment(payment_id)
            if payment is None:
                raise NotFoundError(f"Payment {payment_id} not found")

            affected = {(a.due_type, a.due_id) for a in payment.allocations}
            allocation_count = len(payment.allocations)
            for allocation in payment.allocations:
                audit_entries.append(
                    AuditEntry(
                        "PaymentAllocation",
                        allocation.id,
                        "delete",
                        snapshot(
                            payment_id=payment.id,
                            due_type=allocation.due_type,
                            due_id=allocation.due_id,
                            amount=allocation.amount,
                        ),
                        None,
                    )
                )
            audit_entries.append(AuditEntry("Payment", payment.id, "delete", _payment_state(payment), None))

            self.db.delete(payment)
            self.db.flush()

            for due_type, due_id in sorted(affected, key=lambda key: (key[0].value, key[1])):
                due = store.get_due(due_type, due_id, for_update=True)
                if due is None:
                    continue
                before = _due_state(due)
                store.refresh_due_balance(due_type, due)
                audit_entries.append(
                    AuditEntry(DUE_ENTITY_NAMES[due_type], due.id, "update", before, _due_state(due))
                )

            self.uow.commit()
        except BillingError:
            self.uow.rollback()
            raise
        except SQLAlchemyError as e:
            self.uow.rollback()
            logger.error("Failed to delete payment %d: %s", payment_id, e)
            raise PersistenceError(f"Failed to delete payment {payment_id}") from e

        logger.info("Deleted payment %d and %d allocations", payment_id, allocation_count)
        record_audit(self.db, actor, audit_entries)

    def update_payment(
        self,
        actor: Actor,
        payment_id: int,
        amount=None,
        method: PaymentMethod | str | None = None,
        payment_date: date | None = None,
        period_start=UNCHANGED,
        period_end=UNCHANGED,
        description=UNCHANGED,
        payment_type: PaymentType | str | None = None,
    ) -> Payment:
        """Edit the details of a recorded payment.

        Allocations are not touched. amount, method, payment_date and
        payment_type are left alone when None; period_start, period_end and
        description are left alone unless passed, and may be cleared with None.
        Setting payment_type to full clears the tenant's utility charge override,
        as recording a full payment does.

        Returns:
            The updated Payment, readable after the unit of work closes

        Raises:
            ValidationError: Invalid input, or an amount below what is already
                allocated from the payment
            NotFoundError: If the payment does not exist
            PersistenceError: The commit failed
        """
        changes = {}
        if amount is not None:
            changes["amount"] = positive_money(amount, "payment amount")
        if method is not None:
            changes["method"] = _coerce_enum(PaymentMethod, method, "payment method")
        if payment_type is not None:
            changes["payment_type"] = _coerce_enum(PaymentType, payment_type, "payment type")
        if payment_date is not None:
            changes["payment_date"] = _require_date(payment_date, "payment date")
        for field, value in (("period_start", period_start), ("period_end", period_end)):
            if value is not UNCHANGED:
                changes[field] = None if value is None else _require_date(value, field.replace("_", " "))
        if description is not UNCHANGED:
            changes["description"] = description

        store = DuesStore(self.db)
        audit_entries: list[AuditEntry] = []

        try:
            payment = store.get_payment(payment_id, for_update=True)
            if payment is None:
                raise NotFoundError(f"Payment {payment_id} not found")

            start = changes.get("period_start", payment.period_start)
            end = changes.get("period_end", payment.period_end)
            if start and end and start > end:
                raise ValidationError(f"Period start {start} is after period end {end}")
            if "amount" in changes and changes["amount"] < payment.allocated_amount:
                raise ValidationError(
                    f"Payment amount {changes['amount']} is below the {payment.allocated_amount} "
                    f"already allocated from payment {payment_id}"
                )

            before = _payment_state(payment)
            for field, value in changes.items():
                setattr(payment, field, value)
            audit_entries.append(AuditEntry("Payment", payment.id, "update", before, _payment_state(payment)))

            if changes.get("payment_type") == PaymentType.FULL:
                audit_entries.extend(self._clear_utility_override(store, payment.tenant_id))

            self.uow.commit()
        except BillingError:
            self.uow.rollback()
            raise
        except SQLAlchemyError as e:
            self.uow.rollback()
            logger.error("Failed to update payment %d: %s", payment_id, e)
            raise PersistenceError(f"Failed to update payment {payment_id}") from e

        logger.info("Updated payment %d: %s", payment_id, ", ".join(sorted(changes)) or "no changes")
        record_audit(self.db, actor, audit_entries)
        return self._reload(payment_id)

    def get_payment_history(self, tenant_id: int, limit: int = 50) -> list[Payment]:
        """Tenant's payments, newest first."""
        return (
            self.db.query(Payment)
            .filter(Payment.tenant_id == tenant_id)
            .order_by(Payment.payment_date.desc(), Payment.id.desc())
            .limit(limit)
            .all()
        )

    def list_payments(
        self,
        tenant_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> PaymentPage:
        """Payments across tenants, newest first, filtered and paginated.

        Args:
            tenant_id: Only this tenant's payments
            date_from: Earliest payment date, inclusive
            date_to: Latest payment date, inclusive
            page: 1-based page number
            page_size: Payments per page (1 to MAX_PAGE_SIZE)

        Raises:
            ValidationError: Bad page bounds or a date range that ends before it starts
        """
        if page < 1:
            raise ValidationError(f"Page must be 1 or greater, got {page}")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValidationError(f"Page size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")
        if date_from is not None:
            date_from = _require_date(date_from, "start date")
        if date_to is not None:
            date_to = _require_date(date_to, "end date")
        if date_from and date_to and date_from > date_to:
            raise ValidationError(f"Start date {date_from} is after end date {date_to}")

        query = self.db.query(Payment)
        if tenant_id is not None:
            query = query.filter(Payment.tenant_id == tenant_id)
        if date_from is not None:
            query = query.filter(Payment.payment_date >= date_from)
        if date_to is not None:
            query = query.filter(Payment.payment_date <= date_to)

        total = query.count()
        items = (
            query.order_by(Payment.payment_date.desc(), Payment.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return PaymentPage(items, total, page, page_size, math.ceil(total / page_size))

    def list_allocations(self, payment_id: int) -> list[PaymentAllocation]:
        return (
            self.db.query(PaymentAllocation)
            .filter(PaymentAllocation.payment_id == payment_id)
            .order_by(PaymentAllocation.id)
            .all()
        )


__all__ = ["PaymentPage", "PaymentRecorder", "UNCHANGED"]
