"""Tenancy administration and explicit balance corrections.

previous_balance is changed here only through update_previous_balance, the
admin correction path; normal payment recording never touches it.
"""

import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError

from hostel_billing.models.bill import Bill, BillType
from hostel_billing.models.hostel import Room
from hostel_billing.models.rent_charge import DueStatus
from hostel_billing.models.shared_utility_charge import SharedUtilityCharge
from hostel_billing.models.tenancy import Tenancy
from hostel_billing.services.actor import Actor
from hostel_billing.services.audit_service import AuditEntry, record_audit, snapshot
from hostel_billing.services.db import UnitOfWork
from hostel_billing.services.dues_store import DuesStore
from hostel_billing.services.errors import (
    ActiveTenancyExistsError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from hostel_billing.services.money import ZERO, positive_money, to_money
from hostel_billing.services.periods import parse_period

logger = logging.getLogger(__name__)


def _non_negative(value, field: str):
    amount = to_money(value, field)
    if amount < ZERO:
        raise ValidationError(f"{field} cannot be negative, got {amount}")
    return amount


def _tenancy_state(tenancy: Tenancy) -> dict:
    return snapshot(
        room_id=tenancy.room_id,
        tenant_id=tenancy.tenant_id,
        is_active=tenancy.is_active,
        start_date=tenancy.start_date,
        end_date=tenancy.end_date,
        monthly_share=tenancy.monthly_share,
    )


class TenancyService:
    """Admin operations on tenancies, room utility charges and bills."""

    def __init__(self, uow: UnitOfWork):
        """Initialize with an active unit of work."""
        self.uow = uow

    @property
    def db(self):
        return self.uow.session

    def _commit(self, actor: Actor, audit_entries: list[AuditEntry], what: str) -> None:
        try:
            self.uow.commit()
        except SQLAlchemyError as e:
            self.uow.rollback()
            logger.error("Failed to %s: %s", what, e)
            raise PersistenceError(f"Failed to {what}") from e
        record_audit(self.db, actor, audit_entries)

    def _get_tenancy(self, store: DuesStore, tenancy_id: int) -> Tenancy:
        tenancy = store.get_tenancy(tenancy_id)
        if tenancy is None:
            raise NotFoundError(f"Tenancy {tenancy_id} not found")
        return tenancy

    def create_tenancy(
        self,
        actor: Actor,
        room_id: int,
        tenant_id: int,
        start_date: date,
        monthly_share=None,
    ) -> Tenancy:
        """Assign a tenant to a room.

        Raises:
            NotFoundError: If the room or tenant does not exist
            ActiveTenancyExistsError: If the tenant already has an active tenancy
        """
        share = _non_negative(monthly_share, "monthly share") if monthly_share is not None else None
        store = DuesStore(self.db)

        if self.db.query(Room).filter(Room.id == room_id).first() is None:
            raise NotFoundError(f"Room {room_id} not found")
        if store.get_tenant(tenant_id) is None:
            raise NotFoundError(f"Tenant {tenant_id} not found")
        existing = store.get_active_tenancy(tenant_id)
        if existing is not None:
            raise ActiveTenancyExistsError(
                f"Tenant {tenant_id} already has active tenancy {existing.id}"
            )

        tenancy = Tenancy(
            room_id=room_id,
            tenant_id=tenant_id,
            start_date=start_date,
            monthly_share=share,
            is_active=True,
            previous_balance=ZERO,
        )
        self.db.add(tenancy)
        try:
            self.db.flush()
        except SQLAlchemyError as e:
            self.uow.rollback()
            raise PersistenceError(f"Failed to create tenancy for tenant {tenant_id}") from e

        entries = [AuditEntry("Tenancy", tenancy.id, "create", None, _tenancy_state(tenancy))]
        self._commit(actor, entries, f"create tenancy for tenant {tenant_id}")
        logger.info("Created tenancy %d: tenant %d in room %d", tenancy.id, tenant_id, room_id)
        return tenancy

    def end_tenancy(self, actor: Actor, tenancy_id: int, end_date: date | None = None) -> Tenancy:
        """Deactivate a tenancy. Its financial records are kept.

        Raises:
            NotFoundError: If the tenancy does not exist
            ConflictError: If the tenancy has already ended
        """
        tenancy = self._get_tenancy(DuesStore(self.db), tenancy_id)
        if not tenancy.is_active:
            raise ConflictError(f"Tenancy {tenancy_id} already ended on {tenancy.end_date}")
        before = _tenancy_state(tenancy)
        tenancy.is_active = False
        tenancy.end_date = end_date or date.today()

        entries = [AuditEntry("Tenancy", tenancy.id, "update", before, _tenancy_state(tenancy))]
        self._commit(actor, entries, f"end tenancy {tenancy_id}")
        logger.info("Ended tenancy %d on %s", tenancy_id, tenancy.end_date)
        return tenancy

    def update_previous_balance(self, actor: Actor, tenancy_id: int, amount) -> Tenancy:
        """Admin correction of the carried-forward unpaid balance.

        Raises:
            ValidationError: If amount is negative or malformed
            NotFoundError: If the tenancy does not exist
        """
        new_balance = _non_negative(amount, "previous balance")
        tenancy = self._get_tenancy(DuesStore(self.db), tenancy_id)
        before = snapshot(previous_balance=tenancy.previous_balance)
        tenancy.previous_balance = new_balance

        entries = [
            AuditEntry("Tenancy", tenancy.id, "update", before, snapshot(previous_balance=new_balance))
        ]
        self._commit(actor, entries, f"update previous balance of tenancy {tenancy_id}")
        logger.info("Corrected previous balance of tenancy %d to %s", tenancy_id, new_balance)
        return tenancy

    def set_utility_override(self, actor: Actor, tenancy_id: int, amount) -> Tenancy:
        """Set (or clear with None) the tenancy's current-period utility amount."""
        override = _non_negative(amount, "utility charge") if amount is not None else None
        tenancy = self._get_tenancy(DuesStore(self.db), tenancy_id)
        before = snapshot(utility_charge_override=tenancy.utility_charge_override)
        tenancy.utility_charge_override = override

        entries = [
            AuditEntry("Tenancy", tenancy.id, "update", before, snapshot(utility_charge_override=override))
        ]
        self._commit(actor, entries, f"set utility override of tenancy {tenancy_id}")
        logger.info("Set utility override of tenancy %d to %s", tenancy_id, override)
        return tenancy

    def set_shared_utility_charge(self, actor: Actor, room_id: int, period: str, amount) -> SharedUtilityCharge:
        """Create or update a room's utility charge for a period."""
        parse_period(period)
        total = _non_negative(amount, "utility charge")
        if self.db.query(Room).filter(Room.id == room_id).first() is None:
            raise NotFoundError(f"Room {room_id} not found")

        store = DuesStore(self.db)
        charge = store.get_shared_utility_charge(room_id, period)
        if charge is None:
            charge = SharedUtilityCharge(room_id=room_id, period=period, amount=total)
            self.db.add(charge)
            action, before = "create", None
        else:
            action, before = "update", snapshot(amount=charge.amount)
            charge.amount = total

        try:
            self.db.flush()
        except SQLAlchemyError as e:
            self.uow.rollback()
            raise PersistenceError(f"Failed to save utility charge for room {room_id} in {period}") from e

        entries = [
            AuditEntry(
                "SharedUtilityCharge",
                charge.id,
                action,
                before,
                snapshot(room_id=room_id, period=period, amount=total),
            )
        ]
        self._commit(actor, entries, f"save utility charge for room {room_id} in {period}")
        logger.info("Saved utility charge for room %d in %s: %s", room_id, period, total)
        return charge

    def create_bill(
        self,
        actor: Actor,
        tenancy_id: int,
        title: str,
        bill_type: BillType | str,
        amount,
        due_date: date,
        description: str | None = None,
    ) -> Bill:
        """Create an itemized bill against a tenancy."""
        total = positive_money(amount, "bill amount")
        try:
            bill_type = BillType(bill_type)
        except ValueError as e:
            raise ValidationError(f"Unknown bill type: {bill_type!r}") from e
        if not title or not title.strip():
            raise ValidationError("Bill title is required")

        tenancy = self._get_tenancy(DuesStore(self.db), tenancy_id)
        try:
            bill = Bill(
                tenancy_id=tenancy.id,
                title=title.strip(),
                description=description,
                bill_type=bill_type,
                amount=total,
                amount_paid=ZERO,
                status=DueStatus.DUE,
                due_date=due_date,
            )
            self.db.add(bill)
            self.db.flush()
        except SQLAlchemyError as e:
            self.uow.rollback()
            raise PersistenceError(f"Failed to create bill for tenancy {tenancy_id}") from e

        entries = [
            AuditEntry(
                "Bill",
                bill.id,
                "create",
                None,
                snapshot(
                    tenancy_id=tenancy_id,
                    title=bill.title,
                    bill_type=bill_type,
                    amount=total,
                    due_date=due_date,
                ),
            )
        ]
        self._commit(actor, entries, f"create bill for tenancy {tenancy_id}")
        logger.info("Created bill %d for tenancy %d: %s %s", bill.id, tenancy_id, bill_type.value, total)
        return bill


__all__ = ["TenancyService"]
