"""Persistence access to tenancies, rent charges, bills and utility charges."""

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hostel_billing.models.bill import Bill
from hostel_billing.models.payment import Payment
from hostel_billing.models.payment_allocation import DueType, PaymentAllocation
from hostel_billing.models.rent_charge import OPEN_STATUSES, DueStatus, RentCharge
from hostel_billing.models.shared_utility_charge import SharedUtilityCharge
from hostel_billing.models.tenancy import Tenancy
from hostel_billing.models.user import User
from hostel_billing.services.money import ZERO, to_money

logger = logging.getLogger(__name__)

DUE_MODELS = {
    DueType.RENT: RentCharge,
    DueType.BILL: Bill,
}


def derive_status(amount: Decimal, amount_paid: Decimal) -> DueStatus:
    """Settlement status as a pure function of (amount, amount_paid).

    Nothing paid is "due" (even for a zero-amount charge), something paid that
    covers the amount is "paid", anything in between is "partial".
    """
    if amount_paid <= 0:
        return DueStatus.DUE
    if amount_paid >= amount:
        return DueStatus.PAID
    return DueStatus.PARTIAL


class DuesStore:
    """Query and update helpers shared by the dues services.

    Never commits; the calling service owns the transaction.
    """

    def __init__(self, db_session: Session):
        """Initialize with database session."""
        self.db = db_session

    # Tenants and tenancies

    def get_tenant(self, tenant_id: int) -> User | None:
        return self.db.query(User).filter(User.id == tenant_id).first()

    def get_tenancy(self, tenancy_id: int, for_update: bool = False) -> Tenancy | None:
        query = self.db.query(Tenancy).filter(Tenancy.id == tenancy_id)
        if for_update:
            query = query.populate_existing().with_for_update()
        return query.first()

    def get_active_tenancy(self, tenant_id: int) -> Tenancy | None:
        return (
            self.db.query(Tenancy)
            .filter(Tenancy.tenant_id == tenant_id, Tenancy.is_active.is_(True))
            .order_by(Tenancy.id)
            .first()
        )

    def list_active_tenancies(self) -> list[Tenancy]:
        return self.db.query(Tenancy).filter(Tenancy.is_active.is_(True)).order_by(Tenancy.id).all()

    def list_active_tenancies_in_room(self, room_id: int) -> list[Tenancy]:
        return (
            self.db.query(Tenancy)
            .filter(Tenancy.room_id == room_id, Tenancy.is_active.is_(True))
            .order_by(Tenancy.id)
            .all()
        )

    def count_active_tenancies(self, room_id: int) -> int:
        result = self.db.execute(
            select(func.count(Tenancy.id)).where(
                (Tenancy.room_id == room_id) & (Tenancy.is_active.is_(True))
            )
        )
        return int(result.scalar() or 0)

    # Dues

    def list_open_rent_charges(self, tenant_id: int, period: str | None = None) -> list[RentCharge]:
        """Rent charges in due/partial status across all of the tenant's tenancies."""
        query = (
            self.db.query(RentCharge)
            .join(Tenancy, RentCharge.tenancy_id == Tenancy.id)
            .filter(Tenancy.tenant_id == tenant_id, RentCharge.status.in_(OPEN_STATUSES))
        )
        if period is not None:
            query = query.filter(RentCharge.period == period)
        return query.order_by(RentCharge.id).all()

    def list_open_bills(self, tenant_id: int) -> list[Bill]:
        """Bills in due/partial status across all of the tenant's tenancies."""
        return (
            self.db.query(Bill)
            .join(Tenancy, Bill.tenancy_id == Tenancy.id)
            .filter(Tenancy.tenant_id == tenant_id, Bill.status.in_(OPEN_STATUSES))
            .order_by(Bill.id)
            .all()
        )

    def get_rent_charge(self, tenancy_id: int, period: str) -> RentCharge | None:
        return (
            self.db.query(RentCharge)
            .filter(RentCharge.tenancy_id == tenancy_id, RentCharge.period == period)
            .first()
        )

    def get_due(self, due_type: DueType, due_id: int, for_update: bool = False) -> RentCharge | Bill | None:
        """Load a rent charge or bill by id.

        With for_update the row is locked (where the backend supports it) and
        re-read from the database rather than served from the identity map.
        """
        model = DUE_MODELS[due_type]
        query = self.db.query(model).filter(model.id == due_id)
        if for_update:
            query = query.populate_existing().with_for_update()
        return query.first()

    def allocated_total(self, due_type: DueType, due_id: int) -> Decimal:
        """Live sum of allocation rows referencing a due."""
        result = self.db.execute(
            select(func.coalesce(func.sum(PaymentAllocation.amount), 0)).where(
                (PaymentAllocation.due_type == due_type) & (PaymentAllocation.due_id == due_id)
            )
        )
        return to_money(result.scalar() or ZERO)

    def refresh_due_balance(self, due_type: DueType, due: RentCharge | Bill) -> DueStatus:
        """Recompute amount_paid from allocation rows and re-derive status.

        Pending allocation rows must be flushed before calling.
        """
        due.amount_paid = self.allocated_total(due_type, due.id)
        due.status = derive_status(due.amount, due.amount_paid)
        logger.debug(
            "Refreshed %s %d: amount_paid=%s status=%s",
            due_type.value,
            due.id,
            due.amount_paid,
            due.status.value,
        )
        return due.status

    # Utilities

    def get_shared_utility_charge(self, room_id: int, period: str) -> SharedUtilityCharge | None:
        return (
            self.db.query(SharedUtilityCharge)
            .filter(SharedUtilityCharge.room_id == room_id, SharedUtilityCharge.period == period)
            .first()
        )

    # Payments

    def get_payment(self, payment_id: int, for_update: bool = False) -> Payment | None:
        query = self.db.query(Payment).filter(Payment.id == payment_id)
        if for_update:
            query = query.populate_existing().with_for_update()
        return query.first()


__all__ = ["DuesStore", "DUE_MODELS", "derive_status"]
