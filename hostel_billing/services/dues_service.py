"""Dues aggregation: a tenant's outstanding rent, bills and utility share.

Reads are advisory and non-isolated. Values returned here are fine for display
and allocation suggestions but must not be the sole basis for a financial
commit; PaymentRecorder re-reads balances inside its transaction.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from hostel_billing.models.bill import Bill
from hostel_billing.models.rent_charge import RentCharge
from hostel_billing.models.tenancy import Tenancy
from hostel_billing.services.allocation_service import split_evenly
from hostel_billing.services.dues_store import DuesStore
from hostel_billing.services.errors import NotFoundError
from hostel_billing.services.money import ZERO
from hostel_billing.services.periods import current_period, parse_period

logger = logging.getLogger(__name__)


@dataclass
class UtilityShare:
    """A tenant's share of their room's utility charge for one period."""

    amount: Decimal = ZERO
    room_total: Decimal | None = None
    roommates_count: int = 0
    overridden: bool = False


@dataclass
class OutstandingDues:
    """Open dues for a tenant.

    utility_share is informational: it is not part of total_outstanding unless
    the caller folds it into a rent charge or bill.
    """

    tenant_id: int
    period: str
    rent_charges: list[RentCharge] = field(default_factory=list)
    bills: list[Bill] = field(default_factory=list)
    utility_share: Decimal = ZERO
    room_utility_total: Decimal | None = None
    roommates_count: int = 0
    total_outstanding: Decimal = ZERO


class DuesAggregator:
    """Read-only computation of what a tenant currently owes."""

    def __init__(self, db_session: Session):
        """Initialize with database session."""
        self.db = db_session
        self.store = DuesStore(db_session)

    def get_outstanding(
        self,
        tenant_id: int,
        period: str | None = None,
        today: date | None = None,
    ) -> OutstandingDues:
        """Collect open rent charges, open bills and the prorated utility share.

        Args:
            tenant_id: Tenant to report on
            period: Optional YYYY-MM filter for rent charges; also selects the
                utility charge period (defaults to the current period)
            today: Reference date for the current period (defaults to today)

        Returns:
            OutstandingDues for the tenant

        Raises:
            ValidationError: If period is malformed
            NotFoundError: If the tenant does not exist
        """
        if period is not None:
            parse_period(period)
        if self.store.get_tenant(tenant_id) is None:
            raise NotFoundError(f"Tenant {tenant_id} not found")

        rents = self.store.list_open_rent_charges(tenant_id, period)
        bills = self.store.list_open_bills(tenant_id)

        utility_period = period or current_period(today)
        tenancy = self.store.get_active_tenancy(tenant_id)
        share = self.utility_share(tenancy, utility_period) if tenancy else UtilityShare()

        total = sum((r.amount - r.amount_paid for r in rents), ZERO)
        total += sum((b.amount - b.amount_paid for b in bills), ZERO)

        return OutstandingDues(
            tenant_id=tenant_id,
            period=utility_period,
            rent_charges=rents,
            bills=bills,
            utility_share=share.amount,
            room_utility_total=share.room_total,
            roommates_count=share.roommates_count,
            total_outstanding=total,
        )

    def calculate_outstanding_balance(self, tenant_id: int) -> Decimal:
        """Total of (amount - amount_paid) over every open rent charge and bill."""
        return self.get_outstanding(tenant_id).total_outstanding

    def room_utility_shares(self, room_id: int, period: str) -> dict[int, Decimal]:
        """Split a room's utility charge across its currently active tenancies.

        Computed at call time: when the number of roommates changes, every
        roommate's share for the period changes on the next read.

        Returns:
            Dict mapping tenancy_id to share (empty if no charge or no tenants)
        """
        parse_period(period)
        charge = self.store.get_shared_utility_charge(room_id, period)
        tenancies = self.store.list_active_tenancies_in_room(room_id)
        if charge is None or not tenancies:
            return {}

        shares = split_evenly(charge.amount, len(tenancies))
        return {tenancy.id: share for tenancy, share in zip(tenancies, shares)}

    def utility_share(self, tenancy: Tenancy, period: str) -> UtilityShare:
        """Utility share for one active tenancy, honoring an admin override."""
        charge = self.store.get_shared_utility_charge(tenancy.room_id, period)
        room_total = charge.amount if charge else None
        roommates = self.store.count_active_tenancies(tenancy.room_id)

        if tenancy.utility_charge_override is not None:
            return UtilityShare(
                amount=tenancy.utility_charge_override,
                room_total=room_total,
                roommates_count=roommates,
                overridden=True,
            )

        shares = self.room_utility_shares(tenancy.room_id, period)
        return UtilityShare(
            amount=shares.get(tenancy.id, ZERO),
            room_total=room_total,
            roommates_count=roommates,
        )


__all__ = ["DuesAggregator", "OutstandingDues", "UtilityShare"]
