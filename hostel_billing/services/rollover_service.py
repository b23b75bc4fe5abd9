"""Billing period rollover: opens each period's rent charges.

For every active tenancy the rollover carries any unpaid rent from the
preceding period into Tenancy.previous_balance, drops the closed period's utility
charge override and creates the new period's RentCharge. Re-running a
period is a no-op for tenancies that already have a charge; the
(tenancy_id, period) unique constraint backs that check when two runs overlap.
"""

import logging
from decimal import Decimal
from typing import NamedTuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from hostel_billing.models.rent_charge import DueStatus, RentCharge
from hostel_billing.services.actor import Actor
from hostel_billing.services.audit_service import AuditEntry, record_audit, snapshot
from hostel_billing.services.db import UnitOfWork
from hostel_billing.services.dues_store import DuesStore
from hostel_billing.services.errors import PersistenceError
from hostel_billing.services.money import ZERO
from hostel_billing.services.periods import parse_period, previous_period, rent_due_date

logger = logging.getLogger(__name__)


class RolloverResult(NamedTuple):
    """Summary of one rollover run."""

    period: str
    created: int
    skipped: int
    carried_forward: Decimal


class TenancyRollover(NamedTuple):
    """Outcome of rolling a single tenancy."""

    created: bool
    carried_forward: Decimal


class BillingPeriodRollover:
    """Per-period batch step over all active tenancies.

    Each tenancy is rolled in its own short transaction so the carry-forward
    and the new charge commit together.
    """

    def __init__(self, uow: UnitOfWork, rent_due_day: int = 5):
        """Initialize with an active unit of work.

        Args:
            uow: Unit of work owning the session
            rent_due_day: Day of month each new rent charge falls due
        """
        self.uow = uow
        self.rent_due_day = rent_due_day

    @property
    def db(self):
        return self.uow.session

    def run_period(self, actor: Actor, period: str) -> RolloverResult:
        """Create rent charges for `period` across all active tenancies.

        Args:
            actor: Who triggered the rollover (usually SYSTEM)
            period: Period to open, YYYY-MM

        Returns:
            RolloverResult with created/skipped counts and total carried forward

        Raises:
            ValidationError: If period is malformed
            PersistenceError: If a commit fails for a reason other than the
                uniqueness constraint
        """
        parse_period(period)
        prior = previous_period(period)
        due_date = rent_due_date(period, self.rent_due_day)

        store = DuesStore(self.db)
        tenancy_ids = [tenancy.id for tenancy in store.list_active_tenancies()]
        logger.info("Rolling over %d active tenancies into %s", len(tenancy_ids), period)

        created = 0
        skipped = 0
        carried_total = ZERO
        for tenancy_id in tenancy_ids:
            outcome = self._roll_tenancy(store, actor, tenancy_id, period, prior, due_date)
            if outcome.created:
                created += 1
                carried_total += outcome.carried_forward
            else:
                skipped += 1

        logger.info(
            "Rollover %s completed: created=%d, skipped=%d, carried_forward=%s",
            period,
            created,
            skipped,
            carried_total,
        )
        return RolloverResult(period, created, skipped, carried_total)

    def _roll_tenancy(self, store, actor, tenancy_id, period, prior, due_date) -> TenancyRollover:
        try:
            tenancy = store.get_tenancy(tenancy_id, for_update=True)
            if tenancy is None or not tenancy.is_active:
                return TenancyRollover(False, ZERO)

            if store.get_rent_charge(tenancy.id, period) is not None:
                logger.info("Rent charge already exists for tenancy %d in %s, skipping", tenancy.id, period)
                self.uow.rollback()
                return TenancyRollover(False, ZERO)

            audit_entries: list[AuditEntry] = []
            carried = ZERO
            previous = store.get_rent_charge(tenancy.id, prior)
            if previous is not None and previous.status != DueStatus.PAID:
                carried = previous.amount - previous.amount_paid

            before: dict = {}
            after: dict = {}
            if carried > ZERO:
                before["previous_balance"] = tenancy.previous_balance
                tenancy.previous_balance = (tenancy.previous_balance or ZERO) + carried
                after["previous_balance"] = tenancy.previous_balance
            if tenancy.utility_charge_override is not None:
                # An override only covers the period it was set in
                before["utility_charge_override"] = tenancy.utility_charge_override
                tenancy.utility_charge_override = None
                after["utility_charge_override"] = None
            if after:
                audit_entries.append(
                    AuditEntry("Tenancy", tenancy.id, "update", snapshot(**before), snapshot(**after))
                )

            charge = RentCharge(
                tenancy_id=tenancy.id,
                period=period,
                amount=tenancy.monthly_share or ZERO,
                amount_paid=ZERO,
                status=DueStatus.DUE,
                due_date=due_date,
            )
            self.db.add(charge)
            self.db.flush()
            audit_entries.insert(
                0,
                AuditEntry(
                    "RentCharge",
                    charge.id,
                    "create",
                    None,
                    snapshot(
                        tenancy_id=tenancy.id,
                        period=period,
                        amount=charge.amount,
                        status=charge.status,
                        due_date=due_date,
                    ),
                ),
            )
            self.uow.commit()
        except IntegrityError:
            # A concurrent run inserted this charge first
            self.uow.rollback()
            logger.info("Rent charge for tenancy %d in %s created concurrently, skipping", tenancy_id, period)
            return TenancyRollover(False, ZERO)
        except SQLAlchemyError as e:
            self.uow.rollback()
            logger.error("Rollover failed for tenancy %d in %s: %s", tenancy_id, period, e)
            raise PersistenceError(f"Rollover failed for tenancy {tenancy_id} in {period}") from e

        logger.info(
            "Created rent charge %d for tenancy %d in %s (amount=%s, carried_forward=%s)",
            charge.id,
            tenancy_id,
            period,
            charge.amount,
            carried,
        )
        record_audit(self.db, actor, audit_entries)
        return TenancyRollover(True, carried)


__all__ = ["BillingPeriodRollover", "RolloverResult"]
