"""Integration tests for tenancy administration and balance corrections."""

from datetime import date
from decimal import Decimal

import pytest

from hostel_billing.models import AuditLog, BillType, DueStatus, RentCharge, SharedUtilityCharge
from hostel_billing.services.actor import AuthenticatedUser
from hostel_billing.services.errors import (
    ActiveTenancyExistsError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from hostel_billing.services.tenancy_service import TenancyService

ADMIN = AuthenticatedUser(user_id=1, role="admin")


@pytest.fixture
def service(uow):
    return TenancyService(uow)


class TestTenancyLifecycle:
    """Creating and ending tenancies."""

    def test_create_tenancy(self, db_session, service, room, tenant):
        tenancy = service.create_tenancy(ADMIN, room.id, tenant.id, date(2024, 1, 1), monthly_share="120.00")

        assert tenancy.is_active is True
        assert tenancy.monthly_share == Decimal("120.00")
        assert tenancy.previous_balance == Decimal("0.00")
        audit = db_session.query(AuditLog).one()
        assert (audit.entity_type, audit.action, audit.entity_id) == ("Tenancy", "create", tenancy.id)

    def test_second_active_tenancy_rejected(self, service, room, tenant, tenancy):
        with pytest.raises(ActiveTenancyExistsError):
            service.create_tenancy(ADMIN, room.id, tenant.id, date(2024, 2, 1))

    def test_unknown_room(self, service, tenant):
        with pytest.raises(NotFoundError, match="Room 99 not found"):
            service.create_tenancy(ADMIN, 99, tenant.id, date(2024, 1, 1))

    def test_unknown_tenant(self, service, room):
        with pytest.raises(NotFoundError, match="Tenant 99 not found"):
            service.create_tenancy(ADMIN, room.id, 99, date(2024, 1, 1))

    def test_end_tenancy_keeps_dues(self, db_session, seed, service, tenancy):
        seed.rent(tenancy, "2024-01", "100.00", date(2024, 1, 5))

        ended = service.end_tenancy(ADMIN, tenancy.id, date(2024, 1, 31))

        assert ended.is_active is False
        assert ended.end_date == date(2024, 1, 31)
        assert db_session.query(RentCharge).count() == 1

    def test_end_already_ended_tenancy(self, db_session, service, tenancy):
        service.end_tenancy(ADMIN, tenancy.id, date(2024, 1, 31))

        with pytest.raises(ConflictError, match="already ended on 2024-01-31"):
            service.end_tenancy(ADMIN, tenancy.id, date(2024, 2, 29))

        db_session.refresh(tenancy)
        assert tenancy.end_date == date(2024, 1, 31)

    def test_end_unknown_tenancy(self, service):
        with pytest.raises(NotFoundError):
            service.end_tenancy(ADMIN, 12345)


class TestBalanceCorrections:
    """Previous balance and utility override updates."""

    def test_update_previous_balance(self, db_session, service, tenancy):
        service.update_previous_balance(ADMIN, tenancy.id, "250.00")

        db_session.refresh(tenancy)
        assert tenancy.previous_balance == Decimal("250.00")
        audit = db_session.query(AuditLog).one()
        assert audit.before_state == {"previous_balance": "0.00"}
        assert audit.after_state == {"previous_balance": "250.00"}

    def test_negative_previous_balance_rejected(self, service, tenancy):
        with pytest.raises(ValidationError, match="cannot be negative"):
            service.update_previous_balance(ADMIN, tenancy.id, "-1.00")

    def test_set_and_clear_utility_override(self, db_session, service, tenancy):
        service.set_utility_override(ADMIN, tenancy.id, "45.00")
        db_session.refresh(tenancy)
        assert tenancy.utility_charge_override == Decimal("45.00")

        service.set_utility_override(ADMIN, tenancy.id, None)
        db_session.refresh(tenancy)
        assert tenancy.utility_charge_override is None


class TestCharges:
    """Room utility charges and itemized bills."""

    def test_shared_utility_charge_upsert(self, db_session, service, room):
        first = service.set_shared_utility_charge(ADMIN, room.id, "2024-03", "60.00")
        first_id = first.id
        second = service.set_shared_utility_charge(ADMIN, room.id, "2024-03", "75.00")

        assert second.id == first_id
        assert db_session.query(SharedUtilityCharge).count() == 1
        assert db_session.query(SharedUtilityCharge).one().amount == Decimal("75.00")

    def test_shared_utility_charge_bad_period(self, service, room):
        with pytest.raises(ValidationError):
            service.set_shared_utility_charge(ADMIN, room.id, "03-2024", "60.00")

    def test_create_bill(self, service, tenancy):
        bill = service.create_bill(
            ADMIN, tenancy.id, "  Electricity March ", "electricity", "42.10", date(2024, 3, 20)
        )

        assert bill.title == "Electricity March"
        assert bill.bill_type == BillType.ELECTRICITY
        assert bill.amount == Decimal("42.10")
        assert bill.status == DueStatus.DUE

    @pytest.mark.parametrize(
        "title, bill_type, amount",
        [
            ("Water", "gas", "10.00"),
            ("", "water", "10.00"),
            ("Water", "water", "0"),
        ],
    )
    def test_invalid_bill(self, service, tenancy, title, bill_type, amount):
        with pytest.raises(ValidationError):
            service.create_bill(ADMIN, tenancy.id, title, bill_type, amount, date(2024, 3, 20))
