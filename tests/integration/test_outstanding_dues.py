"""Integration tests for outstanding dues aggregation."""

from datetime import date
from decimal import Decimal

import pytest

from hostel_billing.models import DueStatus
from hostel_billing.services.dues_service import DuesAggregator
from hostel_billing.services.errors import NotFoundError, ValidationError


class TestOutstandingDues:
    """Open rent charges, bills and the prorated utility share."""

    def test_collects_open_rent_and_bills(self, db_session, seed, tenant, tenancy):
        seed.rent(tenancy, "2024-01", "100.00", date(2024, 1, 5))
        seed.rent(tenancy, "2024-02", "100.00", date(2024, 2, 5), amount_paid="70.00", status=DueStatus.PARTIAL)
        seed.rent(tenancy, "2023-12", "100.00", date(2023, 12, 5), amount_paid="100.00", status=DueStatus.PAID)
        seed.bill(tenancy, "45.50", date(2024, 2, 10))

        dues = DuesAggregator(db_session).get_outstanding(tenant.id, today=date(2024, 2, 15))

        assert [r.period for r in dues.rent_charges] == ["2024-01", "2024-02"]
        assert len(dues.bills) == 1
        assert dues.period == "2024-02"
        assert dues.total_outstanding == Decimal("175.50")

    def test_period_filter_applies_to_rent_only(self, db_session, seed, tenant, tenancy):
        seed.rent(tenancy, "2024-01", "100.00", date(2024, 1, 5))
        seed.rent(tenancy, "2024-02", "100.00", date(2024, 2, 5))
        seed.bill(tenancy, "20.00", date(2024, 1, 20))

        dues = DuesAggregator(db_session).get_outstanding(tenant.id, period="2024-02")

        assert [r.period for r in dues.rent_charges] == ["2024-02"]
        assert len(dues.bills) == 1
        assert dues.total_outstanding == Decimal("120.00")

    def test_includes_dues_from_ended_tenancies(self, db_session, seed, hostel, tenant, tenancy):
        seed.rent(tenancy, "2024-01", "100.00", date(2024, 1, 5))
        tenancy.is_active = False
        db_session.commit()
        other_room = seed.room(hostel, "102")
        new_tenancy = seed.tenancy(other_room, tenant, start=date(2024, 2, 1))
        seed.rent(new_tenancy, "2024-02", "80.00", date(2024, 2, 5))

        dues = DuesAggregator(db_session).get_outstanding(tenant.id, period="2024-02")
        balance = DuesAggregator(db_session).calculate_outstanding_balance(tenant.id)

        assert dues.total_outstanding == Decimal("80.00")
        assert balance == Decimal("180.00")

    def test_no_dues(self, db_session, tenant, tenancy):
        dues = DuesAggregator(db_session).get_outstanding(tenant.id, period="2024-03")

        assert dues.rent_charges == []
        assert dues.bills == []
        assert dues.total_outstanding == Decimal("0.00")
        assert dues.utility_share == Decimal("0.00")
        assert dues.room_utility_total is None

    def test_unknown_tenant(self, db_session):
        with pytest.raises(NotFoundError, match="Tenant 999 not found"):
            DuesAggregator(db_session).get_outstanding(999)

    def test_malformed_period(self, db_session, tenant):
        with pytest.raises(ValidationError):
            DuesAggregator(db_session).get_outstanding(tenant.id, period="2024/03")


class TestUtilityShare:
    """Room utility charges split across current roommates."""

    def test_share_follows_roommate_count(self, db_session, seed, room, tenant, tenancy):
        bob = seed.tenant("bob@example.com", "Bob")
        seed.tenancy(room, bob)
        seed.utility(room, "2024-03", "60.00")
        aggregator = DuesAggregator(db_session)

        dues = aggregator.get_outstanding(tenant.id, period="2024-03")

        assert dues.utility_share == Decimal("30.00")
        assert dues.room_utility_total == Decimal("60.00")
        assert dues.roommates_count == 2

        carol = seed.tenant("carol@example.com", "Carol")
        seed.tenancy(room, carol)

        dues = aggregator.get_outstanding(tenant.id, period="2024-03")

        assert dues.utility_share == Decimal("20.00")
        assert dues.roommates_count == 3

    def test_shares_sum_to_room_total(self, db_session, seed, room, tenancy):
        for name in ("bob", "carol"):
            seed.tenancy(room, seed.tenant(f"{name}@example.com"))
        seed.utility(room, "2024-03", "100.00")

        shares = DuesAggregator(db_session).room_utility_shares(room.id, "2024-03")

        assert len(shares) == 3
        assert sorted(shares.values(), reverse=True) == [
            Decimal("33.34"),
            Decimal("33.33"),
            Decimal("33.33"),
        ]
        assert sum(shares.values()) == Decimal("100.00")

    def test_override_replaces_prorated_share(self, db_session, seed, room, tenant, tenancy):
        seed.tenancy(room, seed.tenant("bob@example.com"))
        seed.utility(room, "2024-03", "60.00")
        tenancy.utility_charge_override = Decimal("45.00")
        db_session.commit()

        aggregator = DuesAggregator(db_session)
        dues = aggregator.get_outstanding(tenant.id, period="2024-03")
        share = aggregator.utility_share(tenancy, "2024-03")

        assert dues.utility_share == Decimal("45.00")
        assert dues.room_utility_total == Decimal("60.00")
        assert share.overridden is True

    def test_utility_share_not_in_total(self, db_session, seed, room, tenant, tenancy):
        seed.utility(room, "2024-03", "60.00")
        seed.rent(tenancy, "2024-03", "100.00", date(2024, 3, 5))

        dues = DuesAggregator(db_session).get_outstanding(tenant.id, period="2024-03")

        assert dues.utility_share == Decimal("60.00")
        assert dues.total_outstanding == Decimal("100.00")

    def test_no_charge_for_period(self, db_session, room, tenancy):
        assert DuesAggregator(db_session).room_utility_shares(room.id, "2024-03") == {}
