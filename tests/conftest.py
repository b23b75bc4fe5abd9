"""Pytest configuration: in-memory SQLite database and seeded hostel data."""

import os

# Set test database URL BEFORE any imports from hostel_billing
# so the module-level engine never touches a file database
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from hostel_billing.models import (  # noqa: E402
    Base,
    Bill,
    BillType,
    DueStatus,
    Hostel,
    RentCharge,
    Room,
    SharedUtilityCharge,
    Tenancy,
    User,
    UserRole,
)
from hostel_billing.services.db import UnitOfWork  # noqa: E402


class Seed:
    """Creates committed test rows.

    Every helper commits: the unit of work under test shares the SQLite
    connection and would otherwise roll back uncommitted seed rows.
    """

    def __init__(self, db_session):
        self.db = db_session

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        return obj

    def room(self, hostel, number, capacity=3, rent="300.00"):
        return self._save(
            Room(hostel_id=hostel.id, room_number=number, capacity=capacity, rent_amount=Decimal(rent))
        )

    def tenant(self, email, first_name="Test", last_name="Tenant"):
        return self._save(
            User(email=email, first_name=first_name, last_name=last_name, role=UserRole.TENANT)
        )

    def tenancy(self, room, tenant, monthly_share="100.00", start=date(2024, 1, 1)):
        return self._save(
            Tenancy(
                room_id=room.id,
                tenant_id=tenant.id,
                start_date=start,
                is_active=True,
                monthly_share=Decimal(monthly_share) if monthly_share is not None else None,
                previous_balance=Decimal("0.00"),
            )
        )

    def rent(self, tenancy, period, amount, due_date, amount_paid="0.00", status=DueStatus.DUE):
        return self._save(
            RentCharge(
                tenancy_id=tenancy.id,
                period=period,
                amount=Decimal(amount),
                amount_paid=Decimal(amount_paid),
                status=status,
                due_date=due_date,
            )
        )

    def bill(self, tenancy, amount, due_date, title="Water", bill_type=BillType.WATER):
        return self._save(
            Bill(
                tenancy_id=tenancy.id,
                title=title,
                bill_type=bill_type,
                amount=Decimal(amount),
                amount_paid=Decimal("0.00"),
                status=DueStatus.DUE,
                due_date=due_date,
            )
        )

    def utility(self, room, period, amount):
        return self._save(SharedUtilityCharge(room_id=room.id, period=period, amount=Decimal(amount)))


@pytest.fixture
def engine():
    """Fresh in-memory database shared by every session in the test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Session used to seed data and inspect results."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def uow(session_factory):
    """Active unit of work for the service under test."""
    with UnitOfWork(session_factory) as unit:
        yield unit


@pytest.fixture
def seed(db_session):
    return Seed(db_session)


@pytest.fixture
def hostel(seed):
    return seed._save(Hostel(name="Sunrise Hostel", address="1 Main Street"))


@pytest.fixture
def room(seed, hostel):
    return seed.room(hostel, "101")


@pytest.fixture
def tenant(seed):
    return seed.tenant("alice@example.com", "Alice", "Smith")


@pytest.fixture
def tenancy(seed, room, tenant):
    return seed.tenancy(room, tenant)
