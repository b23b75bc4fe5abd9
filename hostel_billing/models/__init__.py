"""SQLAlchemy base model with common fields and model exports."""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

# Base class for all models
Base = declarative_base()


class BaseModel:
    """Base model with common timestamp fields."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


# Import models to register them with Base (after Base is defined)
# This must be after Base declaration to avoid circular imports
from hostel_billing.models.audit_log import AuditLog  # noqa: E402
from hostel_billing.models.bill import Bill, BillType  # noqa: E402
from hostel_billing.models.hostel import Hostel, Room  # noqa: E402
from hostel_billing.models.payment import Payment, PaymentMethod, PaymentType  # noqa: E402
from hostel_billing.models.payment_allocation import DueType, PaymentAllocation  # noqa: E402
from hostel_billing.models.rent_charge import DueStatus, RentCharge  # noqa: E402
from hostel_billing.models.shared_utility_charge import SharedUtilityCharge  # noqa: E402
from hostel_billing.models.tenancy import Tenancy  # noqa: E402
from hostel_billing.models.user import User, UserRole  # noqa: E402

__all__ = [
    "Base",
    "BaseModel",
    "AuditLog",
    "Bill",
    "BillType",
    "DueStatus",
    "DueType",
    "Hostel",
    "Payment",
    "PaymentAllocation",
    "PaymentMethod",
    "PaymentType",
    "RentCharge",
    "Room",
    "SharedUtilityCharge",
    "Tenancy",
    "User",
    "UserRole",
]
