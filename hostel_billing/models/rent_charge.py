"""RentCharge ORM model: one period's rent obligation for a tenancy."""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_billing.models import Base, BaseModel


class DueStatus(str, Enum):
    """Settlement status shared by rent charges and bills."""

    DUE = "due"
    PARTIAL = "partial"
    PAID = "paid"


OPEN_STATUSES = (DueStatus.DUE, DueStatus.PARTIAL)


class RentCharge(Base, BaseModel):
    """Rent owed by a tenancy for one YYYY-MM period.

    amount_paid is materialized from the live sum of PaymentAllocation rows that
    reference this charge; status is derived from (amount, amount_paid).
    """

    __tablename__ = "rent_charges"

    tenancy_id: Mapped[int] = mapped_column(
        ForeignKey("tenancies.id"),
        nullable=False,
        index=True,
    )
    period: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        comment="Billing period in YYYY-MM format",
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    status: Mapped[DueStatus] = mapped_column(
        SQLEnum(DueStatus),
        nullable=False,
        default=DueStatus.DUE,
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    late_fee: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        default=Decimal("0.00"),
        comment="Flat late fee, recorded manually and never computed",
    )

    tenancy: Mapped["Tenancy"] = relationship(  # noqa: F821
        "Tenancy",
        back_populates="rent_charges",
    )

    __table_args__ = (
        UniqueConstraint("tenancy_id", "period", name="uq_rent_charge_tenancy_period"),
        Index("idx_rent_charge_status", "status"),
    )

    @property
    def outstanding(self) -> Decimal:
        return self.amount - self.amount_paid

    def __repr__(self) -> str:
        return (
            f"<RentCharge(id={self.id}, tenancy_id={self.tenancy_id}, period={self.period}, "
            f"amount={self.amount}, amount_paid={self.amount_paid}, status={self.status})>"
        )


__all__ = ["RentCharge", "DueStatus", "OPEN_STATUSES"]
