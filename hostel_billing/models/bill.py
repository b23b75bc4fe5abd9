"""Bill ORM model for itemized charges against a tenancy."""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, ForeignKey, Index, Numeric, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_billing.models import Base, BaseModel
from hostel_billing.models.rent_charge import DueStatus


class BillType(str, Enum):
    """Categories of miscellaneous bills."""

    ELECTRICITY = "electricity"
    WATER = "water"
    MAINTENANCE = "maintenance"
    OTHER = "other"


class Bill(Base, BaseModel):
    """Miscellaneous charge (electricity, water, maintenance...) owed by a tenancy."""

    __tablename__ = "bills"

    tenancy_id: Mapped[int] = mapped_column(
        ForeignKey("tenancies.id"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    bill_type: Mapped[BillType] = mapped_column(
        SQLEnum(BillType),
        nullable=False,
        comment="Bill category",
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

    tenancy: Mapped["Tenancy"] = relationship(  # noqa: F821
        "Tenancy",
        back_populates="bills",
    )

    __table_args__ = (Index("idx_bill_tenancy_status", "tenancy_id", "status"),)

    @property
    def outstanding(self) -> Decimal:
        return self.amount - self.amount_paid

    def __repr__(self) -> str:
        return (
            f"<Bill(id={self.id}, tenancy_id={self.tenancy_id}, bill_type={self.bill_type}, "
            f"amount={self.amount}, amount_paid={self.amount_paid}, status={self.status})>"
        )


__all__ = ["Bill", "BillType"]
