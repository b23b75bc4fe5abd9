"""Payment ORM model for money received from tenants."""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, ForeignKey, Index, Numeric, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_billing.models import Base, BaseModel


class PaymentMethod(str, Enum):
    """How the money was received."""

    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"
    OTHER = "other"


class PaymentType(str, Enum):
    """Whether the tenant settled everything for the period or only part of it."""

    FULL = "full"
    PARTIAL = "partial"


class Payment(Base, BaseModel):
    """Model representing a payment received from a tenant.

    A payment may be split across several dues via PaymentAllocation rows. Any
    amount not allocated stays on the payment as unapplied money.
    """

    __tablename__ = "payments"

    tenant_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        comment="Tenant who made the payment",
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    method: Mapped[PaymentMethod] = mapped_column(SQLEnum(PaymentMethod), nullable=False)
    payment_type: Mapped[PaymentType] = mapped_column(
        SQLEnum(PaymentType),
        nullable=False,
        default=PaymentType.PARTIAL,
    )
    payment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    period_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    period_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    tenant: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="payments",
        foreign_keys=[tenant_id],
    )
    allocations: Mapped[list["PaymentAllocation"]] = relationship(  # noqa: F821
        "PaymentAllocation",
        back_populates="payment",
        cascade="all, delete-orphan",
    )

    __table_args__ = (Index("idx_payment_tenant_date", "tenant_id", "payment_date"),)

    @property
    def allocated_amount(self) -> Decimal:
        return sum((a.amount for a in self.allocations), Decimal("0.00"))

    @property
    def unapplied_amount(self) -> Decimal:
        return self.amount - self.allocated_amount

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id}, tenant_id={self.tenant_id}, amount={self.amount}, "
            f"method={self.method}, payment_date={self.payment_date})>"
        )


__all__ = ["Payment", "PaymentMethod", "PaymentType"]
