"""PaymentAllocation ORM model linking a payment to the due it settles."""

from decimal import Decimal
from enum import Enum

from sqlalchemy import ForeignKey, Index, Integer, Numeric
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_billing.models import Base, BaseModel


class DueType(str, Enum):
    """Kind of due an allocation points at."""

    RENT = "rent"
    BILL = "bill"


class PaymentAllocation(Base, BaseModel):
    """Portion of a payment applied to one rent charge or bill.

    due_id references rent_charges.id or bills.id depending on due_type.
    """

    __tablename__ = "payment_allocations"

    payment_id: Mapped[int] = mapped_column(
        ForeignKey("payments.id"),
        nullable=False,
        index=True,
    )
    due_type: Mapped[DueType] = mapped_column(SQLEnum(DueType), nullable=False)
    due_id: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Amount of the payment applied to the due",
    )

    payment: Mapped["Payment"] = relationship(  # noqa: F821
        "Payment",
        back_populates="allocations",
    )

    __table_args__ = (Index("idx_allocation_due", "due_type", "due_id"),)

    def __repr__(self) -> str:
        return (
            f"<PaymentAllocation(id={self.id}, payment_id={self.payment_id}, "
            f"due_type={self.due_type}, due_id={self.due_id}, amount={self.amount})>"
        )


__all__ = ["PaymentAllocation", "DueType"]
