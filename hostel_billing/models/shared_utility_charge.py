"""Room-level utility charge divided among active roommates at read time."""

from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_billing.models import Base, BaseModel


class SharedUtilityCharge(Base, BaseModel):
    """Total utility (electricity) charge for a room and period.

    No per-tenant snapshot is stored: each tenant's share is computed from the
    number of active tenancies in the room whenever dues are read.
    """

    __tablename__ = "shared_utility_charges"

    room_id: Mapped[int] = mapped_column(
        ForeignKey("rooms.id"),
        nullable=False,
        index=True,
    )
    period: Mapped[str] = mapped_column(String(7), nullable=False, comment="YYYY-MM")
    amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Total charge for the whole room",
    )

    room: Mapped["Room"] = relationship("Room")  # noqa: F821

    __table_args__ = (
        UniqueConstraint("room_id", "period", name="uq_shared_utility_room_period"),
    )

    def __repr__(self) -> str:
        return (
            f"<SharedUtilityCharge(id={self.id}, room_id={self.room_id}, "
            f"period={self.period}, amount={self.amount})>"
        )


__all__ = ["SharedUtilityCharge"]
