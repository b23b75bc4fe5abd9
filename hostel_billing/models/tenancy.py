"""Tenancy ORM model: the assignment of one tenant to one room."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Index, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_billing.models import Base, BaseModel


class Tenancy(Base, BaseModel):
    """Central reference point for a tenant's dues.

    A tenant has at most one active tenancy. Tenancies are ended (is_active=False,
    end_date set) rather than deleted once financial records point at them.
    """

    __tablename__ = "tenancies"

    room_id: Mapped[int] = mapped_column(
        ForeignKey("rooms.id"),
        nullable=False,
        index=True,
    )
    tenant_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    monthly_share: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        comment="Tenant's share of the monthly room rent",
    )
    previous_balance: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
        comment="Cumulative unpaid rent carried forward by period rollover",
    )
    utility_charge_override: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        comment="Admin-set utility amount for the current period, replaces the prorated share",
    )

    # Relationships
    room: Mapped["Room"] = relationship("Room", back_populates="tenancies")  # noqa: F821
    tenant: Mapped["User"] = relationship("User", back_populates="tenancies")  # noqa: F821
    rent_charges: Mapped[list["RentCharge"]] = relationship(  # noqa: F821
        "RentCharge",
        back_populates="tenancy",
    )
    bills: Mapped[list["Bill"]] = relationship(  # noqa: F821
        "Bill",
        back_populates="tenancy",
    )

    __table_args__ = (
        Index("idx_tenancy_room_active", "room_id", "is_active"),
        Index("idx_tenancy_tenant_active", "tenant_id", "is_active"),
    )

    def __repr__(self) -> str:
        return (
            f"<Tenancy(id={self.id}, room_id={self.room_id}, tenant_id={self.tenant_id}, "
            f"is_active={self.is_active}, previous_balance={self.previous_balance})>"
        )


__all__ = ["Tenancy"]
