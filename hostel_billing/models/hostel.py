"""Hostel and Room ORM models."""

from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_billing.models import Base, BaseModel


class Hostel(Base, BaseModel):
    """A hostel building containing rooms."""

    __tablename__ = "hostels"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    rooms: Mapped[list["Room"]] = relationship(
        "Room",
        back_populates="hostel",
    )

    def __repr__(self) -> str:
        return f"<Hostel(id={self.id}, name={self.name})>"


class Room(Base, BaseModel):
    """A room that one or more tenants share."""

    __tablename__ = "rooms"

    hostel_id: Mapped[int] = mapped_column(
        ForeignKey("hostels.id"),
        nullable=False,
        index=True,
    )
    room_number: Mapped[str] = mapped_column(String(50), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    rent_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Total monthly rent for the room",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    hostel: Mapped["Hostel"] = relationship("Hostel", back_populates="rooms")
    tenancies: Mapped[list["Tenancy"]] = relationship(  # noqa: F821
        "Tenancy",
        back_populates="room",
    )

    __table_args__ = (UniqueConstraint("hostel_id", "room_number", name="uq_room_hostel_number"),)

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, hostel_id={self.hostel_id}, room_number={self.room_number})>"


__all__ = ["Hostel", "Room"]
