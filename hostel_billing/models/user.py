"""User ORM model for administrators and tenants."""

from enum import Enum

from sqlalchemy import Boolean, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_billing.models import Base, BaseModel


class UserRole(str, Enum):
    """Role a user holds in the hostel."""

    ADMIN = "admin"
    TENANT = "tenant"


class User(Base, BaseModel):
    """Person known to the system, either an administrator or a tenant.

    Deactivating a tenant ends their tenancy; the row itself is never removed
    while payments or tenancies reference it.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Login email",
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole),
        nullable=False,
        default=UserRole.TENANT,
        comment="admin or tenant",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    tenancies: Mapped[list["Tenancy"]] = relationship(  # noqa: F821
        "Tenancy",
        back_populates="tenant",
    )
    payments: Mapped[list["Payment"]] = relationship(  # noqa: F821
        "Payment",
        back_populates="tenant",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role}, is_active={self.is_active})>"


__all__ = ["User", "UserRole"]
