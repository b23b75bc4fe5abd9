"""Audit log model for tracking changes to financial records."""

from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from hostel_billing.models import Base, BaseModel


class AuditLog(Base, BaseModel):
    """Audit log entry for tracking changes to key entities.

    Records who (actor_id, actor_role) did what (action) to which entity
    (entity_type, entity_id), with before/after snapshots of the changed fields.
    """

    __tablename__ = "audit_logs"

    entity_type: Mapped[str] = mapped_column(String(50), index=True)
    """Entity type being audited: "Payment", "RentCharge", "Tenancy", etc."""

    entity_id: Mapped[int] = mapped_column(index=True)
    """Primary key of the entity being audited."""

    action: Mapped[str] = mapped_column(String(20))
    """Action performed: "create", "update" or "delete"."""

    actor_id: Mapped[int | None] = mapped_column(nullable=True)
    """User who performed the action. None for the system actor."""

    actor_role: Mapped[str] = mapped_column(String(20))
    """Role of the actor: "admin", "tenant" or "system"."""

    before_state: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    after_state: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, entity_type={self.entity_type}, entity_id={self.entity_id}, "
            f"action={self.action}, actor_id={self.actor_id}, created_at={self.created_at})>"
        )


__all__ = ["AuditLog"]
