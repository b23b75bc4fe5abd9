"""Audit service for logging changes to financial records.

Audit writes are best-effort: they run after the primary transaction has
committed, and a failure here is logged locally and never propagated.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, NamedTuple

from sqlalchemy.orm import Session

from hostel_billing.models.audit_log import AuditLog
from hostel_billing.services.actor import Actor

logger = logging.getLogger(__name__)


class AuditEntry(NamedTuple):
    """One pending audit record, collected while a transaction is in flight."""

    entity_type: str
    entity_id: int
    action: str
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None


def snapshot(**fields: Any) -> dict[str, Any]:
    """Build a JSON-safe dict from model field values."""
    return {name: _json_value(value) for name, value in fields.items()}


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_json_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _json_value(v) for k, v in value.items()}
    return value


class AuditService:
    """Service for audit log operations."""

    @staticmethod
    def log_action(
        db: Session,
        actor: Actor,
        entity_type: str,
        entity_id: int,
        action: str,
        before: dict | None = None,
        after: dict | None = None,
    ) -> AuditLog:
        """Create audit log entry (not committed).

        Args:
            db: Database session
            actor: Resolved actor who performed the action
            entity_type: Type of entity ("Payment", "RentCharge", ...)
            entity_id: Primary key of the entity
            action: "create", "update" or "delete"
            before: JSON snapshot of the fields before the change
            after: JSON snapshot of the fields after the change

        Returns:
            Created AuditLog object
        """
        audit = AuditLog(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=actor.user_id,
            actor_role=actor.role,
            before_state=before,
            after_state=after,
        )
        db.add(audit)
        return audit


def record_audit(db: Session, actor: Actor, entries: list[AuditEntry]) -> bool:
    """Persist audit entries in their own commit, swallowing any failure.

    Returns:
        True if the entries were written, False if writing failed
    """
    if not entries:
        return True
    try:
        for entry in entries:
            AuditService.log_action(
                db,
                actor,
                entry.entity_type,
                entry.entity_id,
                entry.action,
                entry.before,
                entry.after,
            )
        db.commit()
        return True
    except Exception:
        db.rollback()
        logger.exception(
            "Failed to write %d audit entries (first: %s %s %s)",
            len(entries),
            entries[0].entity_type,
            entries[0].entity_id,
            entries[0].action,
        )
        return False


__all__ = ["AuditEntry", "AuditService", "record_audit", "snapshot"]
