"""Unit tests for the audit logger collaborator."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from hostel_billing.models import AuditLog, DueStatus
from hostel_billing.services.actor import SYSTEM, AuthenticatedUser
from hostel_billing.services.audit_service import AuditEntry, AuditService, record_audit, snapshot


class TestSnapshot:
    """JSON-safe snapshots of model fields."""

    def test_converts_decimal_enum_and_date(self):
        state = snapshot(amount=Decimal("12.50"), status=DueStatus.PARTIAL, due_date=date(2024, 1, 5))

        assert state == {"amount": "12.50", "status": "partial", "due_date": "2024-01-05"}

    def test_nested_values(self):
        state = snapshot(allocations=[{"amount": Decimal("1.00")}], note=None)

        assert state == {"allocations": [{"amount": "1.00"}], "note": None}


class TestAuditService:
    """Audit row construction."""

    def test_log_action_for_authenticated_user(self):
        db = MagicMock()
        actor = AuthenticatedUser(user_id=9, role="admin")

        audit = AuditService.log_action(db, actor, "Payment", 3, "create", None, {"amount": "10.00"})

        assert isinstance(audit, AuditLog)
        assert audit.actor_id == 9
        assert audit.actor_role == "admin"
        assert audit.after_state == {"amount": "10.00"}
        db.add.assert_called_once_with(audit)

    def test_log_action_for_system_actor(self):
        audit = AuditService.log_action(MagicMock(), SYSTEM, "RentCharge", 1, "create")

        assert audit.actor_id is None
        assert audit.actor_role == "system"


class TestRecordAudit:
    """Best-effort persistence."""

    def test_commits_entries(self):
        db = MagicMock()

        ok = record_audit(db, SYSTEM, [AuditEntry("Payment", 1, "create"), AuditEntry("Bill", 2, "update")])

        assert ok is True
        assert db.add.call_count == 2
        db.commit.assert_called_once()

    def test_failure_is_swallowed_and_logged(self, caplog):
        db = MagicMock()
        db.commit.side_effect = OperationalError("INSERT", {}, Exception("disk full"))

        ok = record_audit(db, SYSTEM, [AuditEntry("Payment", 1, "create")])

        assert ok is False
        db.rollback.assert_called_once()
        assert "Failed to write 1 audit entries" in caplog.text

    def test_no_entries_is_noop(self):
        db = MagicMock()

        assert record_audit(db, SYSTEM, []) is True
        db.commit.assert_not_called()
