"""
Unit tests for the audit service.
"""

from models import AuditLog, Room
from services.audit_service import AuditAction, AuditService


class TestAuditServiceLog:
    """Test appending audit entries."""

    def test_log_is_part_of_callers_transaction(self, db_session):
        AuditService.log(
            db_session,
            AuditAction.CREATE,
            resource="clinic",
            resource_id="c1",
            user_id="u1",
            description="Clínica cadastrada",
            new_values={"trade_name": "Saude Integral"},
        )
        db_session.rollback()

        assert db_session.query(AuditLog).count() == 0

    def test_log_persists_on_commit(self, db_session):
        AuditService.log(
            db_session,
            AuditAction.UPDATE,
            resource="clinic",
            resource_id="c1",
            user_id="u1",
            description="Clínica atualizada",
            old_values={"trade_name": "Antiga"},
            new_values={"trade_name": "Nova"},
        )
        db_session.commit()

        entry = db_session.query(AuditLog).one()
        assert entry.action == "UPDATE"
        assert entry.old_values == {"trade_name": "Antiga"}
        assert entry.new_values == {"trade_name": "Nova"}
        assert entry.created_at is not None

    def test_find_by_resource_newest_first(self, db_session):
        for action in (AuditAction.CREATE, AuditAction.UPDATE, AuditAction.DELETE):
            AuditService.log(db_session, action, "room", "r1", None, action.value)
        AuditService.log(db_session, AuditAction.CREATE, "room", "r2", None, "other")
        db_session.commit()

        trail = AuditService.find_by_resource(db_session, "room", "r1")

        assert [e.action for e in trail] == ["DELETE", "UPDATE", "CREATE"]


class TestAuditSnapshot:
    """Test snapshot of ORM rows."""

    def test_snapshot_has_columns_only(self, db_session):
        room = Room(clinic_id="c1", name="Consultório 1", equipment=["Maca"], active=True)
        db_session.add(room)
        db_session.flush()

        snapshot = AuditService.snapshot(room)

        assert snapshot["name"] == "Consultório 1"
        assert snapshot["equipment"] == ["Maca"]
        assert "clinic" not in snapshot
        # Timestamps are rendered as ISO strings
        assert isinstance(snapshot["created_at"], str)
