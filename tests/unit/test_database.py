"""
Unit tests for session helpers and timestamp listeners in core.database.

Uses the module-level engine, which conftest points at in-memory SQLite.
"""

import pytest
from fastapi import HTTPException

from core.database import create_tables, drop_tables, get_db, get_db_context
from models import User


@pytest.fixture
def module_tables():
    create_tables()
    yield
    drop_tables()


class TestSessionHelpers:
    """Test get_db and get_db_context."""

    def test_context_commits_on_success(self, module_tables):
        with get_db_context() as db:
            db.add(User(email="ctx@healthflow.test", full_name="Ctx User", role="ADMIN"))

        with get_db_context() as db:
            assert db.query(User).filter(User.email == "ctx@healthflow.test").count() == 1

    def test_context_rolls_back_on_error(self, module_tables):
        with pytest.raises(HTTPException):
            with get_db_context() as db:
                db.add(User(email="rollback@healthflow.test", full_name="Nope", role="ADMIN"))
                db.flush()
                raise HTTPException(status_code=400, detail="fail")

        with get_db_context() as db:
            assert db.query(User).count() == 0

    def test_get_db_yields_and_closes(self, module_tables):
        generator = get_db()
        db = next(generator)
        assert db.query(User).count() == 0

        with pytest.raises(StopIteration):
            next(generator)


class TestTimestampListeners:
    """Test created_at/updated_at stamping."""

    def test_insert_and_update_stamp_brazil_time(self, module_tables):
        with get_db_context() as db:
            user = User(email="stamp@healthflow.test", full_name="Stamp", role="ADMIN")
            db.add(user)
            db.flush()
            assert user.created_at is not None
            assert user.created_at.utcoffset().total_seconds() == -3 * 3600
            first_updated = user.updated_at

            user.full_name = "Stamp Renamed"
            db.flush()
            assert user.updated_at >= first_updated
