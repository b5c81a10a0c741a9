"""
Unit tests for query helper utilities.
"""

from sqlalchemy.dialects import postgresql

from models import ClinicDoctor
from utils.query_helpers import dialect_name, json_array_contains


class TestJsonArrayContains:
    """Test JSON array containment filters."""

    def test_postgresql_uses_jsonb_containment(self):
        clause = json_array_contains(ClinicDoctor.specialties_at_clinic, "Pediatria", "postgresql")
        compiled = str(clause.compile(dialect=postgresql.dialect()))
        assert "@>" in compiled

    def test_sqlite_matches_element(self, db_session):
        db_session.add_all([
            ClinicDoctor(clinic_id="c1", doctor_id="d1", specialties_at_clinic=["Cardiologia", "Pediatria"]),
            ClinicDoctor(clinic_id="c1", doctor_id="d2", specialties_at_clinic=["Dermatologia"]),
            ClinicDoctor(clinic_id="c1", doctor_id="d3", specialties_at_clinic=["Pediatria Neonatal"]),
        ])
        db_session.commit()

        rows = db_session.query(ClinicDoctor).filter(
            json_array_contains(ClinicDoctor.specialties_at_clinic, "Pediatria", dialect_name(db_session))
        ).all()

        assert [r.doctor_id for r in rows] == ["d1"]

    def test_dialect_name(self, db_session):
        assert dialect_name(db_session) == "sqlite"
