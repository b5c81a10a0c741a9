"""
Integration tests for clinic room management.
"""

import pytest
from fastapi import HTTPException

from models import AppointmentStatus, Room
from services.audit_service import AuditService
from shared_types.clinic import RoomCreateRequest, RoomUpdateRequest

from conftest import OTHER_VALID_CNPJ, create_appointment, create_clinic, create_doctor, create_patient

MISSING_ID = "00000000-0000-4000-8000-000000000000"


@pytest.fixture
def clinic(db_session, clinic_service):
    return create_clinic(clinic_service, db_session)


class TestAddRoom:
    """Test room creation."""

    def test_add_room(self, db_session, clinic_service, clinic, recorded_events):
        room = clinic_service.add_room(
            db_session, clinic.id,
            RoomCreateRequest(name="Consultório 1", code="C1", floor="2º andar", equipment=["Maca", "ECG"]),
            "u1",
        )

        assert room.clinic_id == clinic.id
        assert room.active is True
        assert room.equipment == ["Maca", "ECG"]
        assert recorded_events.names[-1] == "clinic.room_added"
        assert AuditService.find_by_resource(db_session, "room", room.id)[0].description == "Sala Consultório 1 criada"

    def test_duplicate_name_in_same_clinic_conflicts(self, db_session, clinic_service, clinic):
        clinic_service.add_room(db_session, clinic.id, RoomCreateRequest(name="Consultório 1"), "u1")

        with pytest.raises(HTTPException) as exc_info:
            clinic_service.add_room(db_session, clinic.id, RoomCreateRequest(name="Consultório 1"), "u1")

        assert exc_info.value.status_code == 409
        assert exc_info.value.detail == "Registro duplicado"
        assert db_session.query(Room).count() == 1

    def test_same_name_in_other_clinic_allowed(self, db_session, clinic_service, clinic):
        other = create_clinic(clinic_service, db_session, cnpj=OTHER_VALID_CNPJ)

        clinic_service.add_room(db_session, clinic.id, RoomCreateRequest(name="Consultório 1"), "u1")
        clinic_service.add_room(db_session, other.id, RoomCreateRequest(name="Consultório 1"), "u1")

        assert db_session.query(Room).count() == 2

    def test_missing_clinic(self, db_session, clinic_service):
        with pytest.raises(HTTPException) as exc_info:
            clinic_service.add_room(db_session, MISSING_ID, RoomCreateRequest(name="Consultório 1"), "u1")
        assert exc_info.value.status_code == 404

    def test_add_invalidates_cached_detail(self, db_session, clinic_service, clinic):
        assert clinic_service.find_by_id(db_session, clinic.id).rooms == []

        clinic_service.add_room(db_session, clinic.id, RoomCreateRequest(name="Consultório 1"), "u1")

        assert [r.name for r in clinic_service.find_by_id(db_session, clinic.id).rooms] == ["Consultório 1"]


class TestGetRooms:
    """Test room listing."""

    def test_sorted_by_name_with_active_filter(self, db_session, clinic_service, clinic):
        for name, active in (("Sala B", True), ("Sala A", True), ("Depósito", False)):
            clinic_service.add_room(db_session, clinic.id, RoomCreateRequest(name=name, active=active), "u1")

        all_rooms = clinic_service.get_rooms(db_session, clinic.id)
        active_rooms = clinic_service.get_rooms(db_session, clinic.id, active=True)
        inactive_rooms = clinic_service.get_rooms(db_session, clinic.id, active=False)

        assert [r.name for r in all_rooms] == ["Depósito", "Sala A", "Sala B"]
        assert [r.name for r in active_rooms] == ["Sala A", "Sala B"]
        assert [r.name for r in inactive_rooms] == ["Depósito"]


class TestUpdateRoom:
    """Test partial room updates."""

    def test_partial_update(self, db_session, clinic_service, clinic, recorded_events):
        room = clinic_service.add_room(
            db_session, clinic.id, RoomCreateRequest(name="Consultório 1", code="C1"), "u1"
        )

        updated = clinic_service.update_room(
            db_session, clinic.id, room.id, RoomUpdateRequest(floor="Térreo"), "u1"
        )

        assert updated.floor == "Térreo"
        assert updated.code == "C1"
        assert updated.name == "Consultório 1"
        assert recorded_events.names[-1] == "clinic.room_updated"

    def test_rename_onto_existing_name_conflicts(self, db_session, clinic_service, clinic):
        clinic_service.add_room(db_session, clinic.id, RoomCreateRequest(name="Consultório 1"), "u1")
        room = clinic_service.add_room(db_session, clinic.id, RoomCreateRequest(name="Consultório 2"), "u1")

        with pytest.raises(HTTPException) as exc_info:
            clinic_service.update_room(
                db_session, clinic.id, room.id, RoomUpdateRequest(name="Consultório 1"), "u1"
            )

        assert exc_info.value.status_code == 409
        assert db_session.query(Room).filter(Room.id == room.id).one().name == "Consultório 2"

    def test_room_of_other_clinic_not_found(self, db_session, clinic_service, clinic):
        other = create_clinic(clinic_service, db_session, cnpj=OTHER_VALID_CNPJ)
        room = clinic_service.add_room(db_session, other.id, RoomCreateRequest(name="Consultório 1"), "u1")

        with pytest.raises(HTTPException) as exc_info:
            clinic_service.update_room(db_session, clinic.id, room.id, RoomUpdateRequest(code="X"), "u1")

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "Sala não encontrada"


class TestDeleteRoom:
    """Test room deactivation."""

    def test_deactivates_instead_of_deleting(self, db_session, clinic_service, clinic, recorded_events):
        room = clinic_service.add_room(db_session, clinic.id, RoomCreateRequest(name="Consultório 1"), "u1")

        clinic_service.delete_room(db_session, clinic.id, room.id, "u1")

        row = db_session.query(Room).filter(Room.id == room.id).one()
        assert row.active is False
        assert recorded_events.names[-1] == "clinic.room_deactivated"

    def test_blocked_by_future_appointment_in_room(self, db_session, clinic_service, clinic):
        room = clinic_service.add_room(db_session, clinic.id, RoomCreateRequest(name="Consultório 1"), "u1")
        doctor = create_doctor(db_session)
        patient = create_patient(db_session)
        create_appointment(db_session, clinic.id, doctor.id, patient.id, room_id=room.id)

        with pytest.raises(HTTPException) as exc_info:
            clinic_service.delete_room(db_session, clinic.id, room.id, "u1")

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Não é possível remover a sala. Existem 1 consultas agendadas."
        assert db_session.query(Room).filter(Room.id == room.id).one().active is True

    def test_past_appointment_does_not_block(self, db_session, clinic_service, clinic):
        room = clinic_service.add_room(db_session, clinic.id, RoomCreateRequest(name="Consultório 1"), "u1")
        doctor = create_doctor(db_session)
        patient = create_patient(db_session)
        create_appointment(db_session, clinic.id, doctor.id, patient.id, room_id=room.id,
                           status=AppointmentStatus.COMPLETED, days_from_now=-1)

        clinic_service.delete_room(db_session, clinic.id, room.id, "u1")

        assert db_session.query(Room).filter(Room.id == room.id).one().active is False
