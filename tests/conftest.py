"""
Test configuration and shared fixtures for the HealthFlow clinic test suite.

Uses an in-memory SQLite database per test: every test starts from a fresh
schema created from the model metadata.
"""

import os

# Must be set before core.database creates its engine
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from datetime import timedelta
from typing import Generator, List, Optional

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import Base, get_db
# Import all models to ensure they're registered with SQLAlchemy before any relationships are resolved
from models import (
    Appointment,
    AppointmentStatus,
    Clinic,
    ClinicEmployee,
    Doctor,
    Patient,
    User,
)
from api.clinics.dependencies import get_clinic_service
from auth.dependencies import UserContext, get_current_user
from auth.roles import UserRole
from services.cache_service import CacheService, InMemoryCacheBackend
from services.clinic_service import ClinicService
from services.event_service import DomainEvent, EventBus
from shared_types.clinic import ClinicCreateRequest
from utils.datetime_utils import brazil_now


VALID_CNPJ = "11.222.333/0001-81"
VALID_CNPJ_DIGITS = "11222333000181"
OTHER_VALID_CNPJ = "11.444.777/0001-61"


@pytest.fixture(scope="function")
def db_engine():
    """
    Create an in-memory database engine for one test.

    StaticPool keeps a single connection so the schema survives across
    sessions and the threads TestClient runs endpoints in.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session bound to the test engine."""
    TestingSession = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)
    session = TestingSession()

    yield session

    session.close()


@pytest.fixture
def cache_service() -> CacheService:
    return CacheService(InMemoryCacheBackend())


class EventRecorder:
    """Collects every event emitted on a bus."""

    def __init__(self) -> None:
        self.events: List[DomainEvent] = []

    def __call__(self, event: DomainEvent) -> None:
        self.events.append(event)

    @property
    def names(self) -> List[str]:
        return [e.name for e in self.events]


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorded_events(event_bus) -> EventRecorder:
    recorder = EventRecorder()
    for name in (
        "clinic.created",
        "clinic.updated",
        "clinic.deleted",
        "clinic.doctor_added",
        "clinic.doctor_removed",
        "clinic.patient_added",
        "clinic.room_added",
        "clinic.room_updated",
        "clinic.room_deactivated",
    ):
        event_bus.subscribe(name, recorder)
    return recorder


@pytest.fixture
def clinic_service(cache_service, event_bus) -> ClinicService:
    return ClinicService(cache=cache_service, events=event_bus)


class Actor:
    """Mutable acting user for API tests; change ``role`` to switch identity."""

    def __init__(self, role: UserRole = UserRole.SUPER_ADMIN) -> None:
        self.user_id = "7f1d5a9e-2c4b-4f7a-9d1e-3b6c8a0f2e11"
        self.role = role

    def context(self) -> UserContext:
        return UserContext(
            user_id=self.user_id,
            email="actor@healthflow.test",
            role=self.role,
            name="Test Actor",
        )


@pytest.fixture
def actor() -> Actor:
    return Actor()


@pytest.fixture
def client(db_session, clinic_service, actor) -> Generator[TestClient, None, None]:
    """TestClient with the database, clinic service and current user overridden."""
    from main import app

    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_clinic_service] = lambda: clinic_service
    app.dependency_overrides[get_current_user] = actor.context

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ===== Data builders =====

def make_clinic_payload(**overrides) -> dict:
    """Valid clinic creation payload; keyword arguments replace top-level keys."""
    payload = {
        "legal_name": "Clinica Saude Integral LTDA",
        "trade_name": "Saude Integral",
        "cnpj": VALID_CNPJ,
        "phone": "(11) 3333-4444",
        "email": "contato@saudeintegral.com.br",
        "address": {
            "street": "Avenida Paulista",
            "number": "1000",
            "neighborhood": "Bela Vista",
            "city": "Sao Paulo",
            "state": "SP",
            "zip_code": "01310-100",
            "lat": -23.5614,
            "lng": -46.6559,
        },
        "settings": {
            "allow_online_booking": True,
            "allow_telemedicine": True,
        },
    }
    payload.update(overrides)
    return payload


def create_clinic(service: ClinicService, db: Session, actor_id: Optional[str] = None, **overrides):
    return service.create(db, ClinicCreateRequest(**make_clinic_payload(**overrides)), actor_id)


def create_doctor(
    db: Session,
    full_name: str = "Dra. Ana Souza",
    crm: str = "123456",
    specialties: Optional[List[str]] = None,
    telemedicine_enabled: bool = False,
) -> Doctor:
    doctor = Doctor(
        full_name=full_name,
        crm=crm,
        crm_state="SP",
        specialties=specialties if specialties is not None else ["Cardiologia"],
        telemedicine_enabled=telemedicine_enabled,
        appointment_duration=30,
    )
    db.add(doctor)
    db.commit()
    return doctor


def create_patient(db: Session, full_name: str = "Joao Pereira", cpf: str = "52998224725") -> Patient:
    patient = Patient(full_name=full_name, cpf=cpf, phone="11999990000")
    db.add(patient)
    db.commit()
    return patient


def create_user(db: Session, email: str = "staff@healthflow.test", role: UserRole = UserRole.CLINIC_ADMIN,
                is_active: bool = True) -> User:
    user = User(email=email, full_name="Staff User", role=role.value, is_active=is_active)
    db.add(user)
    db.commit()
    return user


def create_appointment(
    db: Session,
    clinic_id: str,
    doctor_id: str,
    patient_id: str,
    status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    days_from_now: int = 3,
    room_id: Optional[str] = None,
    **fields,
) -> Appointment:
    appointment = Appointment(
        clinic_id=clinic_id,
        doctor_id=doctor_id,
        patient_id=patient_id,
        room_id=room_id,
        scheduled_date=brazil_now() + timedelta(days=days_from_now),
        status=status.value,
        **fields,
    )
    db.add(appointment)
    db.commit()
    return appointment


def add_employee(db: Session, clinic_id: str, user: User) -> ClinicEmployee:
    employee = ClinicEmployee(clinic_id=clinic_id, user_id=user.id, role_at_clinic="Recepção")
    db.add(employee)
    db.commit()
    return employee
