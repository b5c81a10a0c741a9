"""
Clinic model representing a care-providing business unit.

A clinic is the legal identity that owns rooms, doctor and patient
memberships, employees and appointments. Clinics are never physically
removed while appointments reference them; deletion is a soft flag.
"""

from datetime import datetime
from typing import Optional, Dict, Any, List

from sqlalchemy import String, TIMESTAMP, Boolean, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from core.config import DEFAULT_CLINIC_TIMEZONE
from core.constants import MAX_STRING_LENGTH
from utils.id_utils import new_id


class Clinic(Base):
    """
    Clinic entity.

    Address, settings and working hours are stored as JSON sub-documents:
    - address: street/number/complement/neighborhood/city/state/zip_code/country, optional lat/lng
    - settings: booking rules, telemedicine toggle, cancellation policy
    - working_hours: list of {day_of_week, open_time, close_time, active}
    """

    __tablename__ = "clinics"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    """Unique identifier for the clinic (UUID)."""

    legal_name: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    """Registered legal name (razão social)."""

    trade_name: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    """Public trade name (nome fantasia)."""

    cnpj: Mapped[str] = mapped_column(String(14), unique=True)
    """National tax id, digits only."""

    cnes: Mapped[Optional[str]] = mapped_column(String(20), unique=True, nullable=True)
    """National health-facility registry id, unique when present."""

    phone: Mapped[str] = mapped_column(String(20))
    email: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    website: Mapped[Optional[str]] = mapped_column(String(MAX_STRING_LENGTH), nullable=True)

    address: Mapped[Dict[str, Any]] = mapped_column(JSON)
    """Structured postal address."""

    settings: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    """Operational settings (allow_online_booking, allow_telemedicine, cancellation_min_hours, ...)."""

    working_hours: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON, nullable=True)
    """Weekly opening schedule."""

    timezone: Mapped[str] = mapped_column(String(50), default=DEFAULT_CLINIC_TIMEZONE)

    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    primary_color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)

    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    """False once the clinic is deactivated or soft deleted."""

    deleted_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """Timestamp when the clinic was soft deleted (if applicable)."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    # Relationships
    rooms = relationship("Room", back_populates="clinic", order_by="Room.name")
    clinic_doctors = relationship("ClinicDoctor", back_populates="clinic")
    clinic_patients = relationship("ClinicPatient", back_populates="clinic")
    clinic_employees = relationship("ClinicEmployee", back_populates="clinic")
    appointments = relationship("Appointment", back_populates="clinic")

    __table_args__ = (
        Index('idx_clinics_trade_name', 'trade_name'),
        Index('idx_clinics_deleted_at', 'deleted_at'),
    )

    def __repr__(self) -> str:
        return f"<Clinic(id='{self.id}', trade_name='{self.trade_name}')>"
