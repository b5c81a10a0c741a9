"""
Appointment model representing scheduled consultations.

Appointments are owned by the scheduling module. The clinic module reads them
to guard destructive operations (future SCHEDULED/CONFIRMED appointments block
clinic deletion, doctor detachment and room deactivation) and to compute
clinic statistics.
"""

import enum
from datetime import datetime
from typing import Optional
from sqlalchemy import String, ForeignKey, Index, TIMESTAMP, Boolean, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from utils.id_utils import new_id


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    WAITING = "WAITING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"
    RESCHEDULED = "RESCHEDULED"


class Appointment(Base):
    """Appointment entity linking a patient and a doctor at a clinic, optionally in a room."""

    __tablename__ = "appointments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    clinic_id: Mapped[str] = mapped_column(ForeignKey("clinics.id"))
    doctor_id: Mapped[str] = mapped_column(ForeignKey("doctors.id"))
    patient_id: Mapped[str] = mapped_column(ForeignKey("patients.id"))
    room_id: Mapped[Optional[str]] = mapped_column(ForeignKey("rooms.id"), nullable=True)

    scheduled_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))
    """Start of the appointment."""

    duration: Mapped[int] = mapped_column(Integer, default=30)
    """Planned duration in minutes."""

    status: Mapped[str] = mapped_column(String(20), default=AppointmentStatus.SCHEDULED.value)
    """Current status, one of AppointmentStatus."""

    is_telemedicine: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    checked_in_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """When the patient arrived (start of the wait)."""

    started_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """When the consultation actually started."""

    completed_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    clinic = relationship("Clinic", back_populates="appointments")
    doctor = relationship("Doctor")
    patient = relationship("Patient", back_populates="appointments")
    room = relationship("Room")

    __table_args__ = (
        Index('idx_appointments_clinic_date', 'clinic_id', 'scheduled_date'),
        Index('idx_appointments_doctor_date', 'doctor_id', 'scheduled_date'),
        Index('idx_appointments_room_date', 'room_id', 'scheduled_date'),
    )
