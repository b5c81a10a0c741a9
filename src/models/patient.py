"""
Patient model representing individuals who receive care.

Patients are global records; a patient joins a clinic's roster through
ClinicPatient, which carries the clinic-local medical record number.
"""

from sqlalchemy import String, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from typing import Optional

from core.database import Base
from utils.id_utils import new_id


class Patient(Base):
    """Patient entity."""

    __tablename__ = "patients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    """Unique identifier for the patient."""

    full_name: Mapped[str] = mapped_column(String(255))
    """Full civil name of the patient."""

    social_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Optional social name (nome social) used in place of the civil name."""

    cpf: Mapped[str] = mapped_column(String(11), unique=True)
    """Individual tax id, digits only."""

    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    clinic_patients = relationship("ClinicPatient", back_populates="patient")
    appointments = relationship("Appointment", back_populates="patient")

    __table_args__ = (
        Index('idx_patients_full_name', 'full_name'),
    )
