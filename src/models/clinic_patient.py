"""
Clinic-Patient membership model.
"""

from typing import Optional
from datetime import datetime
from sqlalchemy import TIMESTAMP, ForeignKey, UniqueConstraint, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from utils.id_utils import new_id


class ClinicPatient(Base):
    """Membership linking a Patient to a Clinic, unique per (clinic_id, patient_id)."""

    __tablename__ = "clinic_patients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    clinic_id: Mapped[str] = mapped_column(ForeignKey("clinics.id", ondelete="CASCADE"), index=True)
    patient_id: Mapped[str] = mapped_column(ForeignKey("patients.id", ondelete="CASCADE"), index=True)

    medical_record_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    """Clinic-local medical record number (prontuário)."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    clinic = relationship("Clinic", back_populates="clinic_patients")
    patient = relationship("Patient", back_populates="clinic_patients")

    __table_args__ = (
        UniqueConstraint('clinic_id', 'patient_id', name='uq_clinic_patient'),
    )
