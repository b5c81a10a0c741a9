"""
Clinic-Doctor membership model.

Represents the many-to-many relationship between clinics and doctors,
storing clinic-specific overrides for each association.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime
from sqlalchemy import TIMESTAMP, Boolean, ForeignKey, UniqueConstraint, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from utils.id_utils import new_id


class ClinicDoctor(Base):
    """
    Membership linking a Doctor to a Clinic.

    Unique per (clinic_id, doctor_id): adding an already-linked doctor is
    rejected, never duplicated.
    """

    __tablename__ = "clinic_doctors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    clinic_id: Mapped[str] = mapped_column(ForeignKey("clinics.id", ondelete="CASCADE"), index=True)
    doctor_id: Mapped[str] = mapped_column(ForeignKey("doctors.id", ondelete="CASCADE"), index=True)

    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    """Whether this clinic is the doctor's primary workplace."""

    specialties_at_clinic: Mapped[List[str]] = mapped_column(JSON, default=list)
    """Specialties the doctor practices at this clinic (defaults to the doctor's own)."""

    working_hours: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON, nullable=True)
    """Clinic-specific working hours, same shape as Clinic.working_hours."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    clinic = relationship("Clinic", back_populates="clinic_doctors")
    doctor = relationship("Doctor", back_populates="clinic_doctors")

    __table_args__ = (
        UniqueConstraint('clinic_id', 'doctor_id', name='uq_clinic_doctor'),
    )
