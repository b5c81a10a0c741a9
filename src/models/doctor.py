"""
Doctor model.

Doctors are owned by the professionals module; the clinic module only reads
their public profile and links them to clinics through ClinicDoctor.
"""

from datetime import datetime
from typing import Optional, List
from sqlalchemy import String, TIMESTAMP, Boolean, Integer, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from utils.id_utils import new_id


class Doctor(Base):
    __tablename__ = "doctors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    full_name: Mapped[str] = mapped_column(String(255))
    crm: Mapped[str] = mapped_column(String(20))
    """Medical council registration number."""
    crm_state: Mapped[str] = mapped_column(String(2))
    specialties: Mapped[List[str]] = mapped_column(JSON, default=list)
    profile_photo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    telemedicine_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    appointment_duration: Mapped[int] = mapped_column(Integer, default=30)
    """Default consultation length in minutes."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    clinic_doctors = relationship("ClinicDoctor", back_populates="doctor")
