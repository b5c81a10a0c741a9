"""
Clinic-Employee membership model.

Links staff user accounts (receptionists, nurses, managers) to the clinics
they work at. Only counted by the clinic module.
"""

from typing import Optional
from datetime import datetime
from sqlalchemy import TIMESTAMP, ForeignKey, UniqueConstraint, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from utils.id_utils import new_id


class ClinicEmployee(Base):
    __tablename__ = "clinic_employees"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    clinic_id: Mapped[str] = mapped_column(ForeignKey("clinics.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    role_at_clinic: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    clinic = relationship("Clinic", back_populates="clinic_employees")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint('clinic_id', 'user_id', name='uq_clinic_employee'),
    )
