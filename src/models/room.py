"""
Room model representing a physical space owned by a clinic.

Rooms ("Consultório 1", "Sala de Procedimentos") belong to exactly one clinic
and are deactivated rather than deleted.
"""

from datetime import datetime
from typing import Optional, List
from sqlalchemy import String, ForeignKey, TIMESTAMP, Boolean, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from utils.id_utils import new_id


class Room(Base):
    """Room entity. Names are unique within a clinic, not globally."""

    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    clinic_id: Mapped[str] = mapped_column(ForeignKey("clinics.id", ondelete="CASCADE"), index=True)
    """Reference to the clinic that owns this room."""

    name: Mapped[str] = mapped_column(String(100))
    code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    floor: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    equipment: Mapped[List[str]] = mapped_column(JSON, default=list)
    """Equipment available in the room."""

    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    clinic = relationship("Clinic", back_populates="rooms")

    __table_args__ = (
        UniqueConstraint('clinic_id', 'name', name='uq_room_clinic_name'),
    )
