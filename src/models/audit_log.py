"""
Audit log model.

Append-only record of mutating actions: who did what to which resource and
when, with optional before/after snapshots.
"""

from datetime import datetime
from typing import Optional, Dict, Any
from sqlalchemy import String, TIMESTAMP, Text, JSON, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


class AuditLog(Base):
    """Audit trail entry. Rows are only ever inserted."""

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Monotonic id; gives the append order."""

    action: Mapped[str] = mapped_column(String(20), index=True)
    """One of services.audit_service.AuditAction."""

    resource: Mapped[str] = mapped_column(String(50))
    """Resource kind, e.g. 'clinic', 'clinic_doctor', 'room'."""

    resource_id: Mapped[str] = mapped_column(String(36))

    user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    """Acting user; None for system actions."""

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    old_values: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    new_values: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    __table_args__ = (
        Index('idx_audit_logs_resource', 'resource', 'resource_id'),
        Index('idx_audit_logs_user', 'user_id', 'created_at'),
    )
