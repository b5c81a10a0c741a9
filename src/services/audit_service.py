"""
Audit service for recording mutating actions.

Entries are added to the caller's session so they commit (or roll back)
together with the change they describe.
"""

import enum
import logging
from datetime import datetime, date
from typing import Any, Dict, List, Optional

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from models import AuditLog

logger = logging.getLogger(__name__)


class AuditAction(str, enum.Enum):
    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    EXPORT = "EXPORT"


def _json_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    return value


class AuditService:
    """Service for writing and reading the audit trail."""

    @staticmethod
    def snapshot(instance: Any) -> Dict[str, Any]:
        """Capture the column values of a mapped instance as a JSON-ready dict."""
        mapper = inspect(instance).mapper
        return {
            column.key: _json_value(getattr(instance, column.key))
            for column in mapper.column_attrs
        }

    @staticmethod
    def log(
        db: Session,
        action: AuditAction,
        resource: str,
        resource_id: str,
        user_id: Optional[str],
        description: str,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        """
        Append an audit entry to the current transaction.

        The entry is not committed here; the caller's commit persists it
        together with the audited change.
        """
        entry = AuditLog(
            action=action.value,
            resource=resource,
            resource_id=resource_id,
            user_id=user_id,
            description=description,
            old_values=old_values,
            new_values=new_values,
        )
        db.add(entry)
        logger.debug(f"Audit {action.value} {resource}:{resource_id} by {user_id}: {description}")
        return entry

    @staticmethod
    def find_by_resource(db: Session, resource: str, resource_id: str) -> List[AuditLog]:
        """Return the audit trail of a resource, newest first."""
        return db.query(AuditLog).filter(
            AuditLog.resource == resource,
            AuditLog.resource_id == resource_id,
        ).order_by(AuditLog.id.desc()).all()
