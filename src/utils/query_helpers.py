"""
Query helper utilities for database operations.

This module provides shared utilities for common database query patterns,
particularly for handling JSON array containment checks with PostgreSQL JSONB.
"""

import json
from typing import Any

from sqlalchemy import cast, String
from sqlalchemy.orm import Session
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql.elements import ColumnElement


def dialect_name(db: Session) -> str:
    """Return the SQL dialect name of the session's bound engine."""
    bind = db.get_bind()
    return bind.dialect.name


def json_array_contains(column: Any, value: str, dialect: str) -> ColumnElement[bool]:
    """
    Build a filter that checks whether a JSON array column contains a value.

    On PostgreSQL this uses the native JSONB containment operator (@>), which
    is equivalent to: column @> '["value"]'::jsonb. Other dialects store JSON
    as text, so the check falls back to matching the serialized element.

    Args:
        column: JSON column holding an array of strings
        value: Element to look for (e.g., 'Cardiologia')
        dialect: Dialect name, see dialect_name()

    Returns:
        Boolean SQL expression usable in Query.filter()

    Example:
        ```python
        from utils.query_helpers import json_array_contains, dialect_name

        query = db.query(ClinicDoctor).filter(
            json_array_contains(ClinicDoctor.specialties_at_clinic, 'Pediatria', dialect_name(db))
        )
        ```
    """
    if dialect == "postgresql":
        return cast(column, JSONB).op('@>')(cast([value], JSONB))
    return cast(column, String).like(f"%{json.dumps(value)}%")
