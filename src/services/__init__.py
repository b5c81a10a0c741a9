"""
Services package for shared business logic.

This package contains service classes that encapsulate business logic
shared across the clinic API endpoints.
"""

from .audit_service import AuditService
from .cache_service import CacheService
from .event_service import EventBus
from .jwt_service import JWTService
from .clinic_service import ClinicService

__all__ = [
    "AuditService",
    "CacheService",
    "EventBus",
    "JWTService",
    "ClinicService",
]
