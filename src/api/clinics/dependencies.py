"""
Service wiring for the clinic routers.
"""

from typing import Optional

from services.cache_service import build_cache_service
from services.clinic_service import ClinicService
from services.event_service import event_bus

_clinic_service: Optional[ClinicService] = None


def get_clinic_service() -> ClinicService:
    """FastAPI dependency returning the process-wide clinic service."""
    global _clinic_service
    if _clinic_service is None:
        _clinic_service = ClinicService(cache=build_cache_service(), events=event_bus)
    return _clinic_service
