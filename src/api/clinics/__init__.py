# pyright: reportMissingTypeStubs=false
"""
Clinic API modules.

This package contains the clinic endpoints organized by domain. Every router
is mounted under /api/clinics.
"""

from api.clinics.clinics import router as clinics_router
from api.clinics.members import router as members_router
from api.clinics.rooms import router as rooms_router

__all__ = [
    'clinics_router',
    'members_router',
    'rooms_router',
]
