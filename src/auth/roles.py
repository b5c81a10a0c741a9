"""User roles used for route gating."""

import enum


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    CLINIC_ADMIN = "CLINIC_ADMIN"
    CLINIC_MANAGER = "CLINIC_MANAGER"
    DOCTOR = "DOCTOR"
    NURSE = "NURSE"
    RECEPTIONIST = "RECEPTIONIST"
    PATIENT = "PATIENT"
