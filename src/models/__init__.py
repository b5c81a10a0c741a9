# Package initialization
# Import all models to ensure relationships are properly established
from .clinic import Clinic
from .room import Room
from .doctor import Doctor
from .patient import Patient
from .user import User
from .clinic_doctor import ClinicDoctor
from .clinic_patient import ClinicPatient
from .clinic_employee import ClinicEmployee
from .appointment import Appointment, AppointmentStatus
from .audit_log import AuditLog

__all__ = [
    "Clinic",
    "Room",
    "Doctor",
    "Patient",
    "User",
    "ClinicDoctor",
    "ClinicPatient",
    "ClinicEmployee",
    "Appointment",
    "AppointmentStatus",
    "AuditLog",
]
