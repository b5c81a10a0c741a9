"""
Shared types for clinic management.

Request payloads, query parameters and response models shared by the
clinic service and the clinic API routers. Response models are also the
shape stored in the clinic cache, so they must round-trip through JSON.
"""

import re
from datetime import datetime, date
from typing import List, Optional, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from core.constants import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    MIN_SEARCH_RADIUS_KM,
    MAX_SEARCH_RADIUS_KM,
)

_EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
_TIME_PATTERN = r'^([01]\d|2[0-3]):([0-5]\d)$'


# ===== Nested documents =====

class ClinicAddress(BaseModel):
    """Structured postal address stored as JSON on the clinic."""
    street: str = Field(..., max_length=255)
    number: str = Field(..., max_length=20)
    complement: Optional[str] = Field(None, max_length=100)
    neighborhood: str = Field(..., max_length=100)
    city: str = Field(..., max_length=100)
    state: str = Field(..., min_length=2, max_length=2, description="UF, e.g. SP")
    zip_code: str = Field(..., pattern=r'^\d{5}-?\d{3}$', description="CEP")
    country: str = Field(default="BR", max_length=2)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)

    @field_validator('state')
    @classmethod
    def uppercase_state(cls, v: str) -> str:
        return v.upper()


class WorkingHoursEntry(BaseModel):
    """One weekday opening window."""
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday")
    open_time: str = Field(..., pattern=_TIME_PATTERN)
    close_time: str = Field(..., pattern=_TIME_PATTERN)
    active: bool = True

    @model_validator(mode='after')
    def validate_window(self):
        if self.close_time <= self.open_time:
            raise ValueError('Horário de fechamento deve ser posterior ao de abertura')
        return self


class ClinicSettings(BaseModel):
    """Operational settings. Unset keys are not stored."""
    default_appointment_duration: Optional[int] = Field(None, ge=10, le=120)
    allow_online_booking: Optional[bool] = None
    send_appointment_reminders: Optional[bool] = None
    reminder_hours_before: Optional[int] = Field(None, ge=1, le=168)
    allow_telemedicine: Optional[bool] = None
    require_payment_upfront: Optional[bool] = None
    cancellation_min_hours: Optional[int] = Field(None, ge=0, le=168)
    auto_confirm_appointments: Optional[bool] = None
    late_tolerance_minutes: Optional[int] = Field(None, ge=0, le=120)
    welcome_message: Optional[str] = Field(None, max_length=1000)
    terms_and_conditions: Optional[str] = Field(None, max_length=10000)


# ===== Request models =====

class RoomCreateRequest(BaseModel):
    """Request model for creating a room."""
    name: str = Field(..., min_length=1, max_length=100)
    code: Optional[str] = Field(None, max_length=20)
    floor: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    equipment: List[str] = Field(default_factory=list)
    active: bool = True


class RoomUpdateRequest(BaseModel):
    """Request model for a partial room update."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    code: Optional[str] = Field(None, max_length=20)
    floor: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    equipment: Optional[List[str]] = None
    active: Optional[bool] = None

    @model_validator(mode='after')
    def validate_at_least_one_field(self):
        """Ensure at least one field is provided for update."""
        if not self.model_dump(exclude_unset=True):
            raise ValueError('Informe ao menos um campo para atualizar')
        return self


class _ClinicContactFields(BaseModel):
    @field_validator('email', check_fields=False)
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _EMAIL_PATTERN.match(v):
            raise ValueError('E-mail inválido')
        return v

    @field_validator('primary_color', check_fields=False)
    @classmethod
    def validate_color(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not re.match(r'^#[0-9A-Fa-f]{6}$', v):
            raise ValueError('Cor deve estar no formato hexadecimal (#RRGGBB)')
        return v


class ClinicCreateRequest(_ClinicContactFields):
    """Request model for creating a clinic."""
    legal_name: str = Field(..., min_length=3, max_length=255)
    trade_name: str = Field(..., min_length=3, max_length=255)
    cnpj: str = Field(..., pattern=r'^\d{2}\.?\d{3}\.?\d{3}/?\d{4}-?\d{2}$')
    cnes: Optional[str] = Field(None, max_length=20)
    phone: str = Field(..., max_length=20)
    email: str = Field(..., max_length=255)
    website: Optional[str] = Field(None, max_length=255)
    address: ClinicAddress
    settings: Optional[ClinicSettings] = None
    working_hours: Optional[List[WorkingHoursEntry]] = None
    timezone: Optional[str] = Field(None, max_length=50)
    logo_url: Optional[str] = Field(None, max_length=500)
    primary_color: Optional[str] = None
    rooms: Optional[List[RoomCreateRequest]] = None


class ClinicUpdateRequest(_ClinicContactFields):
    """
    Request model for updating a clinic.

    Only fields present in the payload are applied; absent fields are left
    untouched. The CNPJ is immutable.
    """
    legal_name: Optional[str] = Field(None, min_length=3, max_length=255)
    trade_name: Optional[str] = Field(None, min_length=3, max_length=255)
    cnes: Optional[str] = Field(None, max_length=20)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=255)
    website: Optional[str] = Field(None, max_length=255)
    address: Optional[ClinicAddress] = None
    settings: Optional[ClinicSettings] = None
    working_hours: Optional[List[WorkingHoursEntry]] = None
    timezone: Optional[str] = Field(None, max_length=50)
    logo_url: Optional[str] = Field(None, max_length=500)
    primary_color: Optional[str] = None
    active: Optional[bool] = None


class AddDoctorRequest(BaseModel):
    """Request model for linking a doctor to a clinic."""
    doctor_id: str
    is_primary: bool = False
    specialties_at_clinic: Optional[List[str]] = None
    working_hours_at_clinic: Optional[List[WorkingHoursEntry]] = None


class AddPatientRequest(BaseModel):
    """Request model for linking a patient to a clinic."""
    patient_id: str
    medical_record_number: Optional[str] = Field(None, max_length=50)


# ===== Query parameters =====

class ClinicQuery(BaseModel):
    """Filters, sorting and pagination for listing clinics."""
    page: int = Field(DEFAULT_PAGE, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    search: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    active: Optional[bool] = None
    has_telemedicine: Optional[bool] = None
    has_online_booking: Optional[bool] = None
    sort_by: Literal["trade_name", "legal_name", "created_at", "updated_at"] = "trade_name"
    sort_order: Literal["asc", "desc"] = "asc"
    include_deleted: bool = False
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    radius: Optional[float] = Field(None, ge=MIN_SEARCH_RADIUS_KM, le=MAX_SEARCH_RADIUS_KM, description="km")

    @property
    def has_geo_filter(self) -> bool:
        return self.lat is not None and self.lng is not None and self.radius is not None

    @property
    def has_partial_geo_filter(self) -> bool:
        given = [v is not None for v in (self.lat, self.lng, self.radius)]
        return any(given) and not all(given)


class ClinicDoctorsQuery(BaseModel):
    page: int = Field(DEFAULT_PAGE, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    specialty: Optional[str] = None
    telemedicine_enabled: Optional[bool] = None


class ClinicPatientsQuery(BaseModel):
    page: int = Field(DEFAULT_PAGE, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    search: Optional[str] = None
    sort_by: Literal["full_name", "created_at"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"


class ClinicStatsQuery(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode='after')
    def validate_range(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError('Data final deve ser igual ou posterior à data inicial')
        return self


# ===== Response models =====

class RoomSummary(BaseModel):
    id: str
    name: str
    code: Optional[str] = None


class RoomResponse(BaseModel):
    """Response model for room."""
    id: str
    clinic_id: str
    name: str
    code: Optional[str] = None
    floor: Optional[str] = None
    description: Optional[str] = None
    equipment: List[str] = []
    active: bool
    created_at: datetime
    updated_at: datetime


class ClinicCounts(BaseModel):
    """Denormalized membership and activity counts."""
    doctors: int = 0
    patients: int = 0
    employees: int = 0
    appointments: int = 0
    rooms: int = 0


class ClinicResponse(BaseModel):
    """Response model for clinic core fields."""
    id: str
    legal_name: str
    trade_name: str
    cnpj: str
    cnes: Optional[str] = None
    phone: str
    email: str
    website: Optional[str] = None
    address: ClinicAddress
    settings: dict = {}
    working_hours: Optional[List[WorkingHoursEntry]] = None
    timezone: str
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    active: bool
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ClinicListItem(ClinicResponse):
    """Clinic row in a listing: active rooms, counts and (for geo searches) distance."""
    rooms: List[RoomSummary] = []
    counts: ClinicCounts
    distance_km: Optional[float] = None


class ClinicListResponse(BaseModel):
    data: List[ClinicListItem]
    total: int
    page: int
    limit: int
    total_pages: int


class DoctorSummary(BaseModel):
    """Public doctor profile embedded in memberships."""
    id: str
    full_name: str
    crm: str
    crm_state: str
    specialties: List[str] = []
    profile_photo_url: Optional[str] = None
    telemedicine_enabled: bool = False
    appointment_duration: Optional[int] = None


class ClinicDoctorResponse(BaseModel):
    id: str
    clinic_id: str
    doctor_id: str
    is_primary: bool
    specialties_at_clinic: List[str] = []
    working_hours: Optional[List[WorkingHoursEntry]] = None
    created_at: datetime
    doctor: DoctorSummary


class ClinicDetailResponse(ClinicResponse):
    """Full clinic view returned by lookups by id (and cached)."""
    clinic_doctors: List[ClinicDoctorResponse] = []
    rooms: List[RoomResponse] = []
    counts: ClinicCounts


class PatientSummary(BaseModel):
    id: str
    full_name: str
    social_name: Optional[str] = None
    cpf: str
    phone: Optional[str] = None


class ClinicPatientResponse(BaseModel):
    id: str
    clinic_id: str
    patient_id: str
    medical_record_number: Optional[str] = None
    created_at: datetime
    patient: PatientSummary


class ClinicDoctorListResponse(BaseModel):
    data: List[ClinicDoctorResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class ClinicPatientListResponse(BaseModel):
    data: List[ClinicPatientResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class CnpjLookupResponse(BaseModel):
    found: bool
    clinic: Optional[ClinicResponse] = None


class ClinicStatsResponse(BaseModel):
    """Appointment and membership statistics for a clinic over a date range."""
    total_appointments: int
    completed_appointments: int
    cancelled_appointments: int
    no_show_appointments: int
    telemedicine_appointments: int
    total_patients: int
    new_patients: int
    active_doctors: int
    occupancy_rate: int
    """Completed / total appointments, rounded percent."""
    average_wait_time: Optional[float] = None
    """Mean minutes from check-in to start; None without data."""
    average_consultation_duration: Optional[float] = None
    """Mean minutes from start to completion; None without data."""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
