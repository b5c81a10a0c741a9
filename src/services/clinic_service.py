"""
Clinic service for clinic lifecycle and membership management.

This service handles:
- Clinic listing, lookup (read-through cached) and statistics
- Clinic creation, partial update and soft deletion
- Doctor and patient memberships
- Room management

Every mutation validates before writing, records an audit entry in the same
transaction, invalidates the clinic cache after commit and then emits a
domain event. Destructive operations are blocked while future SCHEDULED or
CONFIRMED appointments reference the clinic, doctor or room.
"""

import logging
import math
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, contains_eager

from core.constants import (
    BLOCKING_APPOINTMENT_STATUSES,
    CLINIC_CACHE_PREFIX,
    CLINIC_SORT_FIELDS,
)
from core.config import DEFAULT_CLINIC_TIMEZONE
from models import (
    Appointment,
    AppointmentStatus,
    Clinic,
    ClinicDoctor,
    ClinicEmployee,
    ClinicPatient,
    Doctor,
    Patient,
    Room,
)
from services.audit_service import AuditAction, AuditService
from services.cache_service import CacheService
from services import event_service
from services.event_service import EventBus
from shared_types.clinic import (
    AddDoctorRequest,
    AddPatientRequest,
    ClinicCounts,
    ClinicCreateRequest,
    ClinicDetailResponse,
    ClinicDoctorListResponse,
    ClinicDoctorResponse,
    ClinicDoctorsQuery,
    ClinicListItem,
    ClinicListResponse,
    ClinicPatientListResponse,
    ClinicPatientResponse,
    ClinicPatientsQuery,
    ClinicQuery,
    ClinicResponse,
    ClinicStatsQuery,
    ClinicStatsResponse,
    ClinicUpdateRequest,
    CnpjLookupResponse,
    DoctorSummary,
    PatientSummary,
    RoomCreateRequest,
    RoomResponse,
    RoomSummary,
    RoomUpdateRequest,
)
from utils.cnpj import is_valid_cnpj, normalize_digits
from utils.datetime_utils import brazil_now, end_of_day, minutes_between, start_of_day
from utils.geo import bounding_box, haversine_km
from utils.query_helpers import dialect_name, json_array_contains

logger = logging.getLogger(__name__)

_CLINIC_FIELDS = (
    "id", "legal_name", "trade_name", "cnpj", "cnes", "phone", "email", "website",
    "address", "settings", "working_hours", "timezone", "logo_url", "primary_color",
    "active", "deleted_at", "created_at", "updated_at",
)

# Columns that may be omitted from an update but never cleared
_CLINIC_REQUIRED_FIELDS = {"legal_name", "trade_name", "phone", "email", "address", "timezone", "active"}
_ROOM_REQUIRED_FIELDS = {"name", "equipment", "active"}


def _not_found(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)


def _conflict(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=message)


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def _total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0


def _rounded_percent(part: int, total: int) -> int:
    """Whole percent of ``part`` over ``total``, halves rounded up; 0 when total is 0."""
    if not total:
        return 0
    return (part * 200 + total) // (2 * total)


def _like_pattern(term: str) -> str:
    """Substring LIKE pattern matching ``term`` literally (escape character ``\\``)."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _clinic_fields(clinic: Clinic) -> Dict[str, Any]:
    fields = {name: getattr(clinic, name) for name in _CLINIC_FIELDS}
    fields["settings"] = clinic.settings or {}
    return fields


def _room_response(room: Room) -> RoomResponse:
    return RoomResponse(
        id=room.id,
        clinic_id=room.clinic_id,
        name=room.name,
        code=room.code,
        floor=room.floor,
        description=room.description,
        equipment=room.equipment or [],
        active=room.active,
        created_at=room.created_at,
        updated_at=room.updated_at,
    )


def _doctor_summary(doctor: Doctor) -> DoctorSummary:
    return DoctorSummary(
        id=doctor.id,
        full_name=doctor.full_name,
        crm=doctor.crm,
        crm_state=doctor.crm_state,
        specialties=doctor.specialties or [],
        profile_photo_url=doctor.profile_photo_url,
        telemedicine_enabled=doctor.telemedicine_enabled,
        appointment_duration=doctor.appointment_duration,
    )


def _clinic_doctor_response(membership: ClinicDoctor) -> ClinicDoctorResponse:
    return ClinicDoctorResponse(
        id=membership.id,
        clinic_id=membership.clinic_id,
        doctor_id=membership.doctor_id,
        is_primary=membership.is_primary,
        specialties_at_clinic=membership.specialties_at_clinic or [],
        working_hours=membership.working_hours,
        created_at=membership.created_at,
        doctor=_doctor_summary(membership.doctor),
    )


def _clinic_patient_response(membership: ClinicPatient) -> ClinicPatientResponse:
    patient = membership.patient
    return ClinicPatientResponse(
        id=membership.id,
        clinic_id=membership.clinic_id,
        patient_id=membership.patient_id,
        medical_record_number=membership.medical_record_number,
        created_at=membership.created_at,
        patient=PatientSummary(
            id=patient.id,
            full_name=patient.full_name,
            social_name=patient.social_name,
            cpf=patient.cpf,
            phone=patient.phone,
        ),
    )


class ClinicService:
    """
    Service for clinic lifecycle, memberships and rooms.

    Args:
        cache: Cache used for clinic-by-id lookups
        events: Bus receiving lifecycle events after each committed mutation
    """

    def __init__(self, cache: CacheService, events: EventBus) -> None:
        self.cache = cache
        self.events = events

    # ===== Internal helpers =====

    @staticmethod
    def _cache_key(clinic_id: str) -> str:
        return f"{CLINIC_CACHE_PREFIX}{clinic_id}"

    @contextmanager
    def _write(self, db: Session) -> Iterator[None]:
        """
        Commit the enclosed writes, translating unique-constraint races to 409.

        Pre-checks catch the common duplicates; a concurrent writer that wins
        the race still trips the database constraint and lands here.
        """
        try:
            yield
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Integrity error on clinic write: {e.orig}")
            raise _conflict("Registro duplicado") from e

    @staticmethod
    def _get_clinic(db: Session, clinic_id: str) -> Clinic:
        clinic = db.query(Clinic).filter(Clinic.id == clinic_id).first()
        if not clinic:
            raise _not_found("Clínica não encontrada")
        return clinic

    @staticmethod
    def _count_blocking_appointments(db: Session, *criteria: Any) -> int:
        """Count future SCHEDULED/CONFIRMED appointments matching the criteria."""
        return db.query(func.count(Appointment.id)).filter(
            *criteria,
            Appointment.status.in_(BLOCKING_APPOINTMENT_STATUSES),
            Appointment.scheduled_date >= brazil_now(),
        ).scalar() or 0

    @staticmethod
    def _counts_for(db: Session, clinic_ids: List[str]) -> Dict[str, ClinicCounts]:
        """Membership and activity counts for several clinics, one grouped query per relation."""
        counts: Dict[str, Dict[str, int]] = {clinic_id: {} for clinic_id in clinic_ids}
        if not clinic_ids:
            return {}

        relations = (
            ("doctors", ClinicDoctor),
            ("patients", ClinicPatient),
            ("employees", ClinicEmployee),
            ("appointments", Appointment),
            ("rooms", Room),
        )
        for key, model in relations:
            rows = db.query(model.clinic_id, func.count(model.id)).filter(
                model.clinic_id.in_(clinic_ids)
            ).group_by(model.clinic_id).all()
            for clinic_id, count in rows:
                counts[clinic_id][key] = count

        return {clinic_id: ClinicCounts(**values) for clinic_id, values in counts.items()}

    def _build_detail(self, db: Session, clinic: Clinic) -> ClinicDetailResponse:
        memberships = db.query(ClinicDoctor).options(
            joinedload(ClinicDoctor.doctor)
        ).filter(
            ClinicDoctor.clinic_id == clinic.id
        ).order_by(ClinicDoctor.created_at.asc()).all()

        rooms = db.query(Room).filter(Room.clinic_id == clinic.id).order_by(Room.name.asc()).all()

        return ClinicDetailResponse(
            **_clinic_fields(clinic),
            clinic_doctors=[_clinic_doctor_response(m) for m in memberships],
            rooms=[_room_response(r) for r in rooms],
            counts=self._counts_for(db, [clinic.id])[clinic.id],
        )

    def _invalidate(self, clinic_id: str) -> None:
        self.cache.delete(self._cache_key(clinic_id))

    # ===== Queries =====

    def find_all(self, db: Session, query: ClinicQuery) -> ClinicListResponse:
        """
        List clinics with filters, sorting and pagination.

        Soft-deleted clinics are excluded unless ``include_deleted`` is set.
        When ``lat``/``lng``/``radius`` are given, only clinics whose address
        coordinates fall within the radius are returned, each with its
        distance in km.
        """
        if query.has_partial_geo_filter:
            raise _bad_request("Parâmetros lat, lng e radius devem ser informados juntos")

        clinics = db.query(Clinic)

        if not query.include_deleted:
            clinics = clinics.filter(Clinic.deleted_at.is_(None))

        if query.active is not None:
            clinics = clinics.filter(Clinic.active == query.active)

        if query.search and query.search.strip():
            term = query.search.strip()
            conditions = [
                Clinic.trade_name.ilike(_like_pattern(term), escape="\\"),
                Clinic.legal_name.ilike(_like_pattern(term), escape="\\"),
                Clinic.cnes.contains(term, autoescape=True),
            ]
            digits = normalize_digits(term)
            if digits:
                conditions.append(Clinic.cnpj.contains(digits, autoescape=True))
            clinics = clinics.filter(or_(*conditions))

        if query.city:
            clinics = clinics.filter(Clinic.address["city"].as_string().ilike(_like_pattern(query.city), escape="\\"))

        if query.state:
            clinics = clinics.filter(Clinic.address["state"].as_string() == query.state.upper())

        if query.has_telemedicine is not None:
            clinics = clinics.filter(
                Clinic.settings["allow_telemedicine"].as_boolean() == query.has_telemedicine
            )

        if query.has_online_booking is not None:
            clinics = clinics.filter(
                Clinic.settings["allow_online_booking"].as_boolean() == query.has_online_booking
            )

        sort_column = getattr(Clinic, CLINIC_SORT_FIELDS[query.sort_by])
        order = sort_column.desc() if query.sort_order == "desc" else sort_column.asc()
        clinics = clinics.order_by(order, Clinic.id.asc())

        offset = (query.page - 1) * query.limit
        distances: Dict[str, float] = {}

        if query.has_geo_filter:
            min_lat, max_lat, min_lng, max_lng = bounding_box(query.lat, query.lng, query.radius)
            candidates = clinics.filter(
                Clinic.address["lat"].as_float().between(min_lat, max_lat),
                Clinic.address["lng"].as_float().between(min_lng, max_lng),
            ).all()

            matching: List[Clinic] = []
            for clinic in candidates:
                distance = haversine_km(
                    query.lat, query.lng, clinic.address["lat"], clinic.address["lng"]
                )
                if distance <= query.radius:
                    distances[clinic.id] = round(distance, 2)
                    matching.append(clinic)

            total = len(matching)
            page_clinics = matching[offset:offset + query.limit]
        else:
            total = clinics.count()
            page_clinics = clinics.offset(offset).limit(query.limit).all()

        clinic_ids = [c.id for c in page_clinics]
        counts = self._counts_for(db, clinic_ids)

        active_rooms: Dict[str, List[RoomSummary]] = {clinic_id: [] for clinic_id in clinic_ids}
        if clinic_ids:
            rooms = db.query(Room).filter(
                Room.clinic_id.in_(clinic_ids),
                Room.active == True,
            ).order_by(Room.name.asc()).all()
            for room in rooms:
                active_rooms[room.clinic_id].append(RoomSummary(id=room.id, name=room.name, code=room.code))

        data = [
            ClinicListItem(
                **_clinic_fields(clinic),
                rooms=active_rooms[clinic.id],
                counts=counts[clinic.id],
                distance_km=distances.get(clinic.id),
            )
            for clinic in page_clinics
        ]

        return ClinicListResponse(
            data=data,
            total=total,
            page=query.page,
            limit=query.limit,
            total_pages=_total_pages(total, query.limit),
        )

    def find_by_id(self, db: Session, clinic_id: str) -> ClinicDetailResponse:
        """
        Get a clinic with its doctor memberships, rooms and counts.

        Read-through cached under ``clinic:<id>``; the entry is dropped by
        every mutation touching the clinic.

        Raises:
            HTTPException: 404 if the clinic does not exist
        """
        cache_key = self._cache_key(clinic_id)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return ClinicDetailResponse.model_validate(cached)

        clinic = self._get_clinic(db, clinic_id)
        detail = self._build_detail(db, clinic)
        self.cache.set(cache_key, detail.model_dump(mode="json"))
        return detail

    @staticmethod
    def find_by_cnpj(db: Session, cnpj: str) -> Optional[Clinic]:
        """Exact lookup by CNPJ in any formatting; None when absent."""
        return db.query(Clinic).filter(Clinic.cnpj == normalize_digits(cnpj)).first()

    @staticmethod
    def find_by_cnes(db: Session, cnes: str) -> Optional[Clinic]:
        return db.query(Clinic).filter(Clinic.cnes == cnes).first()

    def lookup_cnpj(self, db: Session, cnpj: str) -> CnpjLookupResponse:
        clinic = self.find_by_cnpj(db, cnpj)
        if not clinic:
            return CnpjLookupResponse(found=False)
        return CnpjLookupResponse(found=True, clinic=ClinicResponse(**_clinic_fields(clinic)))

    # ===== Clinic mutations =====

    def create(self, db: Session, dto: ClinicCreateRequest, actor_id: Optional[str]) -> ClinicDetailResponse:
        """
        Register a new clinic, optionally with its initial rooms.

        Raises:
            HTTPException: 409 if CNPJ or CNES is already registered,
                400 if the CNPJ check digits are wrong
        """
        cnpj = normalize_digits(dto.cnpj)

        if self.find_by_cnpj(db, cnpj):
            raise _conflict("CNPJ já cadastrado")

        if dto.cnes and self.find_by_cnes(db, dto.cnes):
            raise _conflict("CNES já cadastrado")

        if not is_valid_cnpj(cnpj):
            raise _bad_request("CNPJ inválido")

        clinic = Clinic(
            legal_name=dto.legal_name,
            trade_name=dto.trade_name,
            cnpj=cnpj,
            cnes=dto.cnes,
            phone=dto.phone,
            email=dto.email,
            website=dto.website,
            address=dto.address.model_dump(exclude_none=True),
            settings=dto.settings.model_dump(exclude_none=True) if dto.settings else {},
            working_hours=[w.model_dump() for w in dto.working_hours] if dto.working_hours is not None else None,
            timezone=dto.timezone or DEFAULT_CLINIC_TIMEZONE,
            logo_url=dto.logo_url,
            primary_color=dto.primary_color,
            active=True,
        )
        for room_dto in dto.rooms or []:
            clinic.rooms.append(Room(**room_dto.model_dump()))

        with self._write(db):
            db.add(clinic)
            db.flush()
            AuditService.log(
                db,
                AuditAction.CREATE,
                resource="clinic",
                resource_id=clinic.id,
                user_id=actor_id,
                description="Clínica cadastrada",
                new_values=AuditService.snapshot(clinic),
            )

        logger.info(f"Clinic {clinic.id} created by {actor_id}")
        self.events.emit(event_service.CLINIC_CREATED, {"clinic_id": clinic.id, "user_id": actor_id})

        return self._build_detail(db, clinic)

    def update(
        self, db: Session, clinic_id: str, dto: ClinicUpdateRequest, actor_id: Optional[str]
    ) -> ClinicDetailResponse:
        """
        Apply a partial update; fields absent from the payload are left untouched.

        Raises:
            HTTPException: 404 if the clinic does not exist,
                409 if the new CNES belongs to another clinic
        """
        clinic = self._get_clinic(db, clinic_id)

        data = dto.model_dump(exclude_unset=True)
        if dto.address is not None:
            data["address"] = dto.address.model_dump(exclude_none=True)
        if dto.settings is not None:
            data["settings"] = dto.settings.model_dump(exclude_none=True)

        new_cnes = data.get("cnes")
        if new_cnes and new_cnes != clinic.cnes:
            existing = self.find_by_cnes(db, new_cnes)
            if existing and existing.id != clinic.id:
                raise _conflict("CNES já cadastrado")

        old_values = AuditService.snapshot(clinic)

        for field, value in data.items():
            if value is None and field in _CLINIC_REQUIRED_FIELDS:
                continue
            setattr(clinic, field, value)

        with self._write(db):
            db.flush()
            AuditService.log(
                db,
                AuditAction.UPDATE,
                resource="clinic",
                resource_id=clinic.id,
                user_id=actor_id,
                description="Clínica atualizada",
                old_values=old_values,
                new_values=AuditService.snapshot(clinic),
            )

        self._invalidate(clinic.id)
        logger.info(f"Clinic {clinic.id} updated by {actor_id}: {sorted(data)}")
        self.events.emit(event_service.CLINIC_UPDATED, {
            "clinic_id": clinic.id,
            "user_id": actor_id,
            "fields": sorted(data),
        })

        return self._build_detail(db, clinic)

    def delete(self, db: Session, clinic_id: str, actor_id: Optional[str]) -> None:
        """
        Soft delete a clinic (active=False, deleted_at=now).

        Raises:
            HTTPException: 404 if the clinic does not exist,
                400 if future scheduled or confirmed appointments exist
        """
        clinic = self._get_clinic(db, clinic_id)

        blocking = self._count_blocking_appointments(db, Appointment.clinic_id == clinic.id)
        if blocking > 0:
            raise _bad_request(
                f"Não é possível remover a clínica. Existem {blocking} consultas agendadas."
            )

        old_values = AuditService.snapshot(clinic)
        clinic.active = False
        clinic.deleted_at = brazil_now()

        with self._write(db):
            db.flush()
            AuditService.log(
                db,
                AuditAction.DELETE,
                resource="clinic",
                resource_id=clinic.id,
                user_id=actor_id,
                description="Clínica removida (soft delete)",
                old_values=old_values,
            )

        self._invalidate(clinic.id)
        logger.info(f"Clinic {clinic.id} soft deleted by {actor_id}")
        self.events.emit(event_service.CLINIC_DELETED, {"clinic_id": clinic.id, "user_id": actor_id})

    # ===== Doctor memberships =====

    def add_doctor(
        self, db: Session, clinic_id: str, dto: AddDoctorRequest, actor_id: Optional[str]
    ) -> ClinicDoctorResponse:
        """
        Link a doctor to a clinic.

        Specialties default to the doctor's own when not overridden.

        Raises:
            HTTPException: 404 if clinic or doctor is missing, 409 if already linked
        """
        clinic = self._get_clinic(db, clinic_id)

        doctor = db.query(Doctor).filter(Doctor.id == dto.doctor_id).first()
        if not doctor:
            raise _not_found("Médico não encontrado")

        existing = db.query(ClinicDoctor).filter(
            ClinicDoctor.clinic_id == clinic.id,
            ClinicDoctor.doctor_id == doctor.id,
        ).first()
        if existing:
            raise _conflict("Médico já vinculado a esta clínica")

        membership = ClinicDoctor(
            clinic_id=clinic.id,
            doctor_id=doctor.id,
            is_primary=dto.is_primary,
            specialties_at_clinic=(
                dto.specialties_at_clinic if dto.specialties_at_clinic is not None
                else list(doctor.specialties or [])
            ),
            working_hours=(
                [w.model_dump() for w in dto.working_hours_at_clinic]
                if dto.working_hours_at_clinic is not None else None
            ),
        )

        with self._write(db):
            db.add(membership)
            db.flush()
            AuditService.log(
                db,
                AuditAction.CREATE,
                resource="clinic_doctor",
                resource_id=membership.id,
                user_id=actor_id,
                description=f"Médico {doctor.full_name} vinculado à clínica",
                new_values={"clinic_id": clinic.id, "doctor_id": doctor.id},
            )

        self._invalidate(clinic.id)
        self.events.emit(event_service.CLINIC_DOCTOR_ADDED, {
            "clinic_id": clinic.id,
            "doctor_id": doctor.id,
            "user_id": actor_id,
        })

        return _clinic_doctor_response(membership)

    def remove_doctor(self, db: Session, clinic_id: str, doctor_id: str, actor_id: Optional[str]) -> None:
        """
        Unlink a doctor from a clinic.

        Raises:
            HTTPException: 404 if the membership does not exist,
                400 if the doctor has future appointments at the clinic
        """
        membership = db.query(ClinicDoctor).options(
            joinedload(ClinicDoctor.doctor)
        ).filter(
            ClinicDoctor.clinic_id == clinic_id,
            ClinicDoctor.doctor_id == doctor_id,
        ).first()
        if not membership:
            raise _not_found("Vínculo não encontrado")

        blocking = self._count_blocking_appointments(
            db,
            Appointment.clinic_id == clinic_id,
            Appointment.doctor_id == doctor_id,
        )
        if blocking > 0:
            raise _bad_request(
                f"Não é possível desvincular o médico. Existem {blocking} consultas agendadas."
            )

        doctor_name = membership.doctor.full_name
        old_values = AuditService.snapshot(membership)

        with self._write(db):
            db.delete(membership)
            AuditService.log(
                db,
                AuditAction.DELETE,
                resource="clinic_doctor",
                resource_id=membership.id,
                user_id=actor_id,
                description=f"Médico {doctor_name} desvinculado da clínica",
                old_values=old_values,
            )

        self._invalidate(clinic_id)
        self.events.emit(event_service.CLINIC_DOCTOR_REMOVED, {
            "clinic_id": clinic_id,
            "doctor_id": doctor_id,
            "user_id": actor_id,
        })

    def get_doctors(self, db: Session, clinic_id: str, query: ClinicDoctorsQuery) -> ClinicDoctorListResponse:
        """Paginated doctor memberships, primary doctors first."""
        self._get_clinic(db, clinic_id)

        memberships = db.query(ClinicDoctor).join(ClinicDoctor.doctor).options(
            contains_eager(ClinicDoctor.doctor)
        ).filter(ClinicDoctor.clinic_id == clinic_id)

        if query.specialty:
            memberships = memberships.filter(
                json_array_contains(ClinicDoctor.specialties_at_clinic, query.specialty, dialect_name(db))
            )

        if query.telemedicine_enabled is not None:
            memberships = memberships.filter(Doctor.telemedicine_enabled == query.telemedicine_enabled)

        total = memberships.count()
        rows = memberships.order_by(
            ClinicDoctor.is_primary.desc(),
            Doctor.full_name.asc(),
        ).offset((query.page - 1) * query.limit).limit(query.limit).all()

        return ClinicDoctorListResponse(
            data=[_clinic_doctor_response(m) for m in rows],
            total=total,
            page=query.page,
            limit=query.limit,
            total_pages=_total_pages(total, query.limit),
        )

    # ===== Patient memberships =====

    def add_patient(
        self, db: Session, clinic_id: str, dto: AddPatientRequest, actor_id: Optional[str]
    ) -> ClinicPatientResponse:
        """
        Add a patient to a clinic's roster.

        Raises:
            HTTPException: 404 if clinic or patient is missing, 409 if already linked
        """
        clinic = self._get_clinic(db, clinic_id)

        patient = db.query(Patient).filter(Patient.id == dto.patient_id).first()
        if not patient:
            raise _not_found("Paciente não encontrado")

        existing = db.query(ClinicPatient).filter(
            ClinicPatient.clinic_id == clinic.id,
            ClinicPatient.patient_id == patient.id,
        ).first()
        if existing:
            raise _conflict("Paciente já vinculado a esta clínica")

        membership = ClinicPatient(
            clinic_id=clinic.id,
            patient_id=patient.id,
            medical_record_number=dto.medical_record_number,
        )

        with self._write(db):
            db.add(membership)
            db.flush()
            AuditService.log(
                db,
                AuditAction.CREATE,
                resource="clinic_patient",
                resource_id=membership.id,
                user_id=actor_id,
                description=f"Paciente {patient.full_name} vinculado à clínica",
                new_values={"clinic_id": clinic.id, "patient_id": patient.id},
            )

        self._invalidate(clinic.id)
        self.events.emit(event_service.CLINIC_PATIENT_ADDED, {
            "clinic_id": clinic.id,
            "patient_id": patient.id,
            "user_id": actor_id,
        })

        return _clinic_patient_response(membership)

    def get_patients(self, db: Session, clinic_id: str, query: ClinicPatientsQuery) -> ClinicPatientListResponse:
        """Paginated patient roster; search matches name or CPF digits."""
        self._get_clinic(db, clinic_id)

        memberships = db.query(ClinicPatient).join(ClinicPatient.patient).options(
            contains_eager(ClinicPatient.patient)
        ).filter(ClinicPatient.clinic_id == clinic_id)

        if query.search and query.search.strip():
            term = query.search.strip()
            conditions = [Patient.full_name.ilike(_like_pattern(term), escape="\\")]
            digits = normalize_digits(term)
            if digits:
                conditions.append(Patient.cpf.contains(digits, autoescape=True))
            memberships = memberships.filter(or_(*conditions))

        sort_column = Patient.full_name if query.sort_by == "full_name" else ClinicPatient.created_at
        order = sort_column.desc() if query.sort_order == "desc" else sort_column.asc()

        total = memberships.count()
        rows = memberships.order_by(order, ClinicPatient.id.asc()).offset(
            (query.page - 1) * query.limit
        ).limit(query.limit).all()

        return ClinicPatientListResponse(
            data=[_clinic_patient_response(m) for m in rows],
            total=total,
            page=query.page,
            limit=query.limit,
            total_pages=_total_pages(total, query.limit),
        )

    # ===== Rooms =====

    def add_room(
        self, db: Session, clinic_id: str, dto: RoomCreateRequest, actor_id: Optional[str]
    ) -> RoomResponse:
        """
        Create a room under a clinic.

        Name uniqueness within the clinic is enforced by the database
        constraint; a duplicate surfaces as 409.
        """
        clinic = self._get_clinic(db, clinic_id)

        room = Room(clinic_id=clinic.id, **dto.model_dump())

        with self._write(db):
            db.add(room)
            db.flush()
            AuditService.log(
                db,
                AuditAction.CREATE,
                resource="room",
                resource_id=room.id,
                user_id=actor_id,
                description=f"Sala {room.name} criada",
                new_values=AuditService.snapshot(room),
            )

        self._invalidate(clinic.id)
        self.events.emit(event_service.CLINIC_ROOM_ADDED, {
            "clinic_id": clinic.id,
            "room_id": room.id,
            "user_id": actor_id,
        })
        return _room_response(room)

    def get_rooms(self, db: Session, clinic_id: str, active: Optional[bool] = None) -> List[RoomResponse]:
        self._get_clinic(db, clinic_id)

        rooms = db.query(Room).filter(Room.clinic_id == clinic_id)
        if active is not None:
            rooms = rooms.filter(Room.active == active)

        return [_room_response(r) for r in rooms.order_by(Room.name.asc()).all()]

    @staticmethod
    def _get_room(db: Session, clinic_id: str, room_id: str) -> Room:
        room = db.query(Room).filter(Room.id == room_id, Room.clinic_id == clinic_id).first()
        if not room:
            raise _not_found("Sala não encontrada")
        return room

    def update_room(
        self, db: Session, clinic_id: str, room_id: str, dto: RoomUpdateRequest, actor_id: Optional[str]
    ) -> RoomResponse:
        """Partial room update. Renaming onto another room's name surfaces as 409."""
        room = self._get_room(db, clinic_id, room_id)

        data = dto.model_dump(exclude_unset=True)
        old_values = AuditService.snapshot(room)

        for field, value in data.items():
            if value is None and field in _ROOM_REQUIRED_FIELDS:
                continue
            setattr(room, field, value)

        with self._write(db):
            db.flush()
            AuditService.log(
                db,
                AuditAction.UPDATE,
                resource="room",
                resource_id=room.id,
                user_id=actor_id,
                description=f"Sala {room.name} atualizada",
                old_values=old_values,
                new_values=AuditService.snapshot(room),
            )

        self._invalidate(clinic_id)
        self.events.emit(event_service.CLINIC_ROOM_UPDATED, {
            "clinic_id": clinic_id,
            "room_id": room.id,
            "user_id": actor_id,
        })
        return _room_response(room)

    def delete_room(self, db: Session, clinic_id: str, room_id: str, actor_id: Optional[str]) -> None:
        """
        Deactivate a room (rooms are never hard deleted).

        Raises:
            HTTPException: 404 if the room is not in the clinic,
                400 if future appointments are booked in it
        """
        room = self._get_room(db, clinic_id, room_id)

        blocking = self._count_blocking_appointments(db, Appointment.room_id == room.id)
        if blocking > 0:
            raise _bad_request(
                f"Não é possível remover a sala. Existem {blocking} consultas agendadas."
            )

        room.active = False

        with self._write(db):
            db.flush()
            AuditService.log(
                db,
                AuditAction.DELETE,
                resource="room",
                resource_id=room.id,
                user_id=actor_id,
                description=f"Sala {room.name} desativada",
            )

        self._invalidate(clinic_id)
        self.events.emit(event_service.CLINIC_ROOM_DEACTIVATED, {
            "clinic_id": clinic_id,
            "room_id": room.id,
            "user_id": actor_id,
        })

    # ===== Statistics =====

    def get_stats(self, db: Session, clinic_id: str, query: ClinicStatsQuery) -> ClinicStatsResponse:
        """
        Appointment and roster statistics over an inclusive date range.

        Without a range every appointment (and every patient membership, for
        ``new_patients``) is counted. Average wait and consultation times are
        computed from check-in/start/completion timestamps and are None when
        no appointment carries them.
        """
        self._get_clinic(db, clinic_id)

        range_criteria = [Appointment.clinic_id == clinic_id]
        new_patient_criteria = [ClinicPatient.clinic_id == clinic_id]
        if query.start_date:
            range_criteria.append(Appointment.scheduled_date >= start_of_day(query.start_date))
            new_patient_criteria.append(ClinicPatient.created_at >= start_of_day(query.start_date))
        if query.end_date:
            range_criteria.append(Appointment.scheduled_date <= end_of_day(query.end_date))
            new_patient_criteria.append(ClinicPatient.created_at <= end_of_day(query.end_date))

        by_status = dict(
            db.query(Appointment.status, func.count(Appointment.id))
            .filter(*range_criteria)
            .group_by(Appointment.status)
            .all()
        )
        total_appointments = sum(by_status.values())
        completed = by_status.get(AppointmentStatus.COMPLETED.value, 0)

        telemedicine = db.query(func.count(Appointment.id)).filter(
            *range_criteria, Appointment.is_telemedicine == True
        ).scalar() or 0

        total_patients = db.query(func.count(ClinicPatient.id)).filter(
            ClinicPatient.clinic_id == clinic_id
        ).scalar() or 0
        new_patients = db.query(func.count(ClinicPatient.id)).filter(*new_patient_criteria).scalar() or 0
        active_doctors = db.query(func.count(ClinicDoctor.id)).filter(
            ClinicDoctor.clinic_id == clinic_id
        ).scalar() or 0

        timings = db.query(
            Appointment.checked_in_at, Appointment.started_at, Appointment.completed_at
        ).filter(*range_criteria, Appointment.started_at.isnot(None)).all()

        waits = [m for m in (minutes_between(c, s) for c, s, _ in timings) if m is not None]
        durations = [m for m in (minutes_between(s, e) for _, s, e in timings) if m is not None]

        return ClinicStatsResponse(
            total_appointments=total_appointments,
            completed_appointments=completed,
            cancelled_appointments=by_status.get(AppointmentStatus.CANCELLED.value, 0),
            no_show_appointments=by_status.get(AppointmentStatus.NO_SHOW.value, 0),
            telemedicine_appointments=telemedicine,
            total_patients=total_patients,
            new_patients=new_patients,
            active_doctors=active_doctors,
            occupancy_rate=_rounded_percent(completed, total_appointments),
            average_wait_time=round(sum(waits) / len(waits), 1) if waits else None,
            average_consultation_duration=round(sum(durations) / len(durations), 1) if durations else None,
            start_date=query.start_date,
            end_date=query.end_date,
        )
