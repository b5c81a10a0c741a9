# pyright: reportMissingTypeStubs=false
"""
Clinic membership API endpoints (doctors and patients).
"""

import logging
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from api.clinics.dependencies import get_clinic_service
from auth.dependencies import UserContext
from auth.permissions import ALL_ROLES, CLINIC_ADMINS, STAFF_ROLES, require_roles
from auth.roles import UserRole
from core.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from core.database import get_db
from services.clinic_service import ClinicService
from shared_types.clinic import (
    AddDoctorRequest,
    AddPatientRequest,
    ClinicDoctorListResponse,
    ClinicDoctorResponse,
    ClinicDoctorsQuery,
    ClinicPatientListResponse,
    ClinicPatientResponse,
    ClinicPatientsQuery,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ===== Doctors =====

@router.get("/{clinic_id}/doctors", summary="List clinic doctors")
async def list_clinic_doctors(
    clinic_id: UUID,
    page: int = Query(DEFAULT_PAGE, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    specialty: Optional[str] = Query(None),
    telemedicine_enabled: Optional[bool] = Query(None),
    current_user: UserContext = Depends(require_roles(*ALL_ROLES)),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> ClinicDoctorListResponse:
    query = ClinicDoctorsQuery(
        page=page,
        limit=limit,
        specialty=specialty,
        telemedicine_enabled=telemedicine_enabled,
    )
    return service.get_doctors(db, str(clinic_id), query)


@router.post("/{clinic_id}/doctors", summary="Link a doctor to a clinic", status_code=status.HTTP_201_CREATED)
async def add_clinic_doctor(
    clinic_id: UUID,
    request: AddDoctorRequest,
    current_user: UserContext = Depends(require_roles(*CLINIC_ADMINS)),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> ClinicDoctorResponse:
    try:
        return service.add_doctor(db, str(clinic_id), request, current_user.user_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to add doctor to clinic {clinic_id}: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível vincular o médico"
        )


@router.delete(
    "/{clinic_id}/doctors/{doctor_id}",
    summary="Unlink a doctor from a clinic",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_clinic_doctor(
    clinic_id: UUID,
    doctor_id: UUID,
    current_user: UserContext = Depends(require_roles(*CLINIC_ADMINS)),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> None:
    """Unlink a doctor. Blocked while the doctor has future appointments at the clinic."""
    try:
        service.remove_doctor(db, str(clinic_id), str(doctor_id), current_user.user_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to remove doctor {doctor_id} from clinic {clinic_id}: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível desvincular o médico"
        )


# ===== Patients =====

@router.get("/{clinic_id}/patients", summary="List clinic patients")
async def list_clinic_patients(
    clinic_id: UUID,
    page: int = Query(DEFAULT_PAGE, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, description="Name or CPF digits"),
    sort_by: Literal["full_name", "created_at"] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    current_user: UserContext = Depends(require_roles(*STAFF_ROLES)),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> ClinicPatientListResponse:
    query = ClinicPatientsQuery(
        page=page,
        limit=limit,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return service.get_patients(db, str(clinic_id), query)


@router.post("/{clinic_id}/patients", summary="Add a patient to a clinic", status_code=status.HTTP_201_CREATED)
async def add_clinic_patient(
    clinic_id: UUID,
    request: AddPatientRequest,
    current_user: UserContext = Depends(
        require_roles(UserRole.SUPER_ADMIN, UserRole.CLINIC_ADMIN, UserRole.RECEPTIONIST)
    ),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> ClinicPatientResponse:
    try:
        return service.add_patient(db, str(clinic_id), request, current_user.user_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to add patient to clinic {clinic_id}: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível vincular o paciente"
        )
