# pyright: reportMissingTypeStubs=false
"""
Clinic API endpoints: listing, lookup, lifecycle and statistics.
"""

import logging
from datetime import date
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from api.clinics.dependencies import get_clinic_service
from auth.dependencies import UserContext
from auth.permissions import ALL_ROLES, CLINIC_ADMINS, require_roles
from auth.roles import UserRole
from core.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, MIN_SEARCH_RADIUS_KM, MAX_SEARCH_RADIUS_KM
from core.database import get_db
from services.clinic_service import ClinicService
from shared_types.clinic import (
    ClinicCreateRequest,
    ClinicDetailResponse,
    ClinicListResponse,
    ClinicQuery,
    ClinicStatsQuery,
    ClinicStatsResponse,
    ClinicUpdateRequest,
    CnpjLookupResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", summary="List clinics")
async def list_clinics(
    page: int = Query(DEFAULT_PAGE, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, description="Trade/legal name, CNPJ digits or CNES"),
    city: Optional[str] = Query(None),
    state: Optional[str] = Query(None, min_length=2, max_length=2),
    active: Optional[bool] = Query(None),
    has_telemedicine: Optional[bool] = Query(None),
    has_online_booking: Optional[bool] = Query(None),
    sort_by: Literal["trade_name", "legal_name", "created_at", "updated_at"] = Query("trade_name"),
    sort_order: Literal["asc", "desc"] = Query("asc"),
    include_deleted: bool = Query(False),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: Optional[float] = Query(None, ge=MIN_SEARCH_RADIUS_KM, le=MAX_SEARCH_RADIUS_KM, description="km"),
    current_user: UserContext = Depends(require_roles(*ALL_ROLES)),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> ClinicListResponse:
    """List clinics with filters, sorting and pagination."""
    try:
        query = ClinicQuery(
            page=page,
            limit=limit,
            search=search,
            city=city,
            state=state,
            active=active,
            has_telemedicine=has_telemedicine,
            has_online_booking=has_online_booking,
            sort_by=sort_by,
            sort_order=sort_order,
            include_deleted=include_deleted,
            lat=lat,
            lng=lng,
            radius=radius,
        )
        return service.find_all(db, query)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to list clinics: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível listar as clínicas"
        )


@router.get("/cnpj/{cnpj}", summary="Look up a clinic by CNPJ")
async def get_clinic_by_cnpj(
    cnpj: str,
    current_user: UserContext = Depends(require_roles(*CLINIC_ADMINS)),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> CnpjLookupResponse:
    """Return whether a CNPJ is registered, with the clinic when it is."""
    return service.lookup_cnpj(db, cnpj)


@router.get("/{clinic_id}", summary="Get clinic details")
async def get_clinic(
    clinic_id: UUID,
    current_user: UserContext = Depends(require_roles(*ALL_ROLES)),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> ClinicDetailResponse:
    """Get a clinic with its doctors, rooms and counts."""
    return service.find_by_id(db, str(clinic_id))


@router.post("", summary="Create a clinic", status_code=status.HTTP_201_CREATED)
async def create_clinic(
    request: ClinicCreateRequest,
    current_user: UserContext = Depends(require_roles(UserRole.SUPER_ADMIN)),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> ClinicDetailResponse:
    """Register a clinic, optionally with its initial rooms."""
    try:
        return service.create(db, request, current_user.user_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to create clinic: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível cadastrar a clínica"
        )


@router.put("/{clinic_id}", summary="Update a clinic")
async def update_clinic(
    clinic_id: UUID,
    request: ClinicUpdateRequest,
    current_user: UserContext = Depends(require_roles(*CLINIC_ADMINS)),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> ClinicDetailResponse:
    """Partially update a clinic; omitted fields are kept."""
    try:
        return service.update(db, str(clinic_id), request, current_user.user_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to update clinic {clinic_id}: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível atualizar a clínica"
        )


@router.delete("/{clinic_id}", summary="Remove a clinic", status_code=status.HTTP_204_NO_CONTENT)
async def delete_clinic(
    clinic_id: UUID,
    current_user: UserContext = Depends(require_roles(UserRole.SUPER_ADMIN)),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> None:
    """Soft delete a clinic. Blocked while future appointments exist."""
    try:
        service.delete(db, str(clinic_id), current_user.user_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to delete clinic {clinic_id}: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível remover a clínica"
        )


@router.get("/{clinic_id}/stats", summary="Get clinic statistics")
async def get_clinic_stats(
    clinic_id: UUID,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: UserContext = Depends(
        require_roles(UserRole.SUPER_ADMIN, UserRole.CLINIC_ADMIN, UserRole.DOCTOR)
    ),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> ClinicStatsResponse:
    """Appointment and roster statistics, optionally restricted to a date range."""
    try:
        query = ClinicStatsQuery(start_date=start_date, end_date=end_date)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.errors()[0]["msg"]
        )
    return service.get_stats(db, str(clinic_id), query)
