# pyright: reportMissingTypeStubs=false
"""
Room management API endpoints.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from api.clinics.dependencies import get_clinic_service
from auth.dependencies import UserContext
from auth.permissions import CLINIC_ADMINS, STAFF_ROLES, require_roles
from core.database import get_db
from services.clinic_service import ClinicService
from shared_types.clinic import RoomCreateRequest, RoomResponse, RoomUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{clinic_id}/rooms", summary="List clinic rooms")
async def list_rooms(
    clinic_id: UUID,
    active: Optional[bool] = Query(None),
    current_user: UserContext = Depends(require_roles(*STAFF_ROLES)),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> List[RoomResponse]:
    """Get the clinic's rooms ordered by name."""
    return service.get_rooms(db, str(clinic_id), active=active)


@router.post("/{clinic_id}/rooms", summary="Create a room", status_code=status.HTTP_201_CREATED)
async def create_room(
    clinic_id: UUID,
    request: RoomCreateRequest,
    current_user: UserContext = Depends(require_roles(*CLINIC_ADMINS)),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> RoomResponse:
    try:
        return service.add_room(db, str(clinic_id), request, current_user.user_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to create room for clinic {clinic_id}: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível criar a sala"
        )


@router.put("/{clinic_id}/rooms/{room_id}", summary="Update a room")
async def update_room(
    clinic_id: UUID,
    room_id: UUID,
    request: RoomUpdateRequest,
    current_user: UserContext = Depends(require_roles(*CLINIC_ADMINS)),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> RoomResponse:
    try:
        return service.update_room(db, str(clinic_id), str(room_id), request, current_user.user_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to update room {room_id}: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível atualizar a sala"
        )


@router.delete("/{clinic_id}/rooms/{room_id}", summary="Deactivate a room", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    clinic_id: UUID,
    room_id: UUID,
    current_user: UserContext = Depends(require_roles(*CLINIC_ADMINS)),
    db: Session = Depends(get_db),
    service: ClinicService = Depends(get_clinic_service),
) -> None:
    """Deactivate a room. Blocked while future appointments are booked in it."""
    try:
        service.delete_room(db, str(clinic_id), str(room_id), current_user.user_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to deactivate room {room_id}: {e}")
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível desativar a sala"
        )
