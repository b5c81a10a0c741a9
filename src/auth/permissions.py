# pyright: reportMissingTypeStubs=false
from fastapi import Depends, HTTPException, status

from auth.dependencies import UserContext, get_current_user
from auth.roles import UserRole

# Role groups used by the clinic routes
ALL_ROLES = tuple(UserRole)
STAFF_ROLES = (
    UserRole.SUPER_ADMIN,
    UserRole.ADMIN,
    UserRole.CLINIC_ADMIN,
    UserRole.CLINIC_MANAGER,
    UserRole.DOCTOR,
    UserRole.NURSE,
    UserRole.RECEPTIONIST,
)
CLINIC_ADMINS = (UserRole.SUPER_ADMIN, UserRole.CLINIC_ADMIN)


def require_roles(*roles: UserRole):
    """
    Dependency that ensures the user holds one of the given roles.

    Args:
        roles: Roles allowed to access the route

    Returns:
        Dependency function that can be used with FastAPI Depends()
    """
    def dependency(current_user: UserContext = Depends(get_current_user)) -> UserContext:
        if current_user.has_role(*roles):
            return current_user

        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acesso negado: permissão insuficiente"
        )

    return dependency
