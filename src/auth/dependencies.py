# pyright: reportMissingTypeStubs=false
"""
Authentication dependencies for FastAPI.

Resolves the bearer token into an explicit UserContext that routes pass on
to services as the acting user.
"""

import logging
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from auth.roles import UserRole
from core.database import get_db
from services.jwt_service import jwt_service, TokenPayload
from models import User

logger = logging.getLogger(__name__)


class UserContext:
    """Authenticated user context extracted from JWT token."""

    def __init__(
        self,
        user_id: str,
        email: str,
        role: UserRole,
        name: str,
    ):
        self.user_id = user_id
        self.email = email
        self.role = role
        self.name = name

    def has_role(self, *roles: UserRole) -> bool:
        """Check if user has any of the given roles."""
        return self.role in roles

    def __repr__(self) -> str:
        return f"UserContext(user_id='{self.user_id}', email='{self.email}', role='{self.role.value}')"


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[TokenPayload]:
    """Extract and validate JWT token payload."""
    if not credentials:
        return None

    payload = jwt_service.verify_token(credentials.credentials)

    if not payload:
        return None

    return payload


def get_current_user(
    payload: Optional[TokenPayload] = Depends(get_token_payload),
    db: Session = Depends(get_db)
) -> UserContext:
    """Get authenticated user context from JWT token."""
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciais de autenticação não fornecidas"
        )

    user = db.query(User).filter(User.id == payload.sub).first()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuário não encontrado"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Conta desativada"
        )

    try:
        role = UserRole(user.role)
    except ValueError:
        logger.warning(f"User {user.id} has unknown role {user.role!r}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acesso negado"
        )

    return UserContext(
        user_id=user.id,
        email=user.email,
        role=role,
        name=user.full_name,
    )
