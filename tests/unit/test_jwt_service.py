"""
Unit tests for JWT service.
"""

from datetime import datetime, timedelta, timezone

import jwt

from core.config import JWT_SECRET_KEY
from services.jwt_service import JWTService, TokenPayload


def _payload() -> TokenPayload:
    return TokenPayload(
        sub="5d7a1c2e-0000-4000-8000-000000000001",
        email="admin@healthflow.test",
        role="SUPER_ADMIN",
        name="Admin",
    )


class TestJWTService:
    """Test token creation and verification."""

    def test_create_and_verify(self):
        token = JWTService.create_access_token(_payload())

        payload = JWTService.verify_token(token)

        assert payload is not None
        assert payload.sub == "5d7a1c2e-0000-4000-8000-000000000001"
        assert payload.role == "SUPER_ADMIN"
        assert payload.exp > payload.iat

    def test_expired_token(self):
        token = JWTService.create_access_token(_payload(), expires_delta=timedelta(seconds=-1))
        assert JWTService.verify_token(token) is None

    def test_wrong_signature(self):
        token = jwt.encode(
            {"sub": "x", "email": "a@b.c", "role": "PATIENT", "name": "X"},
            "another-secret",
            algorithm="HS256",
        )
        assert JWTService.verify_token(token) is None

    def test_garbage_token(self):
        assert JWTService.verify_token("not.a.token") is None

    def test_token_signed_with_configured_secret(self):
        token = JWTService.create_access_token(_payload())
        decoded = jwt.decode(token, JWT_SECRET_KEY, algorithms=["HS256"])
        assert decoded["email"] == "admin@healthflow.test"

    def test_is_token_expired(self):
        now = datetime.now(timezone.utc)
        assert JWTService.is_token_expired(now - timedelta(seconds=1)) is True
        assert JWTService.is_token_expired(now + timedelta(minutes=5)) is False
