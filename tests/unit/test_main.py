"""
Unit tests for main FastAPI application.

Tests the root endpoints, health checks, lifespan and global exception handlers.
"""

import json

import pytest
from unittest.mock import Mock
from fastapi.testclient import TestClient
from fastapi import Request
from sqlalchemy.exc import IntegrityError

from main import (
    CLINIC_EVENTS,
    app,
    root,
    health_check,
    global_exception_handler,
    integrity_error_handler,
    log_domain_event,
    value_error_handler,
)
from services.event_service import event_bus


class TestRootEndpoints:
    """Test root API endpoints."""

    def test_root_endpoint(self):
        """Test the root endpoint returns correct information."""
        client = TestClient(app)
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "HealthFlow Clinic API"
        assert data["version"] == "1.0.0"
        assert data["status"] == "running"

    def test_health_endpoint(self):
        client = TestClient(app)
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_root_function_directly(self):
        result = await root()
        assert result["message"] == "HealthFlow Clinic API"

    @pytest.mark.asyncio
    async def test_health_check_function_directly(self):
        assert await health_check() == {"status": "healthy"}

    def test_clinic_routes_mounted(self):
        paths = {route.path for route in app.routes}
        assert "/api/clinics" in paths
        assert "/api/clinics/{clinic_id}" in paths
        assert "/api/clinics/{clinic_id}/doctors/{doctor_id}" in paths
        assert "/api/clinics/{clinic_id}/rooms/{room_id}" in paths
        assert "/api/clinics/{clinic_id}/stats" in paths

    def test_requires_authentication(self):
        client = TestClient(app)
        response = client.get("/api/clinics")
        assert response.status_code == 401


class TestLifespan:
    """Test startup and shutdown wiring."""

    def test_event_logger_subscribed_during_lifespan(self):
        with TestClient(app):
            assert log_domain_event in event_bus._handlers[CLINIC_EVENTS[0]]
        assert log_domain_event not in event_bus._handlers[CLINIC_EVENTS[0]]


class TestExceptionHandlers:
    """Test global exception handlers."""

    @pytest.mark.asyncio
    async def test_global_exception_handler(self):
        response = await global_exception_handler(Mock(spec=Request), Exception("boom"))

        assert response.status_code == 500
        assert json.loads(response.body) == {"detail": "Erro interno do servidor", "type": "internal_error"}

    @pytest.mark.asyncio
    async def test_value_error_handler(self):
        response = await value_error_handler(Mock(spec=Request), ValueError("Valor inválido"))

        assert response.status_code == 400
        assert json.loads(response.body) == {"detail": "Valor inválido", "type": "validation_error"}

    @pytest.mark.asyncio
    async def test_integrity_error_handler(self):
        exc = IntegrityError("INSERT INTO rooms", {}, Exception("UNIQUE constraint failed"))
        response = await integrity_error_handler(Mock(spec=Request), exc)

        assert response.status_code == 409
        assert json.loads(response.body)["type"] == "conflict"
