# pyright: reportMissingTypeStubs=false
"""
HealthFlow Clinic API

A FastAPI application providing clinic lifecycle and membership management
for the HealthFlow clinic-management platform.

Features:
- Clinic registration, update and soft deletion
- Doctor and patient memberships, room management
- Clinic statistics
- PostgreSQL database with SQLAlchemy ORM
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.clinics import clinics_router, members_router, rooms_router
from core.constants import CORS_ORIGINS
from services import event_service
from services.event_service import DomainEvent, event_bus

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)
logger.info("🏥 HealthFlow Clinic API starting...")

CLINIC_EVENTS = (
    event_service.CLINIC_CREATED,
    event_service.CLINIC_UPDATED,
    event_service.CLINIC_DELETED,
    event_service.CLINIC_DOCTOR_ADDED,
    event_service.CLINIC_DOCTOR_REMOVED,
    event_service.CLINIC_PATIENT_ADDED,
    event_service.CLINIC_ROOM_ADDED,
    event_service.CLINIC_ROOM_UPDATED,
    event_service.CLINIC_ROOM_DEACTIVATED,
)


def log_domain_event(event: DomainEvent) -> None:
    logger.info(f"📣 {event.name}: {event.payload}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("🚀 Starting HealthFlow Clinic API")

    for name in CLINIC_EVENTS:
        event_bus.subscribe(name, log_domain_event)

    yield

    for name in CLINIC_EVENTS:
        event_bus.unsubscribe(name, log_domain_event)

    logger.info("🛑 Shutting down HealthFlow Clinic API")


# Create FastAPI application
app = FastAPI(
    title="HealthFlow Clinic API",
    description="Clinic lifecycle and membership management",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI
    redoc_url="/redoc",  # ReDoc
    lifespan=lifespan,
)

# CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

_CLINIC_RESPONSES = {
    400: {"description": "Bad request"},
    401: {"description": "Unauthorized"},
    403: {"description": "Forbidden"},
    404: {"description": "Resource not found"},
    409: {"description": "Conflict"},
    500: {"description": "Internal server error"},
}

# Include API routers
app.include_router(
    clinics_router,
    prefix="/api/clinics",
    tags=["clinics"],
    responses=_CLINIC_RESPONSES,
)
app.include_router(
    members_router,
    prefix="/api/clinics",
    tags=["clinic-members"],
    responses=_CLINIC_RESPONSES,
)
app.include_router(
    rooms_router,
    prefix="/api/clinics",
    tags=["clinic-rooms"],
    responses=_CLINIC_RESPONSES,
)


@app.get(
    "/",
    summary="Root endpoint",
    description="Returns basic API information",
)
async def root() -> dict[str, str]:
    """Get API information."""
    return {
        "message": "HealthFlow Clinic API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get(
    "/health",
    summary="Health check",
    description="Returns the health status of the API",
)
async def health_check() -> dict[str, str]:
    """Check if the API is healthy and responding."""
    return {"status": "healthy"}


# Global exception handlers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions globally."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Erro interno do servidor", "type": "internal_error"},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions."""
    logger.warning(f"ValueError: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "type": "validation_error"},
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    """Handle unique-constraint violations that escaped the service layer."""
    logger.warning(f"IntegrityError: {exc.orig}")
    return JSONResponse(
        status_code=409,
        content={"detail": "Registro duplicado", "type": "conflict"},
    )
