"""Application constants and configuration values."""

from core.config import FRONTEND_URL

# Database field lengths
MAX_STRING_LENGTH = 255

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
_CORS_ORIGINS_RAW = [
    "http://localhost:3000",      # Next.js dashboard dev server
    FRONTEND_URL,
]

# Filter out None values and empty strings to avoid CORS errors
CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]

# Pagination
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Clinic cache
CLINIC_CACHE_PREFIX = "clinic:"

# Sorting: public field name -> model attribute
CLINIC_SORT_FIELDS = {
    "trade_name": "trade_name",
    "legal_name": "legal_name",
    "created_at": "created_at",
    "updated_at": "updated_at",
}

# Appointment statuses that block destructive operations when scheduled in the future
BLOCKING_APPOINTMENT_STATUSES = ("SCHEDULED", "CONFIRMED")

# Geographic search
MIN_SEARCH_RADIUS_KM = 1
MAX_SEARCH_RADIUS_KM = 100
EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LATITUDE = 111.32
