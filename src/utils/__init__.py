"""
Utility modules for the HealthFlow clinic API.

This package contains shared utility functions and helpers used across
the application, including datetime utilities, CNPJ validation, geographic
helpers, and database query helpers.
"""

from utils.query_helpers import json_array_contains

__all__ = ['json_array_contains']
