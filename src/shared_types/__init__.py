"""
Shared type definitions for the HealthFlow clinic API.

This module contains the pydantic models shared by the clinic service and routers.
"""
