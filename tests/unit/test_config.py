"""
Unit tests for configuration defaults.
"""

import importlib
import os
from unittest.mock import patch

import core.config as config
import core.constants as constants


class TestConfig:
    """Test environment-driven settings."""

    def test_database_url_from_environment(self):
        with patch.dict(os.environ, {"DATABASE_URL": "postgresql://db/healthflow"}):
            assert config.get_database_url() == "postgresql://db/healthflow"

    def test_database_url_default(self):
        with patch.dict(os.environ, {}, clear=True):
            assert config.get_database_url() == "postgresql://localhost/healthflow_dev"

    def test_defaults(self):
        try:
            with patch.dict(os.environ, {}, clear=True):
                reloaded = importlib.reload(config)
                assert reloaded.CLINIC_CACHE_TTL_SECONDS == 3600
                assert reloaded.REDIS_URL == ""
                assert reloaded.DEFAULT_CLINIC_TIMEZONE == "America/Sao_Paulo"
                assert reloaded.JWT_ACCESS_TOKEN_EXPIRE_MINUTES == 60
        finally:
            importlib.reload(config)

    def test_cache_ttl_from_environment(self):
        try:
            with patch.dict(os.environ, {"CLINIC_CACHE_TTL_SECONDS": "120"}):
                reloaded = importlib.reload(config)
                assert reloaded.CLINIC_CACHE_TTL_SECONDS == 120
        finally:
            importlib.reload(config)


class TestConstants:
    """Test application constants."""

    def test_pagination(self):
        assert constants.DEFAULT_PAGE == 1
        assert constants.DEFAULT_PAGE_SIZE == 20
        assert constants.MAX_PAGE_SIZE == 100

    def test_cache_prefix(self):
        assert constants.CLINIC_CACHE_PREFIX == "clinic:"

    def test_blocking_statuses(self):
        assert set(constants.BLOCKING_APPOINTMENT_STATUSES) == {"SCHEDULED", "CONFIRMED"}

    def test_cors_origins_have_no_blanks(self):
        assert all(origin.strip() for origin in constants.CORS_ORIGINS)
