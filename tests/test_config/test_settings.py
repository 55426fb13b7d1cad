"""Tests for application Settings."""

import pytest
from pydantic import ValidationError

from applicant_scoring.config.settings import Settings, get_settings


def test_test_settings(test_settings: Settings) -> None:
    assert test_settings.log_level == "DEBUG"
    assert not test_settings.is_production
    assert str(test_settings.database_url).endswith("/ats_test")


def test_schema_name_validated() -> None:
    with pytest.raises(ValidationError):
        Settings(db_schema="public; DROP TABLE candidates")


def test_env_override(monkeypatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("DB_SCHEMA", "ats")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.is_production
        assert settings.db_schema == "ats"
    finally:
        get_settings.cache_clear()
