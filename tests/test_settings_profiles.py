from __future__ import annotations

from taskboard.core.config import Settings


def test_environment_profiles_apply_defaults() -> None:
    dev = Settings(environment="development")
    assert dev.environment == "development"
    assert dev.log_level == "DEBUG"
    assert dev.reload is True
    assert dev.session_https_only is False

    test_profile = Settings(environment="test")
    assert test_profile.log_level == "WARNING"
    assert test_profile.reload is False
    assert test_profile.create_tables_on_startup is True

    ci_profile = Settings(environment="ci")
    assert ci_profile.log_level == "INFO"
    assert ci_profile.create_tables_on_startup is False
    assert ci_profile.session_https_only is True


def test_environment_aliases_are_normalised() -> None:
    assert Settings(environment="DEV").environment == "development"
    assert Settings(environment="testing").environment == "test"


def test_environment_profile_respects_explicit_overrides(monkeypatch) -> None:
    monkeypatch.setenv("TASKBOARD_LOG_LEVEL", "error")
    overridden = Settings(environment="test")
    assert overridden.log_level == "ERROR"

    origins = Settings(cors_allow_origins="http://a.example.com, http://b.example.com").cors_allow_origins
    assert origins == ["http://a.example.com", "http://b.example.com"]


def test_invalid_page_size_falls_back(monkeypatch) -> None:
    monkeypatch.setenv("TASKBOARD_DEFAULT_PAGE_SIZE", "0")
    assert Settings().default_page_size == 10


def test_api_prefix_is_normalised() -> None:
    assert Settings(api_prefix="api/").normalized_api_prefix == "/api"
    assert Settings(api_prefix="/").normalized_api_prefix == ""
