"""Tests for core.app_config.AppConfig."""

import os
from unittest.mock import patch

from core.app_config import AppConfig

_BASE_ENV = {
    "SHOPIFY_API_VERSION": "2025-01",
    "SHOPIFY_SHOP": "acme",
    "SHOPIFY_ACCESS_TOKEN": "shpat_test",
    "DEFAULT_COUNTRY_CODE": "ca",
    "COMPANY_SCAN_LIMIT": "25",
    "DEBUG": "true",
}


def _load(env_overrides=None):
    env = dict(_BASE_ENV)
    if env_overrides:
        env.update(env_overrides)
    with patch.dict(os.environ, env, clear=True):
        return AppConfig.from_env(env_file="/nonexistent/.env")


def test_from_env_reads_values():
    config = _load()
    assert config.api_version == "2025-01"
    assert config.default_country == "CA"
    assert config.company_scan_limit == 25
    assert config.customer_scan_limit == 250
    assert config.debug is True
    assert config.wholesale_tag == "wholesale"


def test_validate_config_valid_with_env_session():
    assert _load().validate() == []


def test_validate_config_no_sessions():
    config = _load({
        "SHOPIFY_SHOP": "",
        "SHOPIFY_ACCESS_TOKEN": "",
        "SHOPIFY_SESSIONS_FILE": "/nonexistent/sessions.json",
    })
    errors = config.validate()
    assert len(errors) == 1
    assert "No sessions available" in errors[0]


def test_validate_config_shop_without_token():
    config = _load({"SHOPIFY_ACCESS_TOKEN": "", "SHOPIFY_SESSIONS_FILE": "/nonexistent/sessions.json"})
    assert any("set together" in e for e in config.validate())


def test_validate_config_sessions_file(tmp_path):
    sessions_file = tmp_path / "sessions.json"
    sessions_file.write_text("{}")
    config = _load({"SHOPIFY_SHOP": "", "SHOPIFY_ACCESS_TOKEN": "", "SHOPIFY_SESSIONS_FILE": str(sessions_file)})
    assert config.validate() == []


def test_validate_config_bad_limits_and_country():
    config = _load({"COMPANY_SCAN_LIMIT": "0", "DEFAULT_COUNTRY_CODE": "USA"})
    errors = config.validate()
    assert "COMPANY_SCAN_LIMIT must be positive" in errors
    assert "DEFAULT_COUNTRY_CODE must be a two-letter country code" in errors
