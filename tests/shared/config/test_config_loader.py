# -*- coding: utf-8 -*-
import pytest

from app.shared.config.config_loader import build_settings, get_settings


def test_loader_returns_dev_by_default(monkeypatch):
    monkeypatch.delenv("PYTHON_ENV", raising=False)
    s = get_settings()
    assert s.is_dev is True
    assert s.python_env == "development"
    assert s.db_auto_create is True


def test_loader_selects_test(monkeypatch):
    monkeypatch.setenv("PYTHON_ENV", "test")
    s = get_settings()
    assert s.is_test is True
    assert s.database_url.startswith("sqlite+aiosqlite")


def test_loader_selects_prod(monkeypatch):
    monkeypatch.setenv("PYTHON_ENV", "production")
    # Mínimos para pasar validaciones de prod
    monkeypatch.setenv("MP_ACCESS_TOKEN", "APP_USR-123-live")
    s = get_settings()
    assert s.is_prod is True
    assert s.log_format == "json"
    assert s.db_auto_create is False


def test_loader_caches_singleton():
    a = get_settings()
    b = get_settings()
    assert a is b


def test_prod_requires_access_token():
    with pytest.raises(ValueError) as ei:
        build_settings("production")
    assert "MP_ACCESS_TOKEN" in str(ei.value)


def test_prod_requires_ssl(monkeypatch):
    monkeypatch.setenv("MP_ACCESS_TOKEN", "APP_USR-123-live")
    monkeypatch.setenv("DB_SSLMODE", "disable")
    with pytest.raises(ValueError) as ei:
        build_settings("production")
    assert "DB_SSLMODE" in str(ei.value)


def test_timeout_must_be_positive(monkeypatch):
    monkeypatch.setenv("MP_TIMEOUT_SEC", "0")
    with pytest.raises(ValueError):
        build_settings("development")


def test_explicit_env_wins_over_python_env(monkeypatch):
    # conftest deja PYTHON_ENV=development
    monkeypatch.setenv("MP_ACCESS_TOKEN", "APP_USR-123-live")
    s = build_settings("production")
    assert s.is_prod is True
    assert s.db_sslmode == "require"

    assert build_settings("test").is_test is True
# Fin del archivo backend/tests/shared/config/test_config_loader.py
