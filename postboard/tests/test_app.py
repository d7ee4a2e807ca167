"""Tests for app-level concerns: health, middleware headers, configuration."""

import pytest
from pydantic import ValidationError


async def test_health_ok(app_client):
    response = await app_client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["checks"] == {"store": "ok"}


async def test_health_degraded_when_store_unreachable(app_client, mocker):
    mocker.patch(
        "postboard.services.post_store.PostStore.ping", return_value=False
    )

    response = await app_client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"


async def test_request_id_is_generated(app_client):
    response = await app_client.get("/home")
    assert response.headers["X-Request-ID"]


async def test_request_id_is_echoed(app_client):
    response = await app_client.get("/home", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


async def test_security_headers(app_client):
    response = await app_client.get("/home")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["Referrer-Policy"] == "same-origin"


def test_database_url_is_required(monkeypatch, tmp_path):
    from postboard.config import Settings

    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.chdir(tmp_path)  # no .env here

    with pytest.raises(ValidationError):
        Settings()


def test_settings_read_from_environment(monkeypatch, tmp_path):
    from postboard.config import Settings

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///./x.db")
    monkeypatch.setenv("AVATAR_REJECT_ERROR_STATUS", "true")

    settings = Settings()
    assert settings.database_url == "sqlite+aiosqlite:///./x.db"
    assert settings.avatar_reject_error_status is True
    assert settings.bind_port == 3000


def test_request_id_log_filter():
    import logging

    from postboard.middleware import RequestIDLogFilter, request_id_var

    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    token = request_id_var.set("req-1")
    try:
        assert RequestIDLogFilter().filter(record) is True
    finally:
        request_id_var.reset(token)
    assert record.request_id == "req-1"
