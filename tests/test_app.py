from __future__ import annotations

from configs.config import get_config


def test_health_and_security_headers(client):
    response = client.get("/health", headers={"X-Request-ID": "req-42"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "status": "ok"}
    assert response.headers["X-Request-ID"] == "req-42"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Not Found"}


def test_development_overrides_are_merged():
    cfg = get_config()
    assert cfg.DOCS_ENABLED is True
    assert "http://localhost:3000" in cfg.CORS_ORIGINS
    assert cfg.APP_URL == "https://studio.example.com"
    assert cfg.DEFAULT_LANGUAGE == "en"


def test_request_id_filter_stamps_records():
    import logging

    from commons import request_id_ctx
    from logging_config import RequestIdFilter

    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    token = request_id_ctx.set("req-7")
    try:
        assert RequestIdFilter().filter(record) is True
    finally:
        request_id_ctx.reset(token)
    assert record.request_id == "req-7"
    assert request_id_ctx.get() == "-"


def test_generated_request_id_when_header_missing(client):
    assert len(client.get("/health").headers["X-Request-ID"]) == 32
