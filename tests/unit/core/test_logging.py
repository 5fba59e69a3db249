"""
Tests for structured request logging and PII masking.
"""

import json
import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from core.middleware.logging import (
    RequestIdFilter,
    StructuredFormatter,
    StructuredLoggingMiddleware,
    get_client_ip,
    mask_headers,
    mask_path,
    mask_sensitive_data,
    request_id_var,
)


def _request(headers=None, client=("203.0.113.57", 5000)):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestMaskPath:
    """Candidate tokens in URLs are credentials."""

    @pytest.mark.parametrize("path,expected", [
        ("/api/candidate/interview/INT_abc123/answer", "/api/candidate/interview/[TOKEN]/answer"),
        ("/api/screening/verify/SCR_xyz", "/api/screening/verify/[TOKEN]"),
        ("/api/screening/submit/SCR_xyz", "/api/screening/submit/[TOKEN]"),
        ("/api/drive/register/REG_abc", "/api/drive/register/[TOKEN]"),
        ("/api/drive/test/TEST_abc/submit", "/api/drive/test/[TOKEN]/submit"),
        ("/api/jobs/12", "/api/jobs/12"),
    ])
    def test_masking(self, path, expected):
        assert mask_path(path) == expected


class TestMaskSensitiveData:

    def test_sensitive_keys_are_redacted(self):
        data = {"token": "INT_x", "api_key": "k", "name": "Ravi"}
        assert mask_sensitive_data(data) == {"token": "[REDACTED]", "api_key": "[REDACTED]", "name": "Ravi"}

    def test_pii_in_values_is_masked(self):
        data = {"notes": ["reach me at ravi@acme.io or +91 98765 43210"]}
        masked = mask_sensitive_data(data)
        assert masked == {"notes": ["reach me at [EMAIL] or [PHONE]"]}

    def test_depth_limit(self):
        data: dict = {}
        node = data
        for _ in range(15):
            node["child"] = {}
            node = node["child"]
        assert "[MAX_DEPTH_EXCEEDED]" in json.dumps(mask_sensitive_data(data))


class TestMaskHeaders:

    def test_authorization_keeps_scheme(self):
        masked = mask_headers({"Authorization": "Bearer abc", "cookie": "s=1", "accept": "*/*"})
        assert masked == {"Authorization": "Bearer [REDACTED]", "cookie": "[REDACTED]", "accept": "*/*"}


class TestClientIp:

    def test_last_octet_masked(self):
        assert get_client_ip(_request()) == "203.0.113.xxx"

    def test_forwarded_for_wins(self):
        request = _request({"x-forwarded-for": "198.51.100.9, 10.0.0.1"})
        assert get_client_ip(request) == "198.51.100.xxx"

    def test_non_ipv4(self):
        assert get_client_ip(_request(client=("::1", 5000))) == "unknown"


class TestStructuredLoggingMiddleware:
    """Request lines are JSON and never contain raw tokens."""

    @pytest.fixture
    def client(self):
        app = FastAPI()
        app.add_middleware(StructuredLoggingMiddleware)

        @app.get("/api/candidate/interview/{token}")
        async def interview(token: str):
            return {"ok": True}

        @app.get("/health")
        async def health():
            return {"status": "healthy"}

        return TestClient(app)

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"x-request-id": "abc-123"})
        assert response.headers["x-request-id"] == "abc-123"

    def test_request_id_is_generated(self, client):
        response = client.get("/api/candidate/interview/INT_secret")
        assert response.headers["x-request-id"]

    def test_token_never_logged(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="core.middleware.logging"):
            client.get("/api/candidate/interview/INT_supersecretvalue")

        records = [r for r in caplog.records if r.name == "core.middleware.logging"]
        assert len(records) == 2
        assert all("INT_supersecretvalue" not in r.getMessage() for r in records)
        started = json.loads(records[0].getMessage())
        assert started["event"] == "request_started"
        assert started["path"] == "/api/candidate/interview/[TOKEN]"


class TestStructuredFormatter:

    def test_json_line(self):
        record = logging.LogRecord("hirestage", logging.WARNING, __file__, 1, "offer %s", ("sent",), None)
        payload = json.loads(StructuredFormatter().format(record))
        assert payload["level"] == "WARNING"
        assert payload["message"] == "offer sent"
        assert payload["logger"] == "hirestage"


class TestRequestIdFilter:

    def test_stamps_current_request_id(self):
        record = logging.LogRecord("api.services.offers", logging.INFO, __file__, 1, "queued", (), None)
        token = request_id_var.set("req-42")
        try:
            RequestIdFilter().filter(record)
        finally:
            request_id_var.reset(token)

        assert record.request_id == "req-42"
        assert json.loads(StructuredFormatter().format(record))["request_id"] == "req-42"

    def test_outside_a_request(self):
        record = logging.LogRecord("workers", logging.INFO, __file__, 1, "idle", (), None)
        RequestIdFilter().filter(record)
        assert record.request_id is None
        assert "request_id" not in json.loads(StructuredFormatter().format(record))
