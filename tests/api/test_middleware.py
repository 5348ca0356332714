"""Tests for RequestIDMiddleware."""

import logging
from uuid import UUID

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.testclient import TestClient

from api.middleware import RequestIDMiddleware, MAX_REQUEST_ID_LENGTH


@pytest.fixture
def app():
    """Minimal FastAPI app with RequestIDMiddleware."""
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/echo")
    async def echo(request: Request):
        return JSONResponse({"request_id": request.state.request_id})

    return app


@pytest.fixture
def client(app):
    return TestClient(app)


class TestRequestIDMiddleware:
    """Tests for RequestIDMiddleware."""

    def test_generated_id_is_uuid(self, client):
        response = client.get("/echo")
        UUID(response.headers["X-Request-ID"])

    def test_state_matches_header(self, client):
        response = client.get("/echo")
        assert response.headers["X-Request-ID"] == response.json()["request_id"]

    def test_ids_differ_between_requests(self, client):
        assert client.get("/echo").headers["X-Request-ID"] != client.get("/echo").headers["X-Request-ID"]

    def test_inbound_id_reused(self, client):
        response = client.get("/echo", headers={"X-Request-ID": "proxy-abc-123"})

        assert response.headers["X-Request-ID"] == "proxy-abc-123"
        assert response.json()["request_id"] == "proxy-abc-123"

    def test_oversized_inbound_id_replaced(self, client):
        oversized = "x" * (MAX_REQUEST_ID_LENGTH + 1)

        response = client.get("/echo", headers={"X-Request-ID": oversized})

        UUID(response.headers["X-Request-ID"])

    def test_logs_access_line(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="api.access"):
            client.get("/echo", headers={"X-Request-ID": "log-me"})

        assert any(
            "GET /echo -> 200" in r.getMessage() and "request_id=log-me" in r.getMessage()
            for r in caplog.records
        )
