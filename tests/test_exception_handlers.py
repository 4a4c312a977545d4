"""Tests for global exception handlers.

Validates that limiter and store errors map to consistent HTTP status codes
and error format, with no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ratewindow.core.errors import (
    AppError,
    InvalidConfigurationError,
    InvalidIdentifiersError,
    StoreError,
    StoreUnavailableError,
)
from ratewindow.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_invalid_identifiers_returns_400_with_details(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-identifiers")
        async def test_endpoint():
            raise InvalidIdentifiersError(
                code="invalid_identifiers",
                message="Identifier set must not be empty",
                details={"hint": "pass at least one identifier"},
            )

        response = client.get("/test-identifiers")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "invalid_identifiers"
        assert data["error"]["details"]["hint"] == "pass at least one identifier"
        assert "request_id" in data["error"]

    @pytest.mark.parametrize("error_cls", [StoreError, StoreUnavailableError])
    def test_store_errors_return_503_without_details(
        self, client: TestClient, app_with_handlers: FastAPI, error_cls
    ):
        @app_with_handlers.get("/test-store")
        async def test_endpoint():
            raise error_cls(
                code="counter_store_unavailable",
                message="Redis unavailable",
                details={"backend": "redis", "key_count": 3},
            )

        response = client.get("/test-store")

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "1"
        assert "details" not in response.json()["error"]

    def test_configuration_error_returns_500(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-config")
        async def test_endpoint():
            raise InvalidConfigurationError(code="redis_missing_url", message="No URL")

        response = client.get("/test-config")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "redis_missing_url"


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_general_exception_handler_never_leaks_internals(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("Unexpected error: redis://:secret@cache:6379")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "secret" not in data["error"]["message"]
        assert "Traceback" not in json.dumps(data)
        assert "request_id" in data["error"]


def test_setup_exception_handlers_registers_handlers(app_with_handlers: FastAPI):
    assert AppError in app_with_handlers.exception_handlers
    assert Exception in app_with_handlers.exception_handlers
