"""
Tests for the exception hierarchy and handlers.

WHY: Every error response is produced from these classes, so status codes
and the sensitive-field filter must be right.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from classroom.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    InsufficientPermissionsError,
    TokenExpiredError,
    ValidationError,
    ResourceNotFoundError,
    ResourceAlreadyExistsError,
    DependentRowsExistError,
    CapacityExceededError,
    ClassNotFoundError,
    UserNotFoundError,
    RateLimitExceeded,
)
from classroom.core.exception_handlers import app_exception_handler, generic_exception_handler


class TestAppException:
    """Test base AppException class."""

    def test_default_message(self):
        exc = AppException()
        assert exc.message == "An unexpected error occurred"
        assert exc.status_code == 500

    def test_custom_status_code(self):
        exc = AppException(status_code=418)
        assert exc.status_code == 418

    def test_context_data(self):
        exc = AppException(user_id="u1", class_id=3)
        assert exc.context == {"user_id": "u1", "class_id": 3}

    def test_to_dict_basic(self):
        result = AppException(message="Test error", class_id=3).to_dict()

        assert result == {
            "error": "AppException",
            "message": "Test error",
            "status_code": 500,
            "details": {"class_id": 3},
        }

    def test_to_dict_filters_sensitive_data(self):
        exc = AppException(
            message="Test error",
            password="secret123",
            token="abc123",
            api_key="key123",
            secret="mysecret",
            regular_field="visible",
        )
        details = exc.to_dict()["details"]

        assert details == {"regular_field": "visible"}

    def test_to_dict_without_context(self):
        assert AppException().to_dict()["details"] is None


class TestStatusCodes:
    """Each error kind maps to its HTTP status."""

    @pytest.mark.parametrize(
        "exc_class,status_code",
        [
            (ValidationError, 400),
            (DependentRowsExistError, 400),
            (CapacityExceededError, 400),
            (AuthenticationError, 401),
            (TokenExpiredError, 401),
            (AuthorizationError, 403),
            (InsufficientPermissionsError, 403),
            (ResourceNotFoundError, 404),
            (ClassNotFoundError, 404),
            (UserNotFoundError, 404),
            (ResourceAlreadyExistsError, 409),
            (RateLimitExceeded, 429),
        ],
    )
    def test_status_code(self, exc_class, status_code):
        assert exc_class().status_code == status_code

    def test_not_found_subclasses_share_base(self):
        assert issubclass(ClassNotFoundError, ResourceNotFoundError)
        assert ClassNotFoundError().message == "Class not found"


class TestExceptionHandlers:
    """Handlers turn exceptions into JSON responses."""

    @pytest.fixture
    def test_client(self):
        app = FastAPI()
        app.add_exception_handler(AppException, app_exception_handler)
        app.add_exception_handler(Exception, generic_exception_handler)

        @app.get("/full")
        async def full():
            raise CapacityExceededError(message="Class is full", class_id=1)

        @app.get("/limited")
        async def limited():
            raise RateLimitExceeded(retry_after=42)

        @app.get("/boom")
        async def boom():
            raise RuntimeError("database password is hunter2")

        return TestClient(app, raise_server_exceptions=False)

    def test_app_exception_response(self, test_client):
        response = test_client.get("/full")

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "CapacityExceededError"
        assert body["message"] == "Class is full"

    def test_rate_limit_sets_retry_after(self, test_client):
        response = test_client.get("/limited")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"

    def test_unexpected_error_is_generic(self, test_client):
        response = test_client.get("/boom")

        assert response.status_code == 500
        assert "hunter2" not in response.text
