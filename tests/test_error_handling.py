"""
Tests for the error taxonomy and its JSON translation.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from nestify.error_handling import (
    AuthenticationError,
    ConflictError,
    NestifyError,
    PermissionDenied,
    PromoterNotFound,
    PropertyNotFound,
    StoreError,
    UserNotFound,
    ValidationError,
    register_exception_handlers,
)
from nestify.error_handling.handlers import SERVER_ERROR_MESSAGE, error_body


@pytest.mark.parametrize("error,status,code", [
    (PropertyNotFound("p1"), 404, "PROPERTY_NOT_FOUND"),
    (PromoterNotFound("pr1"), 404, "PROMOTER_NOT_FOUND"),
    (UserNotFound("u1"), 404, "USER_NOT_FOUND"),
    (ValidationError("bad"), 400, "VALIDATION_ERROR"),
    (AuthenticationError("no"), 401, "AUTH_UNAUTHORIZED"),
    (AuthenticationError("no", code="AUTH_TOKEN_EXPIRED"), 401, "AUTH_TOKEN_EXPIRED"),
    (PermissionDenied("no"), 403, "AUTH_FORBIDDEN"),
    (ConflictError("taken"), 409, "USER_ALREADY_EXISTS"),
    (StoreError("down"), 500, "DATABASE_ERROR"),
])
def test_error_status_and_code(error, status, code):
    assert isinstance(error, NestifyError)
    assert error.status_code == status
    assert error.code == code


def test_code_override_is_per_instance():
    AuthenticationError("expired", code="AUTH_TOKEN_EXPIRED")

    assert AuthenticationError("other").code == "AUTH_UNAUTHORIZED"


def test_error_body_omits_empty_details():
    assert error_body("X", "msg") == {"success": False, "error": {"code": "X", "message": "msg"}}
    assert error_body("X", "msg", [{"field": "a"}])["error"]["details"] == [{"field": "a"}]


class Payload(BaseModel):
    count: int


def build_app():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/missing")
    async def missing():
        raise PropertyNotFound("p9")

    @app.get("/broken")
    async def broken():
        raise StoreError("connection refused on 10.0.0.5")

    @app.post("/payload")
    async def payload(body: Payload):
        return body

    return app


def test_not_found_is_reported_with_message():
    response = TestClient(build_app()).get("/missing")

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": {"code": "PROPERTY_NOT_FOUND", "message": "Property not found: p9"},
    }


def test_store_failures_hide_internal_details():
    response = TestClient(build_app()).get("/broken")

    assert response.status_code == 500
    assert response.json()["error"] == {"code": "DATABASE_ERROR", "message": SERVER_ERROR_MESSAGE}


def test_request_validation_uses_envelope():
    response = TestClient(build_app()).post("/payload", json={"count": "many"})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"][0]["field"] == "count"
