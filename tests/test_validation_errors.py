"""Tests for validation error handling through the response kit."""

from typing import Literal

from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from response_kit import ValidationFailed, install_response_kit, load_settings


class PathParams(BaseModel):
    """Test path parameters with Literal type."""
    action: Literal["start", "stop"]


class RequestPayload(BaseModel):
    """Test request payload."""
    value: int


def create_test_app() -> FastAPI:
    """Application with the response kit installed globally."""
    app = FastAPI()
    install_response_kit(app, load_settings(middleware={"global": True}))

    @app.get("/test/{action}")
    def handle_path_params(action: Literal["start", "stop"]):
        return {"action": action}

    @app.post("/test/body")
    def handle_request_body(payload: RequestPayload):
        return {"value": payload.value}

    @app.post("/signup")
    def signup():
        raise ValidationFailed(
            {"email": ["The email has already been taken.", "The email is too long."], "name": []},
            "The given data was invalid.",
        )

    @app.get("/model")
    def build_model():
        # Raises pydantic.ValidationError inside the handler
        return PathParams(action="jump").model_dump()

    return app


def test_path_param_validation_literal_mismatch():
    """Test that an invalid Literal path param returns a 422 validation envelope."""
    client = TestClient(create_test_app())

    response = client.get("/test/invalid")

    assert response.status_code == 422
    data = response.json()
    assert data["success"] is False
    assert data["message"] == "Validation failed"
    assert set(data["errors"]) == {"action"}
    assert isinstance(data["errors"]["action"], str)


def test_path_param_validation_success():
    """Test that a valid path param is wrapped in a success envelope."""
    client = TestClient(create_test_app())

    response = client.get("/test/start")

    assert response.status_code == 200
    assert response.json()["data"] == {"action": "start"}


def test_request_body_validation_error():
    """Test that an invalid request body returns 422 with one message per field."""
    client = TestClient(create_test_app())

    response = client.post("/test/body", json={"value": "not_an_int"})

    assert response.status_code == 422
    data = response.json()
    assert data["success"] is False
    assert "value" in data["errors"]
    assert "meta" in data


def test_request_body_validation_success():
    """Test that a valid request body returns 200."""
    client = TestClient(create_test_app())

    response = client.post("/test/body", json={"value": 42})

    assert response.status_code == 200
    assert response.json()["data"]["value"] == 42


def test_validation_failed_is_flattened_to_first_message():
    """Test that ValidationFailed keeps the first message per field and its own message."""
    client = TestClient(create_test_app())

    response = client.post("/signup")

    assert response.status_code == 422
    data = response.json()
    assert data["message"] == "The given data was invalid."
    assert data["errors"] == {"email": "The email has already been taken.", "name": ""}


def test_pydantic_validation_error_in_handler_is_a_validation_envelope():
    """Test that a pydantic ValidationError raised by handler code is reported as 422."""
    client = TestClient(create_test_app())

    response = client.get("/model")

    assert response.status_code == 422
    assert "action" in response.json()["errors"]


def test_validation_details_are_shown_without_debug_mode():
    """Test that validation messages are not hidden when debug mode is off."""
    app = FastAPI()
    install_response_kit(app, load_settings(middleware={"global": True}, debug={"show_trace": False}))

    @app.post("/signup")
    def signup():
        raise ValidationFailed({"email": ["Required"]})

    response = TestClient(app).post("/signup")

    assert response.status_code == 422
    assert response.json()["errors"] == {"email": "Required"}
