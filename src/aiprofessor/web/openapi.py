from datetime import datetime
from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="AI Professor API",
            version="0.1.0",
            summary="Summaries and exam questions generated from lecture PDFs",
            routes=app.routes,
        )

        # Add security schemes
        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Token returned by the login endpoint",
            },
        }

        # Apply security globally (will be overridden for public endpoints)
        openapi_schema["security"] = [{"BearerAuth": []}]

        # Remove security from public endpoints
        public_endpoints = {
            ("POST", "/api/auth/login"),
            ("GET", "/health"),
        }

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in public_endpoints:
                    # Mark as public endpoint (no security required)
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ApiModel(BaseModel):
    """Base for request and response bodies: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(ApiModel):
    """Standard error response format."""

    timestamp: datetime = Field(..., description="When the error occurred")
    status: int = Field(..., description="HTTP status code")
    error: str = Field(..., description="HTTP reason phrase")
    message: str = Field(..., description="Human-readable error message")
    path: str = Field(..., description="Request path")
    details: dict[str, Any] | None = Field(None, description="Machine-readable details, e.g. maxSessions or maxSizeBytes")

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "timestamp": "2025-01-01T12:00:00+00:00",
                    "status": 409,
                    "error": "Conflict",
                    "message": "Already logged in on another device. Log out there and try again.",
                    "path": "/api/auth/login",
                    "details": {"maxSessions": 1, "reason": "concurrent session limit"},
                },
                {
                    "timestamp": "2025-01-01T12:00:00+00:00",
                    "status": 401,
                    "error": "Unauthorized",
                    "message": "Invalid username or password",
                    "path": "/api/auth/login",
                },
            ]
        },
    )
