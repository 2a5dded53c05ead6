"""Structured error helpers for API responses."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from hiring_core.utils.json import json_safe


def build_error_payload(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = json_safe(details)
    return payload


class AppError(Exception):
    """Application-scoped error for standardized API responses."""

    status_code = 500

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        self.payload = build_error_payload(code, message, details)


class Unauthorized(AppError):
    """No authenticated actor."""

    status_code = 401


class Forbidden(AppError):
    """Authenticated, but lacking the role or ownership the command needs."""

    status_code = 403


class NotFound(AppError):
    """Entity absent, or outside the actor's visible scope (never distinguished)."""

    status_code = 404


class Conflict(AppError):
    """Request incompatible with the entity's current state."""

    status_code = 409


class ValidationFailed(AppError):
    """Malformed input."""

    status_code = 422


class InternalError(AppError):
    """Unexpected failure, typically an aborted transaction."""

    status_code = 500


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload)
