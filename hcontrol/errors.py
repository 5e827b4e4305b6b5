"""Domain error system + JSON handler registration.

Route handlers raise; the handlers registered here turn every failure into an
``{"error": message, "code": CODE}`` body with the matching status.
"""
from __future__ import annotations

import traceback
import uuid
from typing import Any

from flask import request
from werkzeug.exceptions import HTTPException
from werkzeug.wrappers.response import Response

from .app_authz import AuthzError
from .app_sessions import SessionError
from .http_errors import (
    bad_request,
    error_response,
    forbidden,
    internal_server_error,
    method_not_allowed,
    not_found,
    too_many_requests,
    unauthorized,
)


class DomainError(Exception):
    def __init__(self, status: int, code: str, message: str | None = None, **extra: Any):
        self.status = status
        self.code = code
        self.message = message or code
        self.extra = extra
        super().__init__(self.message)


class ValidationError(DomainError):
    def __init__(self, code: str, message: str | None = None, **extra: Any):
        super().__init__(400, code, message, **extra)


class NotFoundError(DomainError):
    def __init__(self, message: str = "Not found", code: str = "NOT_FOUND", **extra: Any):
        super().__init__(404, code, message, **extra)


class ForbiddenError(DomainError):
    def __init__(self, message: str = "Forbidden", code: str = "FORBIDDEN", **extra: Any):
        super().__init__(403, code, message, **extra)


class RateLimitError(DomainError):
    def __init__(self, retry_after: int):
        super().__init__(429, "RATE_LIMITED", "Too many failed login attempts", retry_after=retry_after)
        self.retry_after = retry_after


def register_error_handlers(app: Any) -> None:  # pragma: no cover - integration path
    @app.errorhandler(SessionError)
    def _h_session(err: SessionError) -> Response:
        return unauthorized(str(err))

    @app.errorhandler(AuthzError)
    def _h_authz(err: AuthzError) -> Response:
        return forbidden(str(err) or "Forbidden", code=err.code)

    @app.errorhandler(RateLimitError)
    def _h_rate_limit(err: RateLimitError) -> Response:
        return too_many_requests(err.message, retry_after=err.retry_after)

    @app.errorhandler(DomainError)
    def _h_domain(err: DomainError) -> Response:
        if err.status == 401:
            return unauthorized(err.message, code=err.code)
        return error_response(err.status, err.message, err.code, err.extra)

    @app.errorhandler(HTTPException)
    def _h_http(ex: HTTPException) -> Response:
        status = ex.code or 500
        if status == 404:
            return not_found("Not found")
        if status == 405:
            return method_not_allowed()
        if status == 400:
            # Malformed JSON bodies land here via request.get_json()
            return bad_request("Invalid request body", code="INVALID_JSON")
        if status >= 500:
            return internal_server_error()
        return error_response(status, ex.description or ex.name, ex.name.upper().replace(" ", "_"))

    @app.errorhandler(Exception)
    def _h_exception(ex: Exception) -> Response:
        incident_id = str(uuid.uuid4())
        app.logger.error(
            "Unhandled exception incident_id=%s path=%s\n%s", incident_id, request.path, traceback.format_exc()
        )
        return internal_server_error(f"Internal server error: {ex}", incident_id=incident_id)


__all__ = [
    "DomainError",
    "ValidationError",
    "NotFoundError",
    "ForbiddenError",
    "RateLimitError",
    "register_error_handlers",
]
