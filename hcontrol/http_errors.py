"""Shared JSON error helpers: every failure body is ``{"error": message, "code": CODE}``."""
from __future__ import annotations

from collections.abc import Mapping

from flask import g, jsonify
from werkzeug.wrappers.response import Response


def error_response(status: int, message: str, code: str, extra: Mapping[str, object] | None = None) -> Response:
    payload: dict[str, object] = {"error": message, "code": code}
    for k, v in (extra or {}).items():
        if v is not None:
            payload[k] = v
    resp = jsonify(payload)
    resp.status_code = status
    # Always echo request id header when available
    rid = getattr(g, "request_id", None)
    if rid and "X-Request-Id" not in resp.headers:
        resp.headers["X-Request-Id"] = rid
    return resp


def bad_request(message: str = "Bad request", code: str = "BAD_REQUEST", **extra: object) -> Response:
    return error_response(400, message, code, extra)


def unauthorized(
    message: str = "Unauthorized - Invalid or missing token", code: str = "UNAUTHORIZED", **extra: object
) -> Response:
    resp = error_response(401, message, code, extra)
    resp.headers["WWW-Authenticate"] = "Bearer"
    return resp


def forbidden(message: str = "Forbidden", code: str = "FORBIDDEN", **extra: object) -> Response:
    return error_response(403, message, code, extra)


def not_found(message: str = "Not found", code: str = "NOT_FOUND", **extra: object) -> Response:
    return error_response(404, message, code, extra)


def method_not_allowed(message: str = "Method not allowed", code: str = "METHOD_NOT_ALLOWED") -> Response:
    return error_response(405, message, code)


def too_many_requests(
    message: str = "Too many failed attempts", code: str = "RATE_LIMITED", retry_after: int | None = None
) -> Response:
    resp = error_response(429, message, code)
    if retry_after is not None:
        resp.headers["Retry-After"] = str(int(retry_after))
    return resp


def internal_server_error(message: str = "Internal server error", incident_id: str | None = None) -> Response:
    return error_response(500, message, "INTERNAL_ERROR", {"incident_id": incident_id})


__all__ = [
    "error_response",
    "bad_request",
    "unauthorized",
    "forbidden",
    "not_found",
    "method_not_allowed",
    "too_many_requests",
    "internal_server_error",
]
