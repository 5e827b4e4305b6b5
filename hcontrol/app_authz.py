"""Authorization helpers.

``require_auth`` decodes the ``Authorization: Bearer`` token into the request
identity and raises ``SessionError`` (401) when it is missing or invalid.
``require_roles`` additionally raises ``AuthzError`` (403) when the role is not
allowed. Central handlers in ``errors`` map both to ``{error, code}`` bodies.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from flask import current_app, request

from .app_sessions import Identity, SessionError, persist_identity
from .jwt_utils import JWTError, decode as jwt_decode

P = ParamSpec("P")
R = TypeVar("R")


class AuthzError(Exception):
    """Signals an authorization (403) failure to be caught by centralized handlers."""

    required: str | None

    def __init__(self, message: str = "Forbidden", code: str = "FORBIDDEN", required: str | None = None):
        super().__init__(message)
        self.code = code
        self.required = required


def signing_secrets() -> tuple[str, list[str]]:
    cfg = current_app.config
    primary = cfg.get("JWT_SECRET") or cfg.get("SECRET_KEY") or "dev-secret"
    return primary, list(cfg.get("JWT_SECRETS") or [])


def _identity_from_header() -> Identity:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.lower().startswith("bearer "):
        raise SessionError()
    parts = auth_header.split(None, 1)
    token = parts[1].strip() if len(parts) == 2 else ""
    if not token:
        raise SessionError()
    primary, secrets_list = signing_secrets()
    try:
        payload = jwt_decode(
            token,
            secret=primary,
            secrets_list=secrets_list,
            leeway=current_app.config.get("JWT_LEEWAY_SECONDS", 60),
        )
    except JWTError as e:
        current_app.logger.debug("jwt rejected: %s", e)
        raise SessionError() from e
    return persist_identity(payload["userId"], payload["email"], payload["role"])


def require_roles(*roles: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        @wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            ident = _identity_from_header()
            if roles and ident["role"] not in roles:
                required = roles[0]
                if required == "admin":
                    raise AuthzError("Forbidden - Admin access required", required=required)
                raise AuthzError("Forbidden", required=required)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


require_auth = require_roles()
require_admin = require_roles("admin")


__all__ = [
    "require_roles",
    "require_auth",
    "require_admin",
    "signing_secrets",
    "AuthzError",
]
