"""Request identity helpers.

The bearer token is decoded once per request by the auth decorators and the
resulting identity is kept on ``flask.g``.
"""
from __future__ import annotations

from typing import Literal, TypedDict

from flask import g

Role = Literal["admin", "moderator", "user"]

VALID_ROLES: tuple[str, ...] = ("admin", "moderator", "user")


class Identity(TypedDict):
    user_id: int
    email: str
    role: str


def persist_identity(user_id: int, email: str, role: str) -> Identity:
    ident: Identity = {"user_id": int(user_id), "email": email, "role": role}
    g.identity = ident
    return ident


def get_identity() -> Identity | None:
    return getattr(g, "identity", None)


def require_identity() -> Identity:
    ident = get_identity()
    if ident is None:
        raise SessionError()
    return ident


def current_user_id() -> int:
    return require_identity()["user_id"]


class SessionError(Exception):
    """Signals a 401 unauthorized due to missing/invalid bearer token."""

    def __init__(self, message: str = "Unauthorized - Invalid or missing token"):
        super().__init__(message)


__all__ = [
    "Role",
    "VALID_ROLES",
    "Identity",
    "persist_identity",
    "get_identity",
    "require_identity",
    "current_user_id",
    "SessionError",
]
