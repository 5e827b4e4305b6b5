"""JWT utilities.

HS256 bearer tokens carrying ``{userId, email, role}``:
 - Claim enforcement: iat, exp, optional nbf with configurable leeway.
 - Future iat guard (> leeway) rejected.
 - Rotation: multiple shared secrets accepted for verification; signing uses the first.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from typing import Any, TypedDict


class JWTError(Exception):
    pass


DEFAULT_TTL = 604800  # 7 days
SKEW_SECS = 30

ALG_HS256 = "HS256"


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64url_decode(data: str) -> bytes:
    pad = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + pad)


def _sign(msg: bytes, secret: str) -> str:
    sig = hmac.new(secret.encode(), msg, hashlib.sha256).digest()
    return _b64url(sig)


class TokenPayload(TypedDict):
    userId: int
    email: str
    role: str
    iat: int
    exp: int


def encode(payload: dict[str, Any], *, secret: str, ttl: int) -> str:
    now = int(time.time())
    header = {"alg": ALG_HS256, "typ": "JWT"}
    pl = payload.copy()
    pl.setdefault("iat", now)
    pl.setdefault("exp", now + ttl)
    header_b = _b64url(json.dumps(header, separators=(",", ":")).encode())
    payload_b = _b64url(json.dumps(pl, separators=(",", ":"), ensure_ascii=False).encode())
    msg = f"{header_b}.{payload_b}".encode()
    sig = _sign(msg, secret)
    return f"{header_b}.{payload_b}.{sig}"


def decode(
    token: str,
    *,
    secret: str | None = None,
    secrets_list: list[str] | None = None,
    verify_exp: bool = True,
    leeway: int = SKEW_SECS,
) -> TokenPayload:
    try:
        header_b, payload_b, sig = token.split(".")
    except ValueError as e:
        raise JWTError("malformed token") from e
    msg = f"{header_b}.{payload_b}".encode()
    try:
        header_raw = json.loads(_b64url_decode(header_b))
    except ValueError as e:
        raise JWTError("bad header") from e
    if not isinstance(header_raw, dict) or header_raw.get("alg") != ALG_HS256:
        raise JWTError("alg")
    secrets_to_try: list[str] = []
    if secret:
        secrets_to_try.append(secret)
    for s in secrets_list or []:
        if s and s not in secrets_to_try:
            secrets_to_try.append(s)
    if not secrets_to_try:
        raise JWTError("bad signature")
    for sec in secrets_to_try:
        if hmac.compare_digest(_sign(msg, sec), sig):
            break
    else:
        raise JWTError("bad signature")
    try:
        raw = json.loads(_b64url_decode(payload_b))
    except ValueError as e:
        raise JWTError("bad payload") from e
    if not isinstance(raw, dict):
        raise JWTError("bad payload type")

    def _req(key: str, t: type) -> Any:
        if key not in raw:
            raise JWTError(f"missing claim {key}")
        val = raw[key]
        if not isinstance(val, t) or isinstance(val, bool):
            raise JWTError(f"bad claim type {key}")
        return val

    user_id = _req("userId", int)
    email = _req("email", str)
    role = _req("role", str)
    iat = _req("iat", int)
    exp = _req("exp", int)
    nbf_val = raw.get("nbf")
    if nbf_val is not None and not isinstance(nbf_val, int):
        raise JWTError("nbf")
    now = int(time.time())
    if verify_exp:
        if now > exp + leeway:
            raise JWTError("token expired")
        if nbf_val is not None and now + leeway < nbf_val:
            raise JWTError("token not yet valid")
        if iat > now + leeway:
            raise JWTError("iat_future")
    return TokenPayload(userId=user_id, email=email, role=role, iat=iat, exp=exp)


def issue_token(*, user_id: int, email: str, role: str, secret: str, ttl: int = DEFAULT_TTL) -> str:
    return encode({"userId": user_id, "email": email, "role": role}, secret=secret, ttl=ttl)


def select_signing_secret(primary: str | None, candidates: list[str] | None) -> str:
    """Return first rotation candidate if provided else the primary secret; raise if none.

    Used to support rotation via JWT_SECRETS env (first used for signing while
    still accepting previous secrets for verification).
    """
    if candidates:
        for c in candidates:
            if c:
                return c
    if primary:
        return primary
    raise JWTError("no signing secret available")
