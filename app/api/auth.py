# app/api/auth.py
"""
Bearer-token authentication for the meal plan routes.

Tokens are compact HS256 JWTs signed with AUTH_TOKEN_SECRET; `sub` carries
the user id. Only the signature and expiry are checked here; whether the
user still exists is decided by the services (404, not 401).
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Header, HTTPException

from app.config.settings import settings

_HEADER = {"alg": "HS256", "typ": "JWT"}


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def _sign(signing_input: bytes, secret: str) -> str:
    return _b64url_encode(hmac.new(secret.encode("utf-8"), signing_input, hashlib.sha256).digest())


def create_access_token(user_id: str, ttl_days: Optional[int] = None, secret: Optional[str] = None) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(days=ttl_days if ttl_days is not None else settings.auth_token_ttl_days)
    payload = {"sub": user_id, "iat": int(now.timestamp()), "exp": int(exp.timestamp())}
    head = _b64url_encode(json.dumps(_HEADER, separators=(",", ":")).encode("utf-8"))
    body = _b64url_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{head}.{body}".encode("ascii")
    return f"{head}.{body}.{_sign(signing_input, secret or settings.auth_token_secret)}"


def decode_token(token: str, secret: Optional[str] = None) -> Dict[str, Any]:
    """Verify signature and expiry; raises ValueError on any problem."""
    try:
        head, body, sig = token.split(".")
    except ValueError as exc:
        raise ValueError("malformed token") from exc
    expected = _sign(f"{head}.{body}".encode("ascii"), secret or settings.auth_token_secret)
    # non-ASCII text cannot go through compare_digest as str
    if not hmac.compare_digest(sig.encode("utf-8"), expected.encode("ascii")):
        raise ValueError("bad signature")
    try:
        payload = json.loads(_b64url_decode(body))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValueError("malformed payload") from exc
    exp = int(payload.get("exp") or 0)
    if exp and exp < int(datetime.now(timezone.utc).timestamp()):
        raise ValueError("token expired")
    if not payload.get("sub"):
        raise ValueError("token has no subject")
    return payload


def get_current_user_id(authorization: Optional[str] = Header(default=None)) -> str:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="User not authenticated")
    token = authorization.split(" ", 1)[1].strip()
    try:
        payload = decode_token(token)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail="User not authenticated") from exc
    return str(payload["sub"])
