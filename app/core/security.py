from __future__ import annotations

import hmac
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from app.core.config import settings

JWT_ISSUER = "chorely"
ACCESS_TOKEN_MINUTES = 60
SERVICE_TOKEN_MINUTES = 10
SERVICE_SUBJECT = "service"


def _create_token(
    *,
    token_type: str,
    subject: str,
    expires_delta: timedelta,
    claims: dict[str, Any] | None = None,
) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "iss": JWT_ISSUER,
        "sub": subject,
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
    }
    if claims:
        payload.update(claims)
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def create_access_token(*, profile_id: int, family_id: int, role: str) -> str:
    return _create_token(
        token_type="access",
        subject=str(profile_id),
        expires_delta=timedelta(minutes=ACCESS_TOKEN_MINUTES),
        claims={"family_id": family_id, "role": role},
    )


def create_service_token() -> str:
    return _create_token(
        token_type="service",
        subject=SERVICE_SUBJECT,
        expires_delta=timedelta(minutes=SERVICE_TOKEN_MINUTES),
    )


def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=["HS256"],
        issuer=JWT_ISSUER,
    )


def _matches_secret(candidate: str | None, secret: str | None) -> bool:
    if not candidate or not secret:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), secret.encode("utf-8"))


def is_valid_cron_secret(candidate: str | None) -> bool:
    return _matches_secret(candidate, settings.cron_secret)


def is_service_credential(token: str | None) -> bool:
    if _matches_secret(token, settings.service_role_key):
        return True
    if not token:
        return False
    try:
        payload = decode_token(token)
    except jwt.PyJWTError:
        return False
    return payload.get("type") == "service"
