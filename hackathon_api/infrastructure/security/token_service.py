"""
Creación y verificación de JWTs de acceso.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from uuid import uuid4

import jwt as pyjwt

from hackathon_api.core.config import settings


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(*, user: Dict[str, Any]) -> str:
    """
    Genera un JWT con HS256 válido por ACCESS_TOKEN_EXPIRE_MINUTES (máx. 1 hora).
    Claims: sub(user id), email, role, iat, exp, jti, iss, aud.
    """
    now = _now_utc()
    exp = now + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": str(user["id"]),
        "email": user.get("email"),
        "role": user.get("role") or "user",
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
        "jti": str(uuid4()),
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
    }
    return pyjwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_access_token(token: str) -> Dict[str, Any]:
    """
    Decodifica y valida firma/expiración/emisor/audiencia. Devuelve payload.

    Lanza `jwt.InvalidTokenError` (o subclases) si algo no cuadra. Los tokens
    de la versión anterior no traen `iss`/`aud`; ver `_verify_legacy_token`.
    """
    try:
        return pyjwt.decode(
            token,
            key=settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat"]},
        )
    except pyjwt.MissingRequiredClaimError as e:
        if e.claim not in ("aud", "iss"):
            raise
        return _verify_legacy_token(token)


def _verify_legacy_token(token: str) -> Dict[str, Any]:
    """Formato anterior `{userId, email, role, iat, exp}`: sin emisor ni audiencia."""
    payload = pyjwt.decode(
        token,
        key=settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["exp", "iat"], "verify_aud": False},
    )
    # Sólo se acepta la forma vieja completa, no un token nuevo recortado
    if not payload.get("userId") or "sub" in payload or "aud" in payload or "iss" in payload:
        raise pyjwt.InvalidTokenError("Token without issuer/audience")
    return payload


def remaining_seconds(payload: Dict[str, Any]) -> int:
    """Segundos de vida que le quedan al token (0 si ya expiró)."""
    exp = int(payload.get("exp") or 0)
    return max(0, exp - int(_now_utc().timestamp()))
