"""
Lógica de autenticación: registro, login, logout y revocación de tokens.
"""
import logging
from typing import Any, Dict, Optional

from redis import Redis

from hackathon_api.api.schemas.auth import LoginPayload, RegisterPayload
from hackathon_api.core import rate_limit
from hackathon_api.core.config import settings
from hackathon_api.core.exceptions import InvalidCredential, RateLimited
from hackathon_api.infrastructure.security.passwords import hash_password, verify_password
from hackathon_api.infrastructure.security.token_service import create_access_token, remaining_seconds
from hackathon_api.repositories import user_repo

_log = logging.getLogger("hackathon.auth")

LOGIN_ROUTE = "login"


def blacklist_key(jti: str) -> str:
    return f"blacklist:{jti}"


def _session(user: Dict[str, Any]) -> Dict[str, Any]:
    return {"user": user_repo.public_user(user), "token": create_access_token(user=user)}


def register_user(store: Redis, payload: RegisterPayload) -> Dict[str, Any]:
    """
    Registra un usuario local. El rol es `admin` si el email está en ADMIN_EMAILS.

    Devuelve {user, token}. `Conflict` si el email ya existe.
    """
    role = "admin" if settings.is_admin_email(payload.email) else "user"
    user = user_repo.create_user(
        store,
        username=payload.username,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=role,
    )
    _log.info("Usuario registrado id=%s role=%s", user["id"], role)
    return _session(user)


def login_local(store: Redis, payload: LoginPayload, *, ip: str) -> Dict[str, Any]:
    """Login con email + password, limitado por IP."""
    key = (ip or "unknown", LOGIN_ROUTE)
    if not rate_limit.allow(store, key, limit=settings.login_max_attempts, window_seconds=settings.login_window_seconds):
        raise RateLimited("Too many login attempts, please try again later")

    u = user_repo.find_user_by_email(store, payload.email)
    if not u or not u.get("password") or not verify_password(payload.password, u["password"]):
        raise InvalidCredential("Invalid credentials")

    rate_limit.reset(store, key)
    return _session(u)


def revoke_token(store: Redis, token_payload: Dict[str, Any]) -> bool:
    """Marca el `jti` como revocado hasta que el token expire."""
    jti = token_payload.get("jti")
    ttl = remaining_seconds(token_payload)
    if not jti or ttl <= 0:
        return False
    store.setex(blacklist_key(jti), ttl, "1")
    return True


def is_revoked(store: Redis, jti: Optional[str]) -> bool:
    return bool(jti) and bool(store.exists(blacklist_key(jti)))
