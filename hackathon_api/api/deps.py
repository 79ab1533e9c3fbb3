"""
Dependencias reutilizables para routers (FastAPI Depends).

- Store y clientes QStash: creados en el arranque y guardados en `app.state`.
- Autenticación: extrae y valida el Access Token (header o cookie según
  AUTH_MODE) y devuelve el `Requester` actual.
- Mantener esta capa delgada: sin lógica de negocio pesada.
"""
from typing import Any, Dict, Optional

import jwt as pyjwt
from fastapi import Depends, Request
from redis import Redis

from hackathon_api.core.config import settings
from hackathon_api.core.exceptions import (
    FeatureDisabled,
    Forbidden,
    InvalidCredential,
    SubjectNotFound,
    Unauthenticated,
)
from hackathon_api.infrastructure.qstash.client import QStashClient, QStashReceiver
from hackathon_api.infrastructure.security.token_service import verify_access_token
from hackathon_api.repositories import feature_flag_repo, user_repo
from hackathon_api.services.auth_service import is_revoked
from hackathon_api.services.authz import Requester

QSTASH_FLAG = "upstash_qstash"
_EMPTY_TOKENS = ("", "null", "undefined")


def get_store(request: Request) -> Redis:
    return request.app.state.store


def get_qstash(request: Request) -> QStashClient:
    return request.app.state.qstash


def get_receiver(request: Request) -> QStashReceiver:
    return request.app.state.qstash_receiver


def _extract_token(request: Request) -> str:
    """Bearer header; en modo cookie, la cookie si no hay header."""
    token: Optional[str] = None
    authorization = request.headers.get("authorization")
    if authorization and authorization.startswith("Bearer "):
        token = authorization.split(" ", 1)[1]
    elif settings.auth_mode == "cookie":
        token = request.cookies.get(settings.auth_cookie_name)

    if token is None:
        raise Unauthenticated("No token provided")
    if token.strip() in _EMPTY_TOKENS:
        raise Unauthenticated("Invalid token format")
    return token.strip()


def _decode(token: str) -> Dict[str, Any]:
    try:
        return verify_access_token(token)
    except pyjwt.ExpiredSignatureError:
        raise InvalidCredential("Token expired")
    except pyjwt.InvalidTokenError:
        raise InvalidCredential("Invalid token")


def _authenticate(request: Request, store: Redis) -> Requester:
    payload = _decode(_extract_token(request))

    # Tokens antiguos traen `userId` en lugar de `sub`
    user_id = payload.get("sub") or payload.get("userId")
    if not user_id:
        raise InvalidCredential("Invalid token")
    if is_revoked(store, payload.get("jti")):
        raise InvalidCredential("Token has been revoked")

    u = user_repo.get_user_by_id(store, str(user_id))
    if not u:
        raise SubjectNotFound("User not found")

    request.state.token_payload = payload
    # El rol sale del usuario guardado, no del token
    return Requester(id=u["id"], role=u.get("role") or "user", email=u.get("email"), user=u)


def get_current_user(request: Request, store: Redis = Depends(get_store)) -> Requester:
    return _authenticate(request, store)


def get_optional_user(request: Request, store: Redis = Depends(get_store)) -> Optional[Requester]:
    """Igual que get_current_user pero devuelve None en vez de lanzar."""
    try:
        return _authenticate(request, store)
    except (Unauthenticated, InvalidCredential, SubjectNotFound):
        return None


def require_admin(requester: Requester = Depends(get_current_user)) -> Requester:
    if not requester.is_admin:
        raise Forbidden("Admin access required")
    return requester


def require_qstash_enabled(store: Redis = Depends(get_store)) -> None:
    """503 si el flag `upstash_qstash` está apagado."""
    feature_flag_repo.initialize(store)
    if not feature_flag_repo.is_enabled(store, QSTASH_FLAG):
        raise FeatureDisabled("QStash feature is currently disabled")
