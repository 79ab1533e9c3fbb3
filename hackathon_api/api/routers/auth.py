"""Rutas de autenticación: registro, login, perfil y logout."""
from fastapi import APIRouter, Depends, Request, Response, status
from redis import Redis

from hackathon_api.api.deps import get_current_user, get_store
from hackathon_api.api.schemas.auth import LoginPayload, ProfileUpdate, RegisterPayload
from hackathon_api.core.config import settings
from hackathon_api.services import auth_service as service
from hackathon_api.services import profile_service
from hackathon_api.services.authz import Requester

router = APIRouter(prefix="/auth", tags=["Auth"])


def _set_auth_cookie(response: Response, token: str) -> None:
    # En modo bearer el cliente guarda el token; no se emite cookie
    if settings.auth_mode != "cookie":
        return
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        path="/",
    )


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


@router.post(
    "/register",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
    summary="Registrar usuario",
    description="Valida payload, registra usuario local y emite token.",
)
def register(payload: RegisterPayload, response: Response, store: Redis = Depends(get_store)):
    res = service.register_user(store, payload)
    _set_auth_cookie(response, res["token"])
    return {"success": True, "message": "User registered successfully", **res}


@router.post(
    "/login",
    response_model=dict,
    summary="Login local",
    description="Email + password, limitado por IP.",
)
def login(payload: LoginPayload, request: Request, response: Response, store: Redis = Depends(get_store)):
    res = service.login_local(store, payload, ip=_client_ip(request))
    _set_auth_cookie(response, res["token"])
    return {"success": True, "message": "Login successful", **res}


@router.get(
    "/me",
    response_model=dict,
    summary="Usuario autenticado",
)
def me(requester: Requester = Depends(get_current_user)):
    return {"success": True, "user": profile_service.get_my_profile(requester)}


@router.put(
    "/profile",
    response_model=dict,
    summary="Actualizar perfil",
    description="Nombre, email (mueve el índice) y preferencias.",
)
def update_profile(
    payload: ProfileUpdate,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    user = profile_service.update_my_profile(store, requester, payload.model_dump(exclude_none=True))
    return {"success": True, "message": "Profile updated successfully", "user": user}


@router.delete(
    "/logout",
    response_model=dict,
    summary="Cerrar sesión",
    description="Revoca el token actual hasta su expiración y borra la cookie.",
)
def logout(
    request: Request,
    response: Response,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    service.revoke_token(store, request.state.token_payload)
    response.delete_cookie(settings.auth_cookie_name, path="/")
    return {"success": True, "message": "Logged out successfully"}
