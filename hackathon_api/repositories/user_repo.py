"""Persistencia de usuarios y del índice único email -> id.

Claves:
- `user:{id}`          JSON del usuario (incluye hash de contraseña)
- `user:email:{email}` id del usuario; se reclama con `SET NX` para garantizar unicidad
"""
import secrets
from typing import Any, Dict, Optional

from redis import Redis

from hackathon_api.core.exceptions import Conflict, NotFound
from hackathon_api.core.time import now_iso, now_ms, touch_iso
from hackathon_api.infrastructure.db.codec import decode, encode
from hackathon_api.infrastructure.db.plan import IndexPlan

SENSITIVE_FIELDS = ("password",)


def user_key(user_id: str) -> str:
    return f"user:{user_id}"


def email_key(email: str) -> str:
    return f"user:email:{email.lower()}"


def new_user_id() -> str:
    return f"user_{now_ms()}_{secrets.token_hex(5)}"


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """Copia del usuario sin campos sensibles."""
    return {k: v for k, v in user.items() if k not in SENSITIVE_FIELDS}


def get_user_by_id(store: Redis, user_id: str) -> Optional[Dict[str, Any]]:
    """Obtiene usuario por id (None si no existe o está corrupto)."""
    key = user_key(user_id)
    return decode(store.get(key), key=key)


def find_user_by_email(store: Redis, email: str) -> Optional[Dict[str, Any]]:
    """Busca usuario vía índice de email (email en minúsculas)."""
    user_id = store.get(email_key(email))
    if not user_id:
        return None
    return get_user_by_id(store, user_id)


def create_user(store: Redis, *, username: str, email: str, password_hash: str, role: str = "user") -> Dict[str, Any]:
    """Crea usuario; `Conflict` si el email ya está tomado."""
    user_id = new_user_id()
    email = email.lower()
    # SET NX: sólo un registro puede reclamar el email
    if not store.set(email_key(email), user_id, nx=True):
        raise Conflict("User already exists with this email")

    now = now_iso()
    user = {
        "id": user_id,
        "username": username,
        "name": username,
        "email": email,
        "password": password_hash,
        "role": role,
        "createdAt": now,
        "updatedAt": now,
    }
    store.set(user_key(user_id), encode(user))
    return user


def update_user(store: Redis, user_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
    """Actualiza nombre, email y preferencias (merge). Mueve el índice de email si cambia."""
    user = get_user_by_id(store, user_id)
    if not user:
        raise NotFound("User not found")

    new_email = (updates.get("email") or "").lower() or None
    updated = {
        **user,
        "name": updates.get("name") or user.get("name") or user.get("username"),
        "email": new_email or user.get("email"),
        "preferences": updates.get("preferences", user.get("preferences")),
        "updatedAt": touch_iso(user.get("updatedAt")),
    }

    plan = IndexPlan(f"user:{user_id}:update")
    old_email = user.get("email") or ""
    if new_email and new_email != old_email.lower():
        if not store.set(email_key(new_email), user_id, nx=True):
            raise Conflict("User already exists with this email")
        plan.add("drop-old-email", lambda: store.delete(email_key(old_email)))
    plan.add("write-user", lambda: store.set(user_key(user_id), encode(updated)))
    plan.execute()
    return updated
