"""Repo de tipos de nota (plantillas por usuario).

Claves:
- `note-type:{id}`          JSON del tipo
- `user:{uid}:note-types`   lista de ids del dueño

El nombre es único por dueño sin distinguir mayúsculas. Un tipo en uso por
alguna nota del dueño no se puede borrar.
"""
import secrets
from typing import Any, Dict, List, Optional

from redis import Redis

from hackathon_api.core.exceptions import Conflict, NotFound, ValidationError
from hackathon_api.core.time import now_iso, touch_iso
from hackathon_api.infrastructure.db.codec import decode, decode_many, encode
from hackathon_api.infrastructure.db.plan import IndexPlan
from hackathon_api.repositories import note_repo
from hackathon_api.services.authz import Requester, ensure_can_modify

DEFAULT_COLOR = "#6366f1"
DEFAULT_ICON = "FileText"
IMMUTABLE_FIELDS = ("id", "userId", "createdAt")


def type_key(type_id: str) -> str:
    return f"note-type:{type_id}"


def owner_key(user_id: str) -> str:
    return f"user:{user_id}:note-types"


def _load(store: Redis, type_id: str) -> Dict[str, Any]:
    key = type_key(type_id)
    note_type = decode(store.get(key), key=key)
    if not note_type:
        raise NotFound("Note type not found")
    return note_type


def list_note_types(store: Redis, user_id: str) -> List[Dict[str, Any]]:
    """Tipos del dueño ordenados por createdAt desc (omite ids colgantes)."""
    ids = store.lrange(owner_key(user_id), 0, -1)
    if not ids:
        return []
    keys = [type_key(i) for i in ids]
    types = decode_many(store.mget(keys), keys)
    types.sort(key=lambda t: str(t.get("createdAt") or ""), reverse=True)
    return types


def _ensure_unique_name(store: Redis, user_id: str, name: str, skip_id: Optional[str] = None) -> None:
    wanted = name.strip().lower()
    for t in list_note_types(store, user_id):
        if t.get("id") == skip_id:
            continue
        if str(t.get("name", "")).strip().lower() == wanted:
            raise Conflict("Note type with this name already exists")


def insert_note_type(store: Redis, requester: Requester, data: Dict[str, Any]) -> Dict[str, Any]:
    name = data.get("name")
    if not name:
        raise ValidationError("Name is required")
    _ensure_unique_name(store, requester.id, name)

    fields = data.get("fields")
    now = now_iso()
    note_type = {
        "id": secrets.token_urlsafe(15),
        "userId": requester.id,
        "name": name,
        "description": data.get("description") or "",
        "color": data.get("color") or DEFAULT_COLOR,
        "icon": data.get("icon") or DEFAULT_ICON,
        "fields": list(fields) if isinstance(fields, list) else [],
        "createdAt": now,
        "updatedAt": now,
    }
    pipe = store.pipeline(transaction=False)
    pipe.set(type_key(note_type["id"]), encode(note_type))
    pipe.lpush(owner_key(requester.id), note_type["id"])
    pipe.execute()
    return note_type


def get_note_type(store: Redis, type_id: str, requester: Requester) -> Dict[str, Any]:
    note_type = _load(store, type_id)
    ensure_can_modify(note_type, requester)
    return note_type


def update_note_type(store: Redis, type_id: str, requester: Requester, patch: Dict[str, Any]) -> Dict[str, Any]:
    existing = _load(store, type_id)
    ensure_can_modify(existing, requester)

    changes = {k: v for k, v in patch.items() if k not in IMMUTABLE_FIELDS}
    if "name" in changes:
        if not changes["name"]:
            raise ValidationError("Name is required")
        if changes["name"].strip().lower() != str(existing.get("name", "")).strip().lower():
            _ensure_unique_name(store, existing["userId"], changes["name"], skip_id=type_id)

    updated = {
        **existing,
        **changes,
        "updatedAt": touch_iso(existing.get("updatedAt")),
    }
    store.set(type_key(type_id), encode(updated))
    return updated


def delete_note_type(store: Redis, type_id: str, requester: Requester) -> None:
    """Borra el tipo si ninguna nota del dueño lo usa; si no, `Conflict` con el conteo."""
    note_type = _load(store, type_id)
    ensure_can_modify(note_type, requester)
    owner = note_type["userId"]

    in_use = note_repo.count_notes_with_type(store, owner, type_id)
    if in_use > 0:
        raise Conflict(
            f"Cannot delete note type. {in_use} note(s) are using this type.",
            count=in_use,
        )

    plan = IndexPlan(f"note-type:{type_id}:delete")
    plan.add("del-type", lambda: store.delete(type_key(type_id)))
    plan.add("lrem-owner", lambda: store.lrem(owner_key(owner), 0, type_id))
    plan.execute()
