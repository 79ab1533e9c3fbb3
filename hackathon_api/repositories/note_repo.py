"""Repo de notas.

Claves:
- `note:{id}`            JSON de la nota
- `user:{uid}:notes`     lista de ids del dueño (más reciente primero)
- `category:{c}:notes`   set de ids por categoría (excepto `general`)
- `tag:{t}:notes`        set de ids por tag
"""
import secrets
from typing import Any, Dict, Iterable, List, Optional, Tuple

from redis import Redis

from hackathon_api.core.exceptions import Forbidden, NotFound, ValidationError
from hackathon_api.core.time import now_iso, touch_iso
from hackathon_api.infrastructure.db.codec import decode, decode_many, encode
from hackathon_api.infrastructure.db.plan import IndexPlan
from hackathon_api.services.authz import Requester, can_modify, ensure_can_modify

DEFAULT_CATEGORY = "general"
SORT_FIELDS = ("createdAt", "updatedAt")
IMMUTABLE_FIELDS = ("id", "userId", "createdAt")


def note_key(note_id: str) -> str:
    return f"note:{note_id}"


def owner_key(user_id: str) -> str:
    return f"user:{user_id}:notes"


def category_key(category: str) -> str:
    return f"category:{category}:notes"


def tag_key(tag: str) -> str:
    return f"tag:{tag}:notes"


def new_note_id() -> str:
    return secrets.token_urlsafe(15)


def _load(store: Redis, note_id: str) -> Dict[str, Any]:
    key = note_key(note_id)
    note = decode(store.get(key), key=key)
    if not note:
        raise NotFound("Note not found")
    return note


def insert_note(store: Redis, requester: Requester, data: Dict[str, Any]) -> Dict[str, Any]:
    """Crea nota con defaults, la indexa y la devuelve."""
    title = data.get("title")
    content = data.get("content")
    if not title or not content:
        raise ValidationError("Title and content are required")

    tags = data.get("tags")
    now = now_iso()
    note: Dict[str, Any] = {
        "id": new_note_id(),
        "userId": requester.id,
        "title": title,
        "content": content,
        "category": data.get("category") or DEFAULT_CATEGORY,
        "tags": list(tags) if isinstance(tags, list) else [],
        "isPublic": bool(data.get("isPublic", False)),
        "createdAt": now,
        "updatedAt": now,
    }
    for extra in ("noteTypeId", "isArchived"):
        if data.get(extra) is not None:
            note[extra] = data[extra]

    pipe = store.pipeline(transaction=False)
    pipe.set(note_key(note["id"]), encode(note))
    pipe.lpush(owner_key(requester.id), note["id"])
    if note["category"] != DEFAULT_CATEGORY:
        pipe.sadd(category_key(note["category"]), note["id"])
    for tag in note["tags"]:
        pipe.sadd(tag_key(tag), note["id"])
    pipe.execute()
    return note


def get_note(store: Redis, note_id: str, requester: Requester) -> Dict[str, Any]:
    """Devuelve la nota al dueño, a un admin, o a cualquiera si es pública."""
    note = _load(store, note_id)
    if not note.get("isPublic") and not can_modify(note, requester):
        raise Forbidden("Access denied")
    return note


def load_owner_notes(store: Redis, user_id: str) -> List[Dict[str, Any]]:
    """Carga todas las notas del dueño, omitiendo ids colgantes o corruptos."""
    ids = store.lrange(owner_key(user_id), 0, -1)
    if not ids:
        return []
    keys = [note_key(i) for i in ids]
    return decode_many(store.mget(keys), keys)


def _matches_search(note: Dict[str, Any], needle: str) -> bool:
    return needle in str(note.get("title", "")).lower() or needle in str(note.get("content", "")).lower()


def list_notes(
    store: Redis,
    user_id: str,
    *,
    search: Optional[str] = None,
    category: Optional[str] = None,
    tags: Optional[Iterable[str]] = None,
    sort_by: str = "updatedAt",
    sort_order: str = "desc",
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[Dict[str, Any]], int]:
    """Filtra, ordena y pagina las notas del dueño. Devuelve (notas, total)."""
    if sort_by not in SORT_FIELDS:
        raise ValidationError(f"sortBy must be one of: {', '.join(SORT_FIELDS)}")
    if sort_order not in ("asc", "desc"):
        raise ValidationError("sortOrder must be 'asc' or 'desc'")
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive")

    notes = load_owner_notes(store, user_id)

    if search:
        needle = search.lower()
        notes = [n for n in notes if _matches_search(n, needle)]
    if category:
        notes = [n for n in notes if n.get("category") == category]
    wanted = {t.strip() for t in (tags or []) if t and t.strip()}
    if wanted:
        notes = [n for n in notes if wanted.intersection(n.get("tags") or [])]

    # Timestamps ISO de formato fijo: el orden de strings es el cronológico
    notes.sort(key=lambda n: str(n.get(sort_by) or ""), reverse=(sort_order == "desc"))

    total = len(notes)
    offset = (page - 1) * limit
    return notes[offset:offset + limit], total


def update_note(store: Redis, note_id: str, requester: Requester, patch: Dict[str, Any]) -> Dict[str, Any]:
    """Merge de campos provistos sobre la nota; reindexa categoría y tags si cambian."""
    existing = _load(store, note_id)
    ensure_can_modify(existing, requester)

    changes = {k: v for k, v in patch.items() if k not in IMMUTABLE_FIELDS}
    if "tags" in changes and not isinstance(changes["tags"], list):
        changes["tags"] = []
    if "category" in changes and not changes["category"]:
        changes["category"] = DEFAULT_CATEGORY
    for required in ("title", "content"):
        if required in changes and not changes[required]:
            raise ValidationError("Title and content are required")

    updated = {
        **existing,
        **changes,
        "updatedAt": touch_iso(existing.get("updatedAt")),
    }

    plan = IndexPlan(f"note:{note_id}:update")
    old_cat = existing.get("category") or DEFAULT_CATEGORY
    new_cat = updated.get("category") or DEFAULT_CATEGORY
    if new_cat != old_cat:
        if old_cat != DEFAULT_CATEGORY:
            plan.add(f"srem-category:{old_cat}", lambda: store.srem(category_key(old_cat), note_id))
        if new_cat != DEFAULT_CATEGORY:
            plan.add(f"sadd-category:{new_cat}", lambda: store.sadd(category_key(new_cat), note_id))

    if "tags" in changes:
        old_tags = set(existing.get("tags") or [])
        new_tags = set(updated["tags"])
        for tag in sorted(old_tags - new_tags):
            plan.add(f"srem-tag:{tag}", lambda t=tag: store.srem(tag_key(t), note_id))
        for tag in sorted(new_tags - old_tags):
            plan.add(f"sadd-tag:{tag}", lambda t=tag: store.sadd(tag_key(t), note_id))

    plan.add("write-note", lambda: store.set(note_key(note_id), encode(updated)))
    plan.execute()
    return updated


def delete_note(store: Redis, note_id: str, requester: Requester) -> None:
    """Borra la nota y todas las entradas de índice que la referencian."""
    note = _load(store, note_id)
    ensure_can_modify(note, requester)
    owner = note.get("userId")
    category = note.get("category") or DEFAULT_CATEGORY

    plan = IndexPlan(f"note:{note_id}:delete")
    plan.add("del-note", lambda: store.delete(note_key(note_id)))
    plan.add("lrem-owner", lambda: store.lrem(owner_key(owner), 0, note_id))
    if category != DEFAULT_CATEGORY:
        plan.add(f"srem-category:{category}", lambda: store.srem(category_key(category), note_id))
    for tag in note.get("tags") or []:
        plan.add(f"srem-tag:{tag}", lambda t=tag: store.srem(tag_key(t), note_id))
    plan.execute()


def count_notes_with_type(store: Redis, user_id: str, type_id: str) -> int:
    """Cuántas notas del dueño referencian el tipo de nota."""
    return sum(1 for n in load_owner_notes(store, user_id) if n.get("noteTypeId") == type_id)
