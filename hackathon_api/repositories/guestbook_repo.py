"""Libro de visitas: lista acotada de entradas JSON, sin dueño."""
from typing import Any, Dict, List

from redis import Redis

from hackathon_api.core.exceptions import ValidationError
from hackathon_api.core.time import now_iso
from hackathon_api.infrastructure.db.codec import decode, encode

GUESTBOOK_KEY = "example:guestbook_entries"


def list_entries(store: Redis, limit: int = 50) -> List[Dict[str, Any]]:
    """Últimas `limit` entradas; las corruptas se omiten."""
    raws = store.lrange(GUESTBOOK_KEY, 0, limit - 1)
    out: List[Dict[str, Any]] = []
    for raw in raws:
        entry = decode(raw, key=GUESTBOOK_KEY)
        if entry is not None:
            out.append(entry)
    return out


def add_entry(store: Redis, name: str | None, message: str | None, max_entries: int = 100) -> Dict[str, Any]:
    if not name or not message:
        raise ValidationError("Name and message are required.")
    entry = {"name": name, "message": message, "timestamp": now_iso()}
    store.lpush(GUESTBOOK_KEY, encode(entry))
    store.ltrim(GUESTBOOK_KEY, 0, max_entries - 1)
    return entry
