"""Notificaciones por usuario (generadas por tareas `notification`)."""
import secrets
from typing import Any, Dict, Optional

from redis import Redis

from hackathon_api.core.time import now_iso, now_ms
from hackathon_api.infrastructure.db.codec import encode

MAX_PER_USER = 100


def notification_key(notification_id: str) -> str:
    return f"notification:{notification_id}"


def owner_key(user_id: str) -> str:
    return f"user:{user_id}:notifications"


def insert_notification(
    store: Redis,
    *,
    user_id: str,
    kind: Optional[str],
    message: Optional[str],
    data: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Guarda la notificación y recorta la lista del usuario a las últimas 100."""
    notification = {
        "id": f"notification_{now_ms()}_{secrets.token_hex(5)}",
        "userId": user_id,
        "type": kind,
        "message": message,
        "data": data or {},
        "read": False,
        "createdAt": now_iso(),
    }
    pipe = store.pipeline(transaction=False)
    pipe.set(notification_key(notification["id"]), encode(notification))
    pipe.lpush(owner_key(user_id), notification["id"])
    pipe.ltrim(owner_key(user_id), 0, MAX_PER_USER - 1)
    pipe.execute()
    return notification
