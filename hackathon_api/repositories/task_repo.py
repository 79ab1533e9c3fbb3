"""Repo de tareas en segundo plano.

Claves:
- `task:{id}`          JSON de la tarea
- `user:{uid}:tasks`   lista de ids del dueño (más reciente primero)

Estados: pending -> processing -> completed | failed. No hay reintento local;
QStash reentrega el webhook si corresponde.
"""
import secrets
from typing import Any, Dict, List, Optional

from redis import Redis

from hackathon_api.core.time import now_iso, now_ms, touch_iso
from hackathon_api.infrastructure.db.codec import decode, decode_many, encode

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"


def task_key(task_id: str) -> str:
    return f"task:{task_id}"


def owner_key(user_id: str) -> str:
    return f"user:{user_id}:tasks"


def new_task_id() -> str:
    return f"task_{now_ms()}_{secrets.token_hex(5)}"


def build_task(
    *,
    task_id: str,
    task_type: str,
    payload: Any,
    user_id: str,
    message_id: str,
    scheduled_for: Optional[str] = None,
) -> Dict[str, Any]:
    now = now_iso()
    return {
        "id": task_id,
        "type": task_type,
        "payload": payload,
        "scheduledFor": scheduled_for,
        "status": PENDING,
        "retryCount": 0,
        "createdAt": now,
        "updatedAt": now,
        "userId": user_id,
        "qstashMessageId": message_id,
    }


def insert_task(store: Redis, task: Dict[str, Any]) -> Dict[str, Any]:
    pipe = store.pipeline(transaction=False)
    pipe.set(task_key(task["id"]), encode(task))
    pipe.lpush(owner_key(task["userId"]), task["id"])
    pipe.execute()
    return task


def get_task(store: Redis, task_id: str) -> Optional[Dict[str, Any]]:
    key = task_key(task_id)
    return decode(store.get(key), key=key)


def list_tasks(store: Redis, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
    """Últimas `limit` tareas del dueño (omite ids colgantes)."""
    ids = store.lrange(owner_key(user_id), 0, limit - 1)
    if not ids:
        return []
    keys = [task_key(i) for i in ids]
    return decode_many(store.mget(keys), keys)


def transition(store: Redis, task_id: str, status: str, **fields: Any) -> Optional[Dict[str, Any]]:
    """Cambia el estado de la tarea (si existe) y guarda campos extra.

    `failed` incrementa `retryCount`. Devuelve la tarea actualizada o None.
    """
    task = get_task(store, task_id)
    if not task:
        return None
    task.update(fields)
    task["status"] = status
    if status == FAILED:
        task["retryCount"] = int(task.get("retryCount") or 0) + 1
    task["updatedAt"] = touch_iso(task.get("updatedAt"))
    store.set(task_key(task_id), encode(task))
    return task
