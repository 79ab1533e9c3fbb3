"""Procesadores por tipo de tarea, invocados desde el webhook de QStash.

Cada procesador recibe el payload de la tarea y devuelve un dict `result`;
cualquier excepción marca la tarea como `failed`.
"""
import logging
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

from redis import Redis

from hackathon_api.core.config import Settings
from hackathon_api.core.time import now_iso, now_utc, to_iso
from hackathon_api.infrastructure.email.email_client import send_welcome_email
from hackathon_api.repositories import blog_repo, notification_repo

_log = logging.getLogger("hackathon.tasks")

WELCOME_EMAIL = "welcome_email"
SCHEDULED_BLOG_POST = "scheduled_blog_post"
CLEANUP_TASK = "cleanup_task"
NOTIFICATION = "notification"

DEFAULT_CLEANUP_AGE_MS = 7 * 24 * 60 * 60 * 1000


class TaskProcessingError(Exception):
    pass


def process_welcome_email(store: Redis, cfg: Settings, payload: Dict[str, Any], user_id: Optional[str]) -> Dict[str, Any]:
    email = payload.get("email")
    name = payload.get("name")
    if not email or not name:
        raise TaskProcessingError("Welcome email requires email and name")
    delivered = send_welcome_email(cfg, email, name)
    return {
        "success": True,
        "message": f"Welcome email sent to {email}",
        "delivered": delivered,
        "timestamp": now_iso(),
    }


def process_scheduled_blog_post(store: Redis, cfg: Settings, payload: Dict[str, Any], user_id: Optional[str]) -> Dict[str, Any]:
    post_id = payload.get("postId")
    action = payload.get("action")
    _log.info("Post programado: %s, acción: %s", post_id, action)
    if action != "publish":
        raise TaskProcessingError(f"Unknown blog post action: {action}")
    if not post_id:
        raise TaskProcessingError("postId is required")
    post = blog_repo.publish_post(store, post_id)
    return {
        "success": True,
        "message": f"Blog post {post_id} published successfully",
        "postId": post_id,
        "status": post.get("status"),
        "timestamp": now_iso(),
    }


def process_cleanup_task(store: Redis, cfg: Settings, payload: Dict[str, Any], user_id: Optional[str]) -> Dict[str, Any]:
    """Sólo acusa recibo: calcula el corte pero no borra nada."""
    kind = payload.get("type")
    older_than = payload.get("olderThan") or DEFAULT_CLEANUP_AGE_MS
    try:
        cutoff = now_utc() - timedelta(milliseconds=int(older_than))
    except (TypeError, ValueError):
        raise TaskProcessingError("olderThan must be a number of milliseconds")
    _log.info("Limpieza %s: elementos anteriores a %s", kind, to_iso(cutoff))
    return {
        "success": True,
        "message": f"Cleanup completed for {kind}",
        "itemsCleaned": 0,
        "cutoff": to_iso(cutoff),
        "timestamp": now_iso(),
    }


def process_notification(store: Redis, cfg: Settings, payload: Dict[str, Any], user_id: Optional[str]) -> Dict[str, Any]:
    target = payload.get("userId") or user_id
    if not target:
        raise TaskProcessingError("Notification requires a userId")
    notification = notification_repo.insert_notification(
        store,
        user_id=target,
        kind=payload.get("type"),
        message=payload.get("message"),
        data=payload.get("data"),
    )
    return {
        "success": True,
        "message": f"Notification sent to user {target}",
        "notificationId": notification["id"],
        "timestamp": now_iso(),
    }


Processor = Callable[[Redis, Settings, Dict[str, Any], Optional[str]], Dict[str, Any]]

PROCESSORS: Dict[str, Processor] = {
    WELCOME_EMAIL: process_welcome_email,
    SCHEDULED_BLOG_POST: process_scheduled_blog_post,
    CLEANUP_TASK: process_cleanup_task,
    NOTIFICATION: process_notification,
}


def run_processor(store: Redis, cfg: Settings, task_type: str, payload: Any, user_id: Optional[str]) -> Dict[str, Any]:
    processor = PROCESSORS.get(task_type)
    if processor is None:
        raise TaskProcessingError(f"Unknown task type: {task_type}")
    if not isinstance(payload, dict):
        raise TaskProcessingError("Task payload must be an object")
    return processor(store, cfg, payload, user_id)
