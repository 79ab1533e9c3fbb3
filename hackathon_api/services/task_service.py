"""
Tareas en segundo plano vía QStash: programar, listar y procesar el webhook.

Flujo:
1) `schedule_task` publica el mensaje a QStash y recién entonces persiste la tarea (`pending`).
2) QStash llama al webhook firmado; `handle_webhook` verifica la firma y pasa
   la tarea por `processing` -> `completed` | `failed`.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from redis import Redis

from hackathon_api.core.config import Settings
from hackathon_api.core.exceptions import DispatchError, InvalidSignature, ValidationError
from hackathon_api.core.time import now_iso, parse_iso
from hackathon_api.infrastructure.qstash.client import QStashClient, QStashError, QStashReceiver
from hackathon_api.repositories import task_repo
from hackathon_api.services.authz import Requester
from hackathon_api.services.task_processors import WELCOME_EMAIL, run_processor

_log = logging.getLogger("hackathon.tasks")

WELCOME_EMAIL_DELAY_SECONDS = 5


def schedule_task(
    store: Redis,
    qstash: QStashClient,
    cfg: Settings,
    requester: Requester,
    *,
    task_type: Optional[str],
    payload: Any,
    scheduled_for: Optional[str] = None,
    delay: Optional[int] = None,
) -> Dict[str, Any]:
    """Publica la tarea y la persiste. Si la publicación falla no queda registro."""
    if not task_type or payload is None:
        raise ValidationError("Task type and payload are required")

    not_before = None
    if scheduled_for:
        when = parse_iso(scheduled_for)
        if when is None:
            raise ValidationError("scheduledFor must be an ISO-8601 timestamp")
        not_before = int(when.timestamp())

    task_id = task_repo.new_task_id()
    message = {
        "taskId": task_id,
        "type": task_type,
        "payload": payload,
        "userId": requester.id,
        "createdAt": now_iso(),
    }
    try:
        response = qstash.publish_json(
            url=cfg.webhook_url(),
            body=message,
            headers={"X-Task-Id": task_id},
            delay=delay,
            not_before=not_before,
        )
    except QStashError as e:
        _log.error("No se pudo programar la tarea %s (%s): %s", task_id, task_type, e)
        raise DispatchError("Failed to schedule task")

    task = task_repo.build_task(
        task_id=task_id,
        task_type=task_type,
        payload=payload,
        user_id=requester.id,
        message_id=response["messageId"],
        scheduled_for=scheduled_for,
    )
    task_repo.insert_task(store, task)
    _log.info("Tarea %s (%s) programada messageId=%s", task_id, task_type, task["qstashMessageId"])
    return {"taskId": task_id, "messageId": task["qstashMessageId"], "task": task}


def schedule_welcome_email(
    store: Redis,
    qstash: QStashClient,
    cfg: Settings,
    requester: Requester,
    *,
    email: Optional[str],
    name: Optional[str],
) -> Dict[str, Any]:
    if not email or not name:
        raise ValidationError("Email and name are required")
    return schedule_task(
        store,
        qstash,
        cfg,
        requester,
        task_type=WELCOME_EMAIL,
        payload={"email": email, "name": name},
        delay=WELCOME_EMAIL_DELAY_SECONDS,
    )


def list_tasks(store: Redis, requester: Requester) -> List[Dict[str, Any]]:
    return task_repo.list_tasks(store, requester.id)


def _parse_message(body: bytes) -> Dict[str, Any]:
    try:
        message = json.loads(body or b"null")
    except ValueError:
        raise ValidationError("Webhook body must be JSON")
    if not isinstance(message, dict) or not message.get("taskId") or not message.get("type"):
        raise ValidationError("Webhook body must include taskId and type")
    return message


def handle_webhook(
    store: Redis,
    receiver: QStashReceiver,
    cfg: Settings,
    *,
    signature: Optional[str],
    body: bytes,
) -> Tuple[int, Dict[str, Any]]:
    """Verifica la firma y procesa la tarea. Devuelve (status, cuerpo).

    Con firma inválida no toca la tarea. Si el procesador falla la tarea queda
    `failed` y se responde 500 para que QStash pueda reintentar.
    """
    if not receiver.verify(signature=signature, body=body):
        _log.warning("Webhook con firma inválida rechazado")
        raise InvalidSignature("Invalid QStash signature")

    message = _parse_message(body)
    task_id = message["taskId"]
    task_type = message["type"]

    task_repo.transition(store, task_id, task_repo.PROCESSING)
    try:
        result = run_processor(store, cfg, task_type, message.get("payload"), message.get("userId"))
    except Exception as e:
        # cualquier falla del procesador queda registrada en la tarea
        _log.exception("Tarea %s (%s) falló", task_id, task_type)
        task_repo.transition(store, task_id, task_repo.FAILED, error=str(e), failedAt=now_iso())
        return 500, {"success": False, "taskId": task_id, "error": str(e)}

    task_repo.transition(store, task_id, task_repo.COMPLETED, result=result, completedAt=now_iso())
    _log.info("Tarea %s (%s) completada", task_id, task_type)
    return 200, {"success": True, "taskId": task_id, "result": result}
