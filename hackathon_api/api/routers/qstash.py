"""
Tareas en segundo plano con QStash.

- `/schedule`, `/welcome-email`, `/tasks`: autenticados y sujetos al flag `upstash_qstash`.
- `/webhook`: lo llama QStash; sin auth de usuario, valida `Upstash-Signature`
  sobre el cuerpo crudo.
"""
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from redis import Redis
from starlette.concurrency import run_in_threadpool

from hackathon_api.api.deps import (
    get_current_user,
    get_qstash,
    get_receiver,
    get_store,
    require_qstash_enabled,
)
from hackathon_api.api.schemas.misc import ScheduleTaskPayload, WelcomeEmailPayload
from hackathon_api.core.config import settings
from hackathon_api.infrastructure.qstash.client import QStashClient, QStashReceiver
from hackathon_api.services import task_service
from hackathon_api.services.authz import Requester

router = APIRouter(prefix="/qstash", tags=["QStash"])


@router.post(
    "/schedule",
    status_code=status.HTTP_201_CREATED,
    response_model=dict,
    summary="Programar tarea",
    dependencies=[Depends(require_qstash_enabled)],
)
def schedule(
    payload: ScheduleTaskPayload,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
    qstash: QStashClient = Depends(get_qstash),
):
    data = task_service.schedule_task(
        store,
        qstash,
        settings,
        requester,
        task_type=payload.type,
        payload=payload.payload,
        scheduled_for=payload.scheduled_for,
        delay=payload.delay,
    )
    return {"success": True, "data": data}


@router.post(
    "/welcome-email",
    status_code=status.HTTP_201_CREATED,
    response_model=dict,
    summary="Programar email de bienvenida",
    dependencies=[Depends(require_qstash_enabled)],
)
def welcome_email(
    payload: WelcomeEmailPayload,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
    qstash: QStashClient = Depends(get_qstash),
):
    data = task_service.schedule_welcome_email(
        store, qstash, settings, requester, email=payload.email, name=payload.name
    )
    return {"success": True, "data": data}


@router.get(
    "/tasks",
    response_model=dict,
    summary="Últimas tareas del usuario",
    dependencies=[Depends(require_qstash_enabled)],
)
def list_tasks(requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    return {"success": True, "data": task_service.list_tasks(store, requester)}


@router.post("/webhook", summary="Callback firmado de QStash")
async def webhook(
    request: Request,
    store: Redis = Depends(get_store),
    receiver: QStashReceiver = Depends(get_receiver),
):
    # La firma cubre el cuerpo exacto: se lee crudo, sin parsear antes
    body = await request.body()
    # Redis y SMTP son bloqueantes: fuera del event loop
    status_code, content = await run_in_threadpool(
        task_service.handle_webhook,
        store,
        receiver,
        settings,
        signature=request.headers.get("upstash-signature"),
        body=body,
    )
    return JSONResponse(status_code=status_code, content=content)
