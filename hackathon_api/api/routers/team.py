"""Búsqueda de equipo: pedidos y conexiones. Todo autenticado."""
from fastapi import APIRouter, Depends, status
from redis import Redis

from hackathon_api.api.deps import get_current_user, get_store
from hackathon_api.api.schemas.community import ConnectionCreate, ConnectionUpdate, TeamRequestCreate
from hackathon_api.repositories import team_repo
from hackathon_api.services.authz import Requester

router = APIRouter(prefix="/team", tags=["Team"])


@router.get("/requests", response_model=dict, summary="Todos los pedidos de equipo")
def list_requests(_: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    return {"success": True, "data": team_repo.list_requests(store)}


@router.get("/my-requests", response_model=dict, summary="Mis pedidos de equipo")
def my_requests(requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    return {"success": True, "data": team_repo.list_user_requests(store, requester.id)}


@router.post("/requests", status_code=status.HTTP_201_CREATED, response_model=dict, summary="Crear pedido")
def create_request(
    payload: TeamRequestCreate,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    return {"success": True, "data": team_repo.insert_request(store, requester, payload.to_record())}


@router.delete("/requests/{request_id}", response_model=dict, summary="Borrar pedido")
def delete_request(request_id: str, requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    team_repo.delete_request(store, request_id, requester)
    return {"success": True, "message": "Team request deleted successfully"}


@router.get("/connections", response_model=dict, summary="Mis conexiones (enviadas y recibidas)")
def list_connections(requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    return {"success": True, "data": team_repo.list_connections(store, requester.id)}


@router.post("/connect", status_code=status.HTTP_201_CREATED, response_model=dict, summary="Pedir conexión")
def connect(
    payload: ConnectionCreate,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    return {"success": True, "data": team_repo.create_connection(store, requester, payload.to_record())}


@router.put(
    "/connections/{connection_id}",
    response_model=dict,
    summary="Aceptar / rechazar conexión",
    description="Sólo el destinatario puede responder, y sólo mientras está `pending`.",
)
def respond(
    connection_id: str,
    payload: ConnectionUpdate,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    return {"success": True, "data": team_repo.respond_connection(store, connection_id, requester, payload.status)}
