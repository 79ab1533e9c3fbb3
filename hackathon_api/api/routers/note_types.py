"""Endpoints para tipos de nota (plantillas por usuario)."""
from fastapi import APIRouter, Depends, status
from redis import Redis

from hackathon_api.api.deps import get_current_user, get_store
from hackathon_api.api.schemas.note import NoteTypeCreate, NoteTypeUpdate
from hackathon_api.repositories import note_type_repo
from hackathon_api.services.authz import Requester

router = APIRouter(prefix="/note-types", tags=["NoteType"])


@router.get("", response_model=dict, summary="Listar tipos de nota")
def list_note_types(requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    return {"noteTypes": note_type_repo.list_note_types(store, requester.id)}


@router.post("", status_code=status.HTTP_201_CREATED, response_model=dict, summary="Crear tipo de nota")
def create_note_type(
    payload: NoteTypeCreate,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    return {"noteType": note_type_repo.insert_note_type(store, requester, payload.to_record())}


@router.get("/{type_id}", response_model=dict)
def get_note_type(type_id: str, requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    return {"noteType": note_type_repo.get_note_type(store, type_id, requester)}


@router.put("/{type_id}", response_model=dict)
def update_note_type(
    type_id: str,
    payload: NoteTypeUpdate,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    return {"noteType": note_type_repo.update_note_type(store, type_id, requester, payload.to_record())}


@router.delete(
    "/{type_id}",
    response_model=dict,
    summary="Borrar tipo de nota",
    description="409 si alguna nota del dueño usa el tipo.",
)
def delete_note_type(type_id: str, requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    note_type_repo.delete_note_type(store, type_id, requester)
    return {"success": True, "message": "Note type deleted successfully"}
