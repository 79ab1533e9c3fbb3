"""
Endpoints para notas del usuario autenticado.
"""
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from redis import Redis

from hackathon_api.api.deps import get_current_user, get_store
from hackathon_api.api.schemas.note import NoteCreate, NoteUpdate
from hackathon_api.repositories import note_repo
from hackathon_api.services.authz import Requester

router = APIRouter(prefix="/notes", tags=["Note"])


@router.get(
    "",
    response_model=dict,
    summary="Listar notas",
    description="Lista notas del usuario con búsqueda, filtros (categoría, tags), orden y paginación.",
)
def list_notes(
    search: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    tags: Optional[str] = Query(default=None, description="Tags separados por coma"),
    sort_by: str = Query(default="updatedAt", alias="sortBy"),
    sort_order: str = Query(default="desc", alias="sortOrder"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    tag_list = [t for t in (tags or "").split(",") if t.strip()]
    notes, total = note_repo.list_notes(
        store,
        requester.id,
        search=search,
        category=category,
        tags=tag_list,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return {"notes": notes, "total": total, "page": page, "totalPages": math.ceil(total / limit)}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=dict,
    summary="Crear nota",
)
def create_note(
    payload: NoteCreate,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    return {"note": note_repo.insert_note(store, requester, payload.to_record())}


@router.get("/{note_id}", response_model=dict, summary="Obtener nota")
def get_note(note_id: str, requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    return {"note": note_repo.get_note(store, note_id, requester)}


@router.put("/{note_id}", response_model=dict, summary="Actualizar nota (merge)")
def update_note(
    note_id: str,
    payload: NoteUpdate,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    return {"note": note_repo.update_note(store, note_id, requester, payload.to_record())}


@router.delete("/{note_id}", response_model=dict, summary="Borrar nota")
def delete_note(note_id: str, requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    note_repo.delete_note(store, note_id, requester)
    return {"success": True, "message": "Note deleted successfully"}
