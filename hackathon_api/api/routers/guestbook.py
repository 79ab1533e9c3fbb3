"""Ejemplos sin auth: libro de visitas y contador."""
from fastapi import APIRouter, Depends, status
from redis import Redis

from hackathon_api.api.deps import get_store
from hackathon_api.api.schemas.misc import GuestbookEntryIn
from hackathon_api.core.config import settings
from hackathon_api.repositories import counter_repo, guestbook_repo

router = APIRouter(tags=["Examples"])


@router.get("/guestbook", response_model=dict, summary="Últimas entradas")
def list_entries(store: Redis = Depends(get_store)):
    return {"success": True, "data": guestbook_repo.list_entries(store, settings.guestbook_page_size)}


@router.post("/guestbook", status_code=status.HTTP_201_CREATED, response_model=dict, summary="Firmar libro")
def add_entry(payload: GuestbookEntryIn, store: Redis = Depends(get_store)):
    entry = guestbook_repo.add_entry(store, payload.name, payload.message, settings.guestbook_max_entries)
    return {"success": True, "data": entry}


@router.get("/counter", response_model=dict)
def get_counter(store: Redis = Depends(get_store)):
    return {"success": True, "data": {"count": counter_repo.get_count(store)}}


@router.post("/counter", response_model=dict)
def increment_counter(store: Redis = Depends(get_store)):
    return {"success": True, "data": {"count": counter_repo.increment(store)}}


@router.delete("/counter", response_model=dict)
def reset_counter(store: Redis = Depends(get_store)):
    return {"success": True, "data": {"count": counter_repo.reset(store)}}
