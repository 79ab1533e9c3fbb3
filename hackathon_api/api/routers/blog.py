"""Endpoints del blog: lectura pública, escritura autenticada."""
from fastapi import APIRouter, Depends, status
from redis import Redis

from hackathon_api.api.deps import get_current_user, get_store
from hackathon_api.api.schemas.blog import BlogPostCreate, BlogPostUpdate
from hackathon_api.repositories import blog_repo
from hackathon_api.services.authz import Requester

router = APIRouter(prefix="/blog", tags=["Blog"])


@router.get("", response_model=dict, summary="Listar posts")
def list_posts(store: Redis = Depends(get_store)):
    return {"success": True, "data": blog_repo.list_posts(store)}


@router.get("/{slug}", response_model=dict, summary="Obtener post por slug")
def get_post(slug: str, store: Redis = Depends(get_store)):
    return {"success": True, "data": blog_repo.get_post(store, slug)}


@router.post("", status_code=status.HTTP_201_CREATED, response_model=dict, summary="Crear post")
def create_post(
    payload: BlogPostCreate,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    return {"success": True, "data": blog_repo.insert_post(store, requester, payload.to_record())}


@router.put(
    "/{slug}",
    response_model=dict,
    summary="Actualizar post",
    description="Si el nuevo título cambia el slug, el post se mueve y el slug viejo deja de existir.",
)
def update_post(
    slug: str,
    payload: BlogPostUpdate,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    return {"success": True, "data": blog_repo.update_post(store, slug, requester, payload.to_record())}


@router.delete("/{slug}", response_model=dict, summary="Borrar post")
def delete_post(slug: str, requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    blog_repo.delete_post(store, slug, requester)
    return {"success": True, "message": "Post deleted successfully"}
