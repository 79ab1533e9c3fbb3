"""
Showcase: proyectos y recursos.

Listados públicos (con token, `isLiked` / `isBookmarked` del usuario); el resto
autenticado. Sólo el autor o un admin editan o borran un proyecto.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from redis import Redis

from hackathon_api.api.deps import get_current_user, get_optional_user, get_store
from hackathon_api.api.schemas.community import (
    ProjectCreate,
    ProjectRef,
    ProjectUpdate,
    ResourceCreate,
    ResourceRef,
)
from hackathon_api.repositories import resource_repo, showcase_repo
from hackathon_api.services.authz import Requester

router = APIRouter(prefix="/showcase", tags=["Showcase"])


@router.get("/projects", response_model=dict, summary="Listar proyectos")
def list_projects(
    category: Optional[str] = Query(default=None),
    tag: Optional[str] = Query(default=None),
    featured: bool = Query(default=False),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    requester: Optional[Requester] = Depends(get_optional_user),
    store: Redis = Depends(get_store),
):
    projects = showcase_repo.list_projects(
        store,
        viewer_id=requester.id if requester else None,
        featured=featured,
        category=category,
        tag=tag,
        author_id=user_id,
    )
    return {"success": True, "data": projects}


@router.post("/projects", status_code=status.HTTP_201_CREATED, response_model=dict, summary="Crear proyecto")
def create_project(
    payload: ProjectCreate,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    return {"success": True, "data": showcase_repo.insert_project(store, requester, payload.to_record())}


@router.put("/projects/{project_id}", response_model=dict, summary="Actualizar proyecto (merge)")
def update_project(
    project_id: str,
    payload: ProjectUpdate,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    return {"success": True, "data": showcase_repo.update_project(store, project_id, requester, payload.to_record())}


@router.delete("/projects/{project_id}", response_model=dict, summary="Borrar proyecto")
def delete_project(project_id: str, requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    showcase_repo.delete_project(store, project_id, requester)
    return {"success": True, "message": "Project deleted successfully"}


@router.post("/like", response_model=dict, summary="Like / unlike de proyecto")
def like_project(payload: ProjectRef, requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    result = showcase_repo.toggle_like(store, payload.project_id, requester.id)
    message = "Project liked successfully" if result["liked"] else "Project unliked successfully"
    return {"success": True, **result, "message": message}


@router.get("/resources", response_model=dict, summary="Listar recursos")
def list_resources(
    category: Optional[str] = Query(default=None),
    resource_type: Optional[str] = Query(default=None, alias="type"),
    featured: bool = Query(default=False),
    free: bool = Query(default=False),
    tag: Optional[str] = Query(default=None),
    requester: Optional[Requester] = Depends(get_optional_user),
    store: Redis = Depends(get_store),
):
    resources = resource_repo.list_resources(
        store,
        viewer_id=requester.id if requester else None,
        featured=featured,
        category=category,
        resource_type=resource_type,
        free=free,
        tag=tag,
    )
    return {"success": True, "data": resources}


@router.post("/resources", status_code=status.HTTP_201_CREATED, response_model=dict, summary="Enviar recurso")
def submit_resource(
    payload: ResourceCreate,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    return {"success": True, "data": resource_repo.submit_resource(store, requester, payload.to_record())}


@router.post("/bookmark", response_model=dict, summary="Marcar / desmarcar recurso")
def bookmark_resource(payload: ResourceRef, requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    bookmarked = resource_repo.toggle_bookmark(store, payload.resource_id, requester.id)
    message = "Resource bookmarked successfully" if bookmarked else "Resource unbookmarked successfully"
    return {"success": True, "bookmarked": bookmarked, "message": message}
