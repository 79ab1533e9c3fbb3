"""
Tablón de la hackathon: posts, likes, marcadores, pedidos de equipo y tags.

`GET /posts` y `GET /tags` son públicos; con token válido los posts traen
`isBookmarked` del usuario. Los pedidos de equipo son los mismos que `/team`.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from redis import Redis

from hackathon_api.api.deps import get_current_user, get_optional_user, get_store
from hackathon_api.api.schemas.community import HackboardPostCreate, PostRef, TeamRequestCreate
from hackathon_api.repositories import hackboard_repo, team_repo
from hackathon_api.services.authz import Requester

router = APIRouter(prefix="/hackboard", tags=["Hackboard"])


@router.get("/posts", response_model=dict, summary="Listar posts del tablón")
def list_posts(
    category: Optional[str] = Query(default=None),
    tag: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    sort_by: str = Query(default="createdAt", alias="sortBy"),
    sort_order: str = Query(default="desc", alias="sortOrder"),
    requester: Optional[Requester] = Depends(get_optional_user),
    store: Redis = Depends(get_store),
):
    posts = hackboard_repo.list_posts(
        store,
        viewer_id=requester.id if requester else None,
        category=category,
        tag=tag,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return {"posts": posts}


@router.post("/posts", status_code=status.HTTP_201_CREATED, response_model=dict, summary="Crear post")
def create_post(
    payload: HackboardPostCreate,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    return {"success": True, "post": hackboard_repo.insert_post(store, requester, payload.to_record())}


@router.delete("/posts/{post_id}", response_model=dict, summary="Borrar post")
def delete_post(post_id: str, requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    hackboard_repo.delete_post(store, post_id, requester)
    return {"success": True, "message": "Post deleted successfully"}


@router.post("/like", response_model=dict, summary="Like / unlike")
def like_post(payload: PostRef, requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    result = hackboard_repo.toggle_like(store, payload.post_id, requester.id)
    message = "Post liked successfully" if result["liked"] else "Post unliked successfully"
    return {"success": True, **result, "message": message}


@router.post("/bookmark", response_model=dict, summary="Marcar / desmarcar")
def bookmark_post(payload: PostRef, requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    bookmarked = hackboard_repo.toggle_bookmark(store, payload.post_id, requester.id)
    message = "Post bookmarked successfully" if bookmarked else "Bookmark removed successfully"
    return {"success": True, "bookmarked": bookmarked, "message": message}


@router.get("/team-requests", response_model=dict, summary="Pedidos de equipo")
def list_team_requests(requester: Requester = Depends(get_current_user), store: Redis = Depends(get_store)):
    return {"teamRequests": team_repo.list_requests(store)}


@router.post("/team-requests", status_code=status.HTTP_201_CREATED, response_model=dict, summary="Crear pedido de equipo")
def create_team_request(
    payload: TeamRequestCreate,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    return {"success": True, "teamRequest": team_repo.insert_request(store, requester, payload.to_record())}


@router.delete("/team-requests/{request_id}", response_model=dict, summary="Borrar pedido de equipo")
def delete_team_request(
    request_id: str,
    requester: Requester = Depends(get_current_user),
    store: Redis = Depends(get_store),
):
    team_repo.delete_request(store, request_id, requester)
    return {"success": True, "message": "Team request deleted successfully"}


@router.get("/tags", response_model=dict, summary="Tags populares")
def popular_tags(store: Redis = Depends(get_store)):
    return {"tags": hackboard_repo.popular_tags(store)}
