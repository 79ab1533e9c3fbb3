"""Repo de proyectos del showcase.

Claves:
- `showcase:project:{id}`          JSON del proyecto
- `showcase:projects_list`         lista de ids (más reciente primero)
- `user:{uid}:projects`            set de proyectos del autor
- `showcase:category:{c}`          set de ids por categoría
- `showcase:tag:{t}`               set de ids por tag (minúsculas)
- `showcase:featured_projects`     set de ids destacados
- `showcase:project:{id}:likes`    set de usuarios que dieron like
- `user:{uid}:liked_projects`      set de proyectos que el usuario likeó

Como en el tablón, `likes` se calcula con SCARD del set de likes.
"""
import secrets
from typing import Any, Dict, List, Optional

from redis import Redis

from hackathon_api.core.exceptions import NotFound, ValidationError
from hackathon_api.core.time import now_iso, now_ms, touch_iso
from hackathon_api.infrastructure.db.codec import decode, decode_many, encode
from hackathon_api.infrastructure.db.plan import IndexPlan
from hackathon_api.services.authz import Requester, author_card, ensure_can_modify

PROJECTS_LIST = "showcase:projects_list"
FEATURED = "showcase:featured_projects"
DEFAULT_IMAGE_URL = (
    "https://images.pexels.com/photos/4164418/pexels-photo-4164418.jpeg"
    "?auto=compress&cs=tinysrgb&w=1260&h=750&dpr=2"
)
REQUIRED_MESSAGE = "Title, description, and category are required"


def project_key(project_id: str) -> str:
    return f"showcase:project:{project_id}"


def likes_key(project_id: str) -> str:
    return f"showcase:project:{project_id}:likes"


def author_projects_key(user_id: str) -> str:
    return f"user:{user_id}:projects"


def liked_key(user_id: str) -> str:
    return f"user:{user_id}:liked_projects"


def category_key(category: str) -> str:
    return f"showcase:category:{category}"


def tag_key(tag: str) -> str:
    return f"showcase:tag:{tag.lower()}"


def _index_tags(tags: List[str]) -> List[str]:
    return list(dict.fromkeys(t.lower() for t in tags))


def _load(store: Redis, project_id: Optional[str]) -> Dict[str, Any]:
    if not project_id:
        raise ValidationError("Project ID is required")
    key = project_key(project_id)
    project = decode(store.get(key), key=key)
    if not project:
        raise NotFound("Project not found")
    return project


def _with_counters(store: Redis, projects: List[Dict[str, Any]], viewer_id: Optional[str]) -> List[Dict[str, Any]]:
    if not projects:
        return projects
    pipe = store.pipeline(transaction=False)
    for project in projects:
        pipe.scard(likes_key(project["id"]))
    counts = pipe.execute()
    liked = store.smembers(liked_key(viewer_id)) if viewer_id else None
    for project, count in zip(projects, counts):
        project["likes"] = int(count or 0)
        if liked is not None:
            project["isLiked"] = project["id"] in liked
    return projects


def list_projects(
    store: Redis,
    *,
    viewer_id: Optional[str] = None,
    featured: bool = False,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    author_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Proyectos por un único criterio (featured > categoría > tag > autor), más reciente primero."""
    if featured:
        ids = store.smembers(FEATURED)
    elif category and category != "all":
        ids = store.smembers(category_key(category))
    elif tag:
        ids = store.smembers(tag_key(tag))
    elif author_id:
        ids = store.smembers(author_projects_key(author_id))
    else:
        ids = store.lrange(PROJECTS_LIST, 0, -1)
    if not ids:
        return []

    keys = [project_key(i) for i in ids]
    projects = decode_many(store.mget(keys), keys)
    projects.sort(key=lambda p: str(p.get("createdAt") or ""), reverse=True)
    return _with_counters(store, projects, viewer_id)


def insert_project(store: Redis, requester: Requester, data: Dict[str, Any]) -> Dict[str, Any]:
    title = data.get("title")
    description = data.get("description")
    category = data.get("category")
    if not title or not description or not category:
        raise ValidationError(REQUIRED_MESSAGE)

    tags = data.get("tags")
    now = now_iso()
    project = {
        "id": f"project_{now_ms()}_{secrets.token_hex(4)}",
        "title": title,
        "description": description,
        "imageUrl": data.get("imageUrl") or DEFAULT_IMAGE_URL,
        "demoUrl": data.get("demoUrl"),
        "repoUrl": data.get("repoUrl"),
        "author": author_card(requester),
        "authorId": requester.id,
        "category": category,
        "tags": list(tags) if isinstance(tags, list) else [],
        "comments": 0,
        "featured": False,
        "createdAt": now,
        "updatedAt": now,
    }

    pipe = store.pipeline(transaction=False)
    pipe.set(project_key(project["id"]), encode(project))
    pipe.lpush(PROJECTS_LIST, project["id"])
    pipe.sadd(author_projects_key(requester.id), project["id"])
    pipe.sadd(category_key(category), project["id"])
    for tag in _index_tags(project["tags"]):
        pipe.sadd(tag_key(tag), project["id"])
    pipe.execute()
    return {**project, "likes": 0}


def update_project(store: Redis, project_id: str, requester: Requester, patch: Dict[str, Any]) -> Dict[str, Any]:
    """Merge; reindexa categoría y tags si cambian."""
    existing = _load(store, project_id)
    ensure_can_modify(existing, requester, owner_field="authorId", message="You can only update your own projects")

    for required in ("title", "description", "category"):
        if required in patch and not patch[required]:
            raise ValidationError(REQUIRED_MESSAGE)

    updated = dict(existing)
    for field in ("title", "description", "category", "imageUrl"):
        if patch.get(field):
            updated[field] = patch[field]
    for field in ("demoUrl", "repoUrl"):
        if field in patch:
            updated[field] = patch[field]
    if patch.get("tags") is not None:
        updated["tags"] = list(patch["tags"]) if isinstance(patch["tags"], list) else []
    updated["updatedAt"] = touch_iso(existing.get("updatedAt"))

    plan = IndexPlan(f"showcase:{project_id}:update")
    old_cat, new_cat = existing.get("category"), updated["category"]
    if new_cat != old_cat:
        plan.add(f"srem-category:{old_cat}", lambda: store.srem(category_key(old_cat), project_id))
        plan.add(f"sadd-category:{new_cat}", lambda: store.sadd(category_key(new_cat), project_id))
    old_tags = set(_index_tags(existing.get("tags") or []))
    new_tags = set(_index_tags(updated["tags"]))
    for tag in sorted(old_tags - new_tags):
        plan.add(f"srem-tag:{tag}", lambda t=tag: store.srem(tag_key(t), project_id))
    for tag in sorted(new_tags - old_tags):
        plan.add(f"sadd-tag:{tag}", lambda t=tag: store.sadd(tag_key(t), project_id))
    plan.add("write-project", lambda: store.set(project_key(project_id), encode(updated)))
    plan.execute()

    updated["likes"] = store.scard(likes_key(project_id))
    return updated


def delete_project(store: Redis, project_id: str, requester: Requester) -> None:
    project = _load(store, project_id)
    ensure_can_modify(project, requester, owner_field="authorId", message="You can only delete your own projects")
    author_id = project["authorId"]
    category = project.get("category")
    likers = store.smembers(likes_key(project_id))

    plan = IndexPlan(f"showcase:{project_id}:delete")
    plan.add("del-project", lambda: store.delete(project_key(project_id)))
    plan.add("lrem-list", lambda: store.lrem(PROJECTS_LIST, 0, project_id))
    plan.add("srem-author", lambda: store.srem(author_projects_key(author_id), project_id))
    plan.add(f"srem-category:{category}", lambda: store.srem(category_key(category), project_id))
    plan.add("srem-featured", lambda: store.srem(FEATURED, project_id))
    for tag in _index_tags(project.get("tags") or []):
        plan.add(f"srem-tag:{tag}", lambda t=tag: store.srem(tag_key(t), project_id))
    for user_id in sorted(likers):
        plan.add(f"srem-liked:{user_id}", lambda u=user_id: store.srem(liked_key(u), project_id))
    plan.add("del-likes", lambda: store.delete(likes_key(project_id)))
    plan.execute()


def toggle_like(store: Redis, project_id: Optional[str], user_id: str) -> Dict[str, Any]:
    """Like/unlike. Devuelve `{liked, likesCount}`."""
    _load(store, project_id)
    liked = not store.srem(liked_key(user_id), project_id)
    pipe = store.pipeline(transaction=False)
    if liked:
        pipe.sadd(liked_key(user_id), project_id)
        pipe.sadd(likes_key(project_id), user_id)
    else:
        pipe.srem(likes_key(project_id), user_id)
    pipe.scard(likes_key(project_id))
    count = pipe.execute()[-1]
    return {"liked": liked, "likesCount": int(count)}
