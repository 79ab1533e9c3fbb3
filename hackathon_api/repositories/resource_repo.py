"""Repo de recursos enviados al showcase (tutoriales, herramientas, cursos).

Claves:
- `showcase:resource:{id}`                  JSON del recurso
- `showcase:resources_list`                 lista de ids (más reciente primero)
- `showcase:resource_category:{c}`          set por categoría
- `showcase:resource_type:{t}`              set por tipo
- `showcase:resource_tag:{t}`               set por tag (minúsculas)
- `showcase:free_resources` / `paid_resources`
- `showcase:featured_resources`             set de destacados
- `user:{uid}:submitted_resources`          set de recursos enviados
- `user:{uid}:bookmarked_resources`         set de recursos marcados
"""
import secrets
from typing import Any, Dict, List, Optional

from redis import Redis

from hackathon_api.core.exceptions import NotFound, ValidationError
from hackathon_api.core.time import now_iso, now_ms
from hackathon_api.infrastructure.db.codec import decode_many, encode
from hackathon_api.services.authz import Requester

RESOURCES_LIST = "showcase:resources_list"
FEATURED = "showcase:featured_resources"
FREE = "showcase:free_resources"
PAID = "showcase:paid_resources"


def resource_key(resource_id: str) -> str:
    return f"showcase:resource:{resource_id}"


def category_key(category: str) -> str:
    return f"showcase:resource_category:{category}"


def type_key(resource_type: str) -> str:
    return f"showcase:resource_type:{resource_type}"


def tag_key(tag: str) -> str:
    return f"showcase:resource_tag:{tag.lower()}"


def submitted_key(user_id: str) -> str:
    return f"user:{user_id}:submitted_resources"


def bookmarked_key(user_id: str) -> str:
    return f"user:{user_id}:bookmarked_resources"


def list_resources(
    store: Redis,
    *,
    viewer_id: Optional[str] = None,
    featured: bool = False,
    category: Optional[str] = None,
    resource_type: Optional[str] = None,
    free: bool = False,
    tag: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Recursos por un único criterio, más reciente primero; `isBookmarked` con usuario."""
    if featured:
        ids = store.smembers(FEATURED)
    elif category and category != "all":
        ids = store.smembers(category_key(category))
    elif resource_type and resource_type != "all":
        ids = store.smembers(type_key(resource_type))
    elif free:
        ids = store.smembers(FREE)
    elif tag:
        ids = store.smembers(tag_key(tag))
    else:
        ids = store.lrange(RESOURCES_LIST, 0, -1)
    if not ids:
        return []

    keys = [resource_key(i) for i in ids]
    resources = decode_many(store.mget(keys), keys)
    resources.sort(key=lambda r: str(r.get("publishedDate") or ""), reverse=True)
    if viewer_id:
        bookmarked = store.smembers(bookmarked_key(viewer_id))
        for resource in resources:
            resource["isBookmarked"] = resource["id"] in bookmarked
    return resources


def submit_resource(store: Redis, requester: Requester, data: Dict[str, Any]) -> Dict[str, Any]:
    required = ("title", "description", "url", "type", "category")
    if any(not data.get(f) for f in required):
        raise ValidationError("Title, description, URL, type, and category are required")

    tags = data.get("tags")
    resource = {
        "id": f"resource_{now_ms()}_{secrets.token_hex(4)}",
        "title": data["title"],
        "description": data["description"],
        "url": data["url"],
        "imageUrl": data.get("imageUrl") or "",
        "type": data["type"],
        "category": data["category"],
        "tags": list(tags) if isinstance(tags, list) else [],
        "author": requester.display_name,
        "authorId": requester.id,
        "publishedDate": now_iso(),
        "featured": False,
        "stars": 0,
        "isFree": bool(data.get("isFree")),
    }

    rid = resource["id"]
    pipe = store.pipeline(transaction=False)
    pipe.set(resource_key(rid), encode(resource))
    pipe.lpush(RESOURCES_LIST, rid)
    pipe.sadd(submitted_key(requester.id), rid)
    pipe.sadd(category_key(resource["category"]), rid)
    pipe.sadd(type_key(resource["type"]), rid)
    pipe.sadd(FREE if resource["isFree"] else PAID, rid)
    for tag in dict.fromkeys(t.lower() for t in resource["tags"]):
        pipe.sadd(tag_key(tag), rid)
    pipe.execute()
    return resource


def toggle_bookmark(store: Redis, resource_id: Optional[str], user_id: str) -> bool:
    """Marca/desmarca el recurso. Devuelve el nuevo estado."""
    if not resource_id:
        raise ValidationError("Resource ID is required")
    if not store.exists(resource_key(resource_id)):
        raise NotFound("Resource not found")
    key = bookmarked_key(user_id)
    if store.srem(key, resource_id):
        return False
    store.sadd(key, resource_id)
    return True
