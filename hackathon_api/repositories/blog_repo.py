"""Repo de posts del blog.

Claves:
- `blog:post:{slug}`  HASH con los campos del post (`tags` guardado como JSON)
- `blog:posts_list`   lista de slugs (más reciente primero)

El slug se deriva del título y es único. Si un cambio de título cambia el slug,
el post se mueve de clave; la lista puede quedar con slugs colgantes ante una
falla parcial, así que las lecturas los omiten.
"""
import json
import re
from typing import Any, Dict, List, Optional

from redis import Redis

from hackathon_api.core.exceptions import Conflict, NotFound, ValidationError
from hackathon_api.core.time import now_iso, now_ms, touch_iso
from hackathon_api.infrastructure.db.codec import decode_json_list
from hackathon_api.infrastructure.db.plan import IndexPlan
from hackathon_api.services.authz import Requester, ensure_can_modify

POSTS_LIST = "blog:posts_list"
STATUSES = ("published", "draft", "scheduled")


def post_key(slug: str) -> str:
    return f"blog:post:{slug}"


def slugify(text: str) -> str:
    """Slug determinista: minúsculas, espacios a '-', sin no-palabra, '-' colapsados y recortados."""
    s = str(text).lower()
    s = re.sub(r"\s+", "-", s)
    s = re.sub(r"[^\w-]+", "", s, flags=re.ASCII)
    s = re.sub(r"--+", "-", s)
    return s.strip("-")


def _decode_post(raw: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """HASH crudo -> post con `tags` como lista. None si falta o no tiene id."""
    if not raw or not raw.get("id"):
        return None
    post = dict(raw)
    post["tags"] = decode_json_list(raw.get("tags"))
    return post


def _encode_post(post: Dict[str, Any]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for k, v in post.items():
        if k == "tags":
            out[k] = json.dumps(v if isinstance(v, list) else [])
        elif v is None:
            out[k] = ""
        else:
            out[k] = str(v)
    return out


def _read(store: Redis, slug: str) -> Optional[Dict[str, Any]]:
    return _decode_post(store.hgetall(post_key(slug)))


def _load(store: Redis, slug: str) -> Dict[str, Any]:
    post = _read(store, slug)
    if not post:
        raise NotFound("Post not found")
    return post


def list_posts(store: Redis) -> List[Dict[str, Any]]:
    """Todos los posts en el orden de la lista (omite slugs colgantes)."""
    slugs = store.lrange(POSTS_LIST, 0, -1)
    if not slugs:
        return []
    pipe = store.pipeline(transaction=False)
    for slug in slugs:
        pipe.hgetall(post_key(slug))
    return [p for p in (_decode_post(raw) for raw in pipe.execute()) if p]


def get_post(store: Redis, slug: str) -> Dict[str, Any]:
    return _load(store, slug)


def insert_post(store: Redis, requester: Requester, data: Dict[str, Any]) -> Dict[str, Any]:
    title = data.get("title")
    content = data.get("content")
    if not title or not content:
        raise ValidationError("Title and content are required")

    slug = slugify(title)
    if not slug:
        raise ValidationError("Title must contain at least one letter or digit")
    if _read(store, slug):
        raise Conflict("A post with this title already exists")

    status = data.get("status") or "published"
    if status not in STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")

    now = now_iso()
    tags = data.get("tags")
    post = {
        "id": f"{now_ms()}-{slug}",
        "slug": slug,
        "title": title,
        "content": content,
        "summary": data.get("summary") or "",
        "author": requester.email or "Anonymous",
        "authorId": requester.id,
        "publishedDate": now,
        "updatedDate": now,
        "tags": tags if isinstance(tags, list) else [],
        "imageUrl": data.get("imageUrl") or "",
        "status": status,
    }
    store.hset(post_key(slug), mapping=_encode_post(post))
    store.lpush(POSTS_LIST, slug)
    return post


def update_post(store: Redis, slug: str, requester: Requester, patch: Dict[str, Any]) -> Dict[str, Any]:
    """Merge sobre el post; si el título cambia el slug, mueve la clave y la lista."""
    existing = _load(store, slug)
    ensure_can_modify(existing, requester, owner_field="authorId", message="You can only edit your own blog posts")

    for required in ("title", "content"):
        if required in patch and not patch[required]:
            raise ValidationError("Title and content are required")

    updated = dict(existing)
    if patch.get("title"):
        updated["title"] = patch["title"]
    if patch.get("content"):
        updated["content"] = patch["content"]
    for field in ("summary", "imageUrl"):
        if field in patch and patch[field] is not None:
            updated[field] = patch[field]
    if patch.get("tags") is not None:
        updated["tags"] = patch["tags"] if isinstance(patch["tags"], list) else []
    if patch.get("status"):
        if patch["status"] not in STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")
        updated["status"] = patch["status"]
    updated["updatedDate"] = touch_iso(existing.get("updatedDate"))

    new_slug = slugify(updated["title"])
    if not new_slug:
        raise ValidationError("Title must contain at least one letter or digit")

    if new_slug != slug:
        if _read(store, new_slug):
            raise Conflict("A post with this title already exists")
        updated["slug"] = new_slug
        mapping = _encode_post(updated)
        plan = IndexPlan(f"blog:{slug}->{new_slug}")
        plan.add("hset-new", lambda: store.hset(post_key(new_slug), mapping=mapping))
        plan.add("del-old", lambda: store.delete(post_key(slug)))
        plan.add("lrem-old-slug", lambda: store.lrem(POSTS_LIST, 1, slug))
        plan.add("lpush-new-slug", lambda: store.lpush(POSTS_LIST, new_slug))
        plan.execute()
        return updated

    store.hset(post_key(slug), mapping=_encode_post(updated))
    return updated


def delete_post(store: Redis, slug: str, requester: Requester) -> None:
    post = _load(store, slug)
    ensure_can_modify(post, requester, owner_field="authorId", message="You can only delete your own blog posts")

    plan = IndexPlan(f"blog:{slug}:delete")
    plan.add("del-post", lambda: store.delete(post_key(slug)))
    plan.add("lrem-slug", lambda: store.lrem(POSTS_LIST, 1, slug))
    plan.execute()


def publish_post(store: Redis, slug: str) -> Dict[str, Any]:
    """Publica un post programado (`scheduled` -> `published`)."""
    post = _read(store, slug)
    if not post:
        raise NotFound(f"Blog post {slug} not found")
    if post.get("status") == "scheduled":
        now = now_iso()
        store.hset(post_key(slug), mapping={"status": "published", "publishedDate": now})
        post.update(status="published", publishedDate=now)
    return post
