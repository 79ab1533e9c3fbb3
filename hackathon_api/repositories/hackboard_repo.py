"""Repo del tablón (hackboard): posts con likes, marcadores y tags populares.

Claves:
- `hackboard:post:{id}`             JSON del post
- `hackboard:posts`                 lista de ids (más reciente primero)
- `user:{uid}:posts`                set de posts del autor
- `hackboard:category:{c}`          set de ids por categoría
- `hackboard:tag:{t}`               set de ids por tag
- `hackboard:tag_counts`            ZSET tag -> cantidad de posts
- `hackboard:post:{id}:likes`       set de usuarios que dieron like
- `hackboard:post:{id}:bookmarks`   set de usuarios que lo marcaron
- `user:{uid}:bookmarks`            set de posts marcados por el usuario

`likes` no vive en el JSON: es el tamaño del set de likes, así el toggle es
un único SADD/SREM.
"""
import secrets
from typing import Any, Dict, List, Optional

from redis import Redis

from hackathon_api.core.exceptions import NotFound, ValidationError
from hackathon_api.core.time import now_iso
from hackathon_api.infrastructure.db.codec import decode, decode_many, encode
from hackathon_api.infrastructure.db.plan import IndexPlan
from hackathon_api.services.authz import Requester, author_card, ensure_can_modify

POSTS_LIST = "hackboard:posts"
TAG_COUNTS = "hackboard:tag_counts"
SORT_FIELDS = ("createdAt", "updatedAt", "likes", "title")
POPULAR_TAGS_LIMIT = 20


def post_key(post_id: str) -> str:
    return f"hackboard:post:{post_id}"


def likes_key(post_id: str) -> str:
    return f"hackboard:post:{post_id}:likes"


def bookmarkers_key(post_id: str) -> str:
    return f"hackboard:post:{post_id}:bookmarks"


def author_posts_key(user_id: str) -> str:
    return f"user:{user_id}:posts"


def bookmarks_key(user_id: str) -> str:
    return f"user:{user_id}:bookmarks"


def category_key(category: str) -> str:
    return f"hackboard:category:{category}"


def tag_key(tag: str) -> str:
    return f"hackboard:tag:{tag}"


def _load(store: Redis, post_id: Optional[str]) -> Dict[str, Any]:
    if not post_id:
        raise ValidationError("Post ID is required")
    key = post_key(post_id)
    post = decode(store.get(key), key=key)
    if not post:
        raise NotFound("Post not found")
    return post


def _with_counters(store: Redis, posts: List[Dict[str, Any]], viewer_id: Optional[str]) -> List[Dict[str, Any]]:
    """Agrega `likes` e `isBookmarked` (este último sólo con usuario)."""
    if not posts:
        return posts
    pipe = store.pipeline(transaction=False)
    for post in posts:
        pipe.scard(likes_key(post["id"]))
    counts = pipe.execute()
    bookmarked = store.smembers(bookmarks_key(viewer_id)) if viewer_id else set()
    for post, count in zip(posts, counts):
        post["likes"] = int(count or 0)
        post["isBookmarked"] = post["id"] in bookmarked
    return posts


def insert_post(store: Redis, requester: Requester, data: Dict[str, Any]) -> Dict[str, Any]:
    title = data.get("title")
    content = data.get("content")
    category = data.get("category")
    if not title or not content or not category:
        raise ValidationError("Title, content, and category are required")

    tags = data.get("tags")
    now = now_iso()
    post = {
        "id": secrets.token_urlsafe(15),
        "title": title,
        "content": content,
        "category": category,
        "tags": list(tags) if isinstance(tags, list) else [],
        "author": author_card(requester, avatar_fallback=False),
        "authorId": requester.id,
        "comments": 0,
        "createdAt": now,
        "updatedAt": now,
    }

    pipe = store.pipeline(transaction=False)
    pipe.set(post_key(post["id"]), encode(post))
    pipe.lpush(POSTS_LIST, post["id"])
    pipe.sadd(author_posts_key(requester.id), post["id"])
    pipe.sadd(category_key(category), post["id"])
    for tag in dict.fromkeys(post["tags"]):
        pipe.sadd(tag_key(tag), post["id"])
        pipe.zincrby(TAG_COUNTS, 1, tag)
    pipe.execute()
    return {**post, "likes": 0, "isBookmarked": False}


def list_posts(
    store: Redis,
    *,
    viewer_id: Optional[str] = None,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> List[Dict[str, Any]]:
    """Posts filtrados y ordenados; `isBookmarked` refleja al usuario si lo hay."""
    if sort_by not in SORT_FIELDS:
        raise ValidationError(f"sortBy must be one of: {', '.join(SORT_FIELDS)}")
    if sort_order not in ("asc", "desc"):
        raise ValidationError("sortOrder must be 'asc' or 'desc'")

    ids = store.lrange(POSTS_LIST, 0, -1)
    if not ids:
        return []
    keys = [post_key(i) for i in ids]
    posts = decode_many(store.mget(keys), keys)

    if category:
        posts = [p for p in posts if p.get("category") == category]
    if tag:
        posts = [p for p in posts if tag in (p.get("tags") or [])]
    if search:
        needle = search.lower()
        posts = [
            p for p in posts
            if needle in str(p.get("title", "")).lower() or needle in str(p.get("content", "")).lower()
        ]

    posts = _with_counters(store, posts, viewer_id)
    if sort_by == "likes":
        posts.sort(key=lambda p: p["likes"], reverse=(sort_order == "desc"))
    else:
        posts.sort(key=lambda p: str(p.get(sort_by) or ""), reverse=(sort_order == "desc"))
    return posts


def delete_post(store: Redis, post_id: str, requester: Requester) -> None:
    """Borra el post, sus índices, likes y marcadores de todos los usuarios."""
    post = _load(store, post_id)
    ensure_can_modify(post, requester, owner_field="authorId", message="You can only delete your own posts")
    author_id = post["authorId"]
    category = post.get("category")
    bookmarkers = store.smembers(bookmarkers_key(post_id))

    plan = IndexPlan(f"hackboard:{post_id}:delete")
    plan.add("del-post", lambda: store.delete(post_key(post_id)))
    plan.add("lrem-list", lambda: store.lrem(POSTS_LIST, 0, post_id))
    plan.add("srem-author", lambda: store.srem(author_posts_key(author_id), post_id))
    if category:
        plan.add(f"srem-category:{category}", lambda: store.srem(category_key(category), post_id))
    for tag in dict.fromkeys(post.get("tags") or []):
        plan.add(f"srem-tag:{tag}", lambda t=tag: store.srem(tag_key(t), post_id))
        plan.add(f"decr-tag-count:{tag}", lambda t=tag: store.zincrby(TAG_COUNTS, -1, t))
    plan.add("prune-tag-counts", lambda: store.zremrangebyscore(TAG_COUNTS, "-inf", 0))
    plan.add("del-likes", lambda: store.delete(likes_key(post_id)))
    for user_id in sorted(bookmarkers):
        plan.add(f"srem-bookmark:{user_id}", lambda u=user_id: store.srem(bookmarks_key(u), post_id))
    plan.add("del-bookmarkers", lambda: store.delete(bookmarkers_key(post_id)))
    plan.execute()


def toggle_like(store: Redis, post_id: Optional[str], user_id: str) -> Dict[str, Any]:
    """Like/unlike. Devuelve `{liked, likesCount}`."""
    _load(store, post_id)
    key = likes_key(post_id)
    liked = not store.srem(key, user_id)
    if liked:
        store.sadd(key, user_id)
    return {"liked": liked, "likesCount": store.scard(key)}


def toggle_bookmark(store: Redis, post_id: Optional[str], user_id: str) -> bool:
    """Marca/desmarca el post. Devuelve el nuevo estado."""
    _load(store, post_id)
    bookmarked = not store.srem(bookmarks_key(user_id), post_id)
    pipe = store.pipeline(transaction=False)
    if bookmarked:
        pipe.sadd(bookmarks_key(user_id), post_id)
        pipe.sadd(bookmarkers_key(post_id), user_id)
    else:
        pipe.srem(bookmarkers_key(post_id), user_id)
    pipe.execute()
    return bookmarked


def popular_tags(store: Redis, limit: int = POPULAR_TAGS_LIMIT) -> List[str]:
    """Tags con más posts, de mayor a menor."""
    return store.zrevrangebyscore(TAG_COUNTS, "+inf", 1, start=0, num=limit)
