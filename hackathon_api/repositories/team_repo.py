"""Repo de búsqueda de equipo: pedidos de equipo y conexiones entre usuarios.

Claves:
- `team:request:{id}`                 JSON del pedido
- `team:requests`                     lista de ids (más reciente primero)
- `user:{uid}:team_requests`          set de pedidos del autor
- `team:skill:{skill}`                set de pedidos por skill (minúsculas)
- `team:request:{id}:senders`         set de usuarios que ya pidieron conectar
- `team:connection:{id}`              JSON de la conexión
- `user:{uid}:sent_connections`       set de conexiones enviadas
- `user:{uid}:received_connections`   set de conexiones recibidas

El tablón (`/hackboard/team-requests`) y `/team/requests` comparten estos pedidos.
"""
import secrets
from typing import Any, Dict, Iterable, List

from redis import Redis

from hackathon_api.core.exceptions import Forbidden, NotFound, ValidationError
from hackathon_api.core.time import now_iso, now_ms, touch_iso
from hackathon_api.infrastructure.db.codec import decode, decode_many, encode
from hackathon_api.infrastructure.db.plan import IndexPlan
from hackathon_api.services.authz import Requester, author_card, ensure_can_modify

REQUESTS_LIST = "team:requests"
PENDING = "pending"
RESPONSES = ("accepted", "rejected")


def request_key(request_id: str) -> str:
    return f"team:request:{request_id}"


def senders_key(request_id: str) -> str:
    return f"team:request:{request_id}:senders"


def owner_requests_key(user_id: str) -> str:
    return f"user:{user_id}:team_requests"


def skill_key(skill: str) -> str:
    return f"team:skill:{skill.lower()}"


def connection_key(connection_id: str) -> str:
    return f"team:connection:{connection_id}"


def sent_key(user_id: str) -> str:
    return f"user:{user_id}:sent_connections"


def received_key(user_id: str) -> str:
    return f"user:{user_id}:received_connections"


def _new_id(prefix: str) -> str:
    return f"{prefix}_{now_ms()}_{secrets.token_hex(4)}"


def _load_many(store: Redis, ids: Iterable[str], key_fn) -> List[Dict[str, Any]]:
    keys = [key_fn(i) for i in ids]
    if not keys:
        return []
    records = decode_many(store.mget(keys), keys)
    records.sort(key=lambda r: str(r.get("createdAt") or ""), reverse=True)
    return records


# --- pedidos de equipo ---

def insert_request(store: Redis, requester: Requester, data: Dict[str, Any]) -> Dict[str, Any]:
    skills = data.get("skills")
    description = data.get("description")
    if not isinstance(skills, list) or not skills or not description:
        raise ValidationError("Skills and description are required")

    now = now_iso()
    request = {
        "id": _new_id("request"),
        "author": author_card(requester),
        "authorId": requester.id,
        "skills": skills,
        "description": description,
        "createdAt": now,
        "updatedAt": now,
    }

    pipe = store.pipeline(transaction=False)
    pipe.set(request_key(request["id"]), encode(request))
    pipe.lpush(REQUESTS_LIST, request["id"])
    pipe.sadd(owner_requests_key(requester.id), request["id"])
    for skill in skills:
        pipe.sadd(skill_key(skill), request["id"])
    pipe.execute()
    return request


def get_request(store: Redis, request_id: str) -> Dict[str, Any]:
    key = request_key(request_id)
    request = decode(store.get(key), key=key)
    if not request:
        raise NotFound("Team request not found")
    return request


def list_requests(store: Redis) -> List[Dict[str, Any]]:
    """Todos los pedidos, más reciente primero (omite ids colgantes)."""
    return _load_many(store, store.lrange(REQUESTS_LIST, 0, -1), request_key)


def list_user_requests(store: Redis, user_id: str) -> List[Dict[str, Any]]:
    return _load_many(store, store.smembers(owner_requests_key(user_id)), request_key)


def delete_request(store: Redis, request_id: str, requester: Requester) -> None:
    request = get_request(store, request_id)
    ensure_can_modify(request, requester, owner_field="authorId", message="You can only delete your own team requests")
    owner = request["authorId"]

    plan = IndexPlan(f"team:request:{request_id}:delete")
    plan.add("del-request", lambda: store.delete(request_key(request_id)))
    plan.add("lrem-list", lambda: store.lrem(REQUESTS_LIST, 0, request_id))
    plan.add("srem-owner", lambda: store.srem(owner_requests_key(owner), request_id))
    for skill in request.get("skills") or []:
        plan.add(f"srem-skill:{skill}", lambda s=skill: store.srem(skill_key(s), request_id))
    plan.add("del-senders", lambda: store.delete(senders_key(request_id)))
    plan.execute()


# --- conexiones ---

def list_connections(store: Redis, user_id: str) -> List[Dict[str, Any]]:
    """Conexiones enviadas y recibidas por el usuario, más reciente primero."""
    ids = store.sunion(sent_key(user_id), received_key(user_id))
    return _load_many(store, ids, connection_key)


def create_connection(store: Redis, requester: Requester, data: Dict[str, Any]) -> Dict[str, Any]:
    request_id = data.get("requestId")
    message = data.get("message")
    if not request_id or not message:
        raise ValidationError("Request ID and message are required")

    request = get_request(store, request_id)
    author = request.get("author") or {}
    if request.get("authorId") == requester.id:
        raise ValidationError("You cannot connect to your own team request")
    # SADD es atómico: el segundo intento del mismo usuario devuelve 0
    if not store.sadd(senders_key(request_id), requester.id):
        raise ValidationError("You have already sent a connection request to this team")

    sender = author_card(requester)
    now = now_iso()
    connection = {
        "id": _new_id("connection"),
        "requestId": request_id,
        "senderId": requester.id,
        "senderName": sender["name"],
        "senderAvatar": sender["avatar"],
        "recipientId": request["authorId"],
        "recipientName": author.get("name"),
        "recipientAvatar": author.get("avatar"),
        "message": message,
        "status": PENDING,
        "createdAt": now,
        "updatedAt": now,
    }

    pipe = store.pipeline(transaction=False)
    pipe.set(connection_key(connection["id"]), encode(connection))
    pipe.sadd(sent_key(requester.id), connection["id"])
    pipe.sadd(received_key(connection["recipientId"]), connection["id"])
    pipe.execute()
    return connection


def respond_connection(store: Redis, connection_id: str, requester: Requester, status: Any) -> Dict[str, Any]:
    """Acepta o rechaza una conexión pendiente. Sólo el destinatario puede responder."""
    key = connection_key(connection_id)
    connection = decode(store.get(key), key=key)
    if not connection:
        raise NotFound("Connection not found")
    if connection.get("recipientId") != requester.id:
        raise Forbidden("You can only respond to connection requests sent to you")
    if connection.get("status") != PENDING:
        raise ValidationError(f"Connection is already {connection.get('status')}")
    if status not in RESPONSES:
        raise ValidationError('Status must be "accepted" or "rejected"')

    updated = {**connection, "status": status, "updatedAt": touch_iso(connection.get("updatedAt"))}
    store.set(key, encode(updated))
    return updated
