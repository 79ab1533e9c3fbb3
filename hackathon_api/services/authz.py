"""Predicado único de autorización por dueño/rol.

Todos los repositorios lo usan para get/update/delete en lugar de repetir la
comprobación en cada handler.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import quote

from hackathon_api.core.exceptions import Forbidden

ADMIN_ROLE = "admin"
AVATAR_FALLBACK_URL = "https://ui-avatars.com/api/?name={name}&background=random"


@dataclass(frozen=True)
class Requester:
    """Sujeto autenticado de la petición."""
    id: str
    role: str = "user"
    email: Optional[str] = None
    user: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    @property
    def display_name(self) -> str:
        return self.user.get("name") or self.user.get("username") or self.email or self.id


def author_card(requester: Requester, *, avatar_fallback: bool = True) -> Dict[str, Any]:
    """Copia pública del autor que se guarda dentro de posts, pedidos y proyectos."""
    name = requester.display_name
    avatar = requester.user.get("avatar")
    if not avatar and avatar_fallback:
        avatar = AVATAR_FALLBACK_URL.format(name=quote(name))
    return {"id": requester.id, "name": name, "avatar": avatar or None}


def can_modify(record: Dict[str, Any], requester: Requester, owner_field: str = "userId") -> bool:
    """True si el solicitante es dueño del registro o admin."""
    if requester.is_admin:
        return True
    owner = record.get(owner_field)
    return owner is not None and str(owner) == str(requester.id)


def ensure_can_modify(
    record: Dict[str, Any],
    requester: Requester,
    owner_field: str = "userId",
    message: str = "Access denied",
) -> None:
    if not can_modify(record, requester, owner_field):
        raise Forbidden(message)
