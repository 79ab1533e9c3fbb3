"""Servicios de perfil de usuario.

Mantiene la API delgada y centraliza la actualización del usuario autenticado.
"""

from typing import Dict, Any

from redis import Redis

from hackathon_api.repositories import user_repo
from hackathon_api.services.authz import Requester


def get_my_profile(requester: Requester) -> Dict[str, Any]:
    """Usuario autenticado sin campos sensibles."""
    return user_repo.public_user(requester.user)


def update_my_profile(store: Redis, requester: Requester, partial_update: Dict[str, Any]) -> Dict[str, Any]:
    """Actualiza parcialmente nombre/email/preferencias y devuelve el usuario público."""
    return user_repo.public_user(user_repo.update_user(store, requester.id, partial_update))
