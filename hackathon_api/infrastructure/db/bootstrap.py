"""
Bootstrap del store: siembra los datos por defecto que la app espera encontrar.
Se ejecuta al inicio de la app. No tumba la app si el store no responde;
las rutas sembrarán de nuevo de forma perezosa.
"""
from __future__ import annotations

import logging

from redis import Redis
from redis.exceptions import RedisError

from hackathon_api.repositories import feature_flag_repo

_log = logging.getLogger("hackathon.store.bootstrap")


def ensure_defaults(store: Redis) -> None:
    """Garantiza el mapa de feature flags (SET NX, no pisa cambios previos)."""
    try:
        feature_flag_repo.initialize(store)
    except RedisError as e:
        _log.warning("No se pudieron sembrar feature flags: %s", e)
