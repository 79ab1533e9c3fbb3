"""Cliente del store clave-valor (Redis / Upstash Redis).

El cliente se construye una sola vez en el arranque (`main.on_startup`) y se
guarda en `app.state.store`; routers y repositorios lo reciben por inyección
(`api.deps.get_store`), nunca desde un global de módulo.
"""
from __future__ import annotations

import logging

from redis import Redis
from redis.exceptions import RedisError

from hackathon_api.core.config import Settings

_log = logging.getLogger("hackathon.store")


def build_store(cfg: Settings) -> Redis:
    """Crea el cliente con respuestas decodificadas a `str`."""
    client = Redis.from_url(
        cfg.redis_url,
        decode_responses=True,
        socket_timeout=cfg.redis_socket_timeout,
        socket_connect_timeout=cfg.redis_socket_timeout,
        health_check_interval=30,
    )
    _log.info("Cliente Redis creado")
    return client


def store_ready(store: Redis) -> bool:
    """PING al store; nunca lanza."""
    try:
        return bool(store.ping())
    except RedisError as e:
        _log.warning("Store no disponible: %s", e)
        return False
