"""
Rate limit por ventana fija respaldado en el store (por identificador + ruta).

Los handlers no comparten memoria entre invocaciones, así que el contador vive en
Redis: `INCR` atómico y `EXPIRE` en el primer intento de la ventana.

Uso típico:
- Login por IP: allow(store, ("10.0.0.1", "login"), limit=5, window_seconds=900)
"""
from typing import Tuple

from redis import Redis


def _key(key: Tuple[str, str]) -> str:
    identifier, route = key
    return f"rate_limit:{route}:{identifier}"


def allow(store: Redis, key: Tuple[str, str], limit: int = 5, window_seconds: int = 60) -> bool:
    """Devuelve True si se permite la acción y registra el intento.

    key: (identificador, ruta)
    limit: máximo de intentos dentro de la ventana
    window_seconds: ventana de tiempo en segundos
    """
    k = _key(key)
    current = store.incr(k)
    if current == 1:
        store.expire(k, window_seconds)
    return current <= limit


def reset(store: Redis, key: Tuple[str, str]) -> None:
    """Limpia el contador (p. ej. tras un login exitoso)."""
    store.delete(_key(key))
