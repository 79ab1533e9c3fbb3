"""Contador de ejemplo (INCR atómico)."""
from redis import Redis

COUNTER_KEY = "example:counter"


def get_count(store: Redis) -> int:
    raw = store.get(COUNTER_KEY)
    try:
        return int(raw or 0)
    except ValueError:
        return 0


def increment(store: Redis) -> int:
    return int(store.incr(COUNTER_KEY))


def reset(store: Redis) -> int:
    store.delete(COUNTER_KEY)
    return 0
