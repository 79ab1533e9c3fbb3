"""
Helpers de fecha/hora para los registros del store.

Todos los timestamps se guardan como ISO-8601 UTC con milisegundos y sufijo `Z`
(mismo formato que `Date.prototype.toISOString` del frontend), de modo que el
orden lexicográfico coincide con el cronológico.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_iso() -> str:
    return to_iso(now_utc())


def now_ms() -> int:
    return int(now_utc().timestamp() * 1000)


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """Parsea un timestamp ISO (acepta `Z`). Devuelve None si no es válido."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def touch_iso(previous: Optional[str]) -> str:
    """Nuevo `updatedAt` estrictamente mayor que `previous`.

    Si el reloj no avanzó (misma milésima o reloj desfasado), suma 1 ms.
    """
    now = now_utc()
    now = now.replace(microsecond=now.microsecond // 1000 * 1000)
    prev = parse_iso(previous)
    if prev is not None and now <= prev:
        now = prev + timedelta(milliseconds=1)
    return to_iso(now)
