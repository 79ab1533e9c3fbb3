"""Decodificación tipada de valores del store.

Redis devuelve `str` (o `None`); los registros se guardan como JSON. Aquí se
hace el único paso de parseo: si el valor no es un objeto JSON válido se trata
como ausente/corrupto y se descarta, nunca se propaga crudo hacia arriba.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

_log = logging.getLogger("hackathon.store.codec")


def encode(record: Dict[str, Any]) -> str:
    return json.dumps(record, separators=(",", ":"), ensure_ascii=False)


def decode(raw: Any, *, key: str | None = None) -> Optional[Dict[str, Any]]:
    """Parsea un registro JSON. Devuelve None si falta o está corrupto."""
    if raw is None:
        return None
    if isinstance(raw, dict):
        return raw
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        _log.warning("Registro corrupto en %s; se omite", key or "<desconocido>")
        return None
    if not isinstance(value, dict):
        _log.warning("Registro con tipo inesperado en %s (%s); se omite", key or "<desconocido>", type(value).__name__)
        return None
    return value


def decode_many(raws: Iterable[Any], keys: Iterable[str] | None = None) -> List[Dict[str, Any]]:
    """Decodifica un lote (p. ej. resultado de MGET) omitiendo faltantes y corruptos."""
    key_list = list(keys) if keys is not None else None
    out: List[Dict[str, Any]] = []
    for i, raw in enumerate(raws):
        rec = decode(raw, key=key_list[i] if key_list else None)
        if rec is not None:
            out.append(rec)
    return out


def decode_json_list(raw: Any) -> List[Any]:
    """Para campos de hash guardados como JSON (p. ej. `tags` de blog)."""
    if isinstance(raw, list):
        return raw
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return value if isinstance(value, list) else []
