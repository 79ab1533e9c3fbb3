"""Planes de mutación multi-clave.

El store sólo garantiza atomicidad por clave, así que las secuencias como
"quitar índice viejo, agregar índice nuevo" se expresan como una lista explícita
de pasos con nombre que se ejecutan en orden. Si un paso falla se registra qué
pasos ya se aplicaron y se lanza `StoreUnavailable`; no hay reparación automática
y las lecturas toleran referencias colgantes.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Tuple

from redis.exceptions import RedisError

from hackathon_api.core.exceptions import StoreUnavailable

_log = logging.getLogger("hackathon.store.plan")


class IndexPlan:
    def __init__(self, label: str) -> None:
        self.label = label
        self.steps: List[Tuple[str, Callable[[], object]]] = []

    def add(self, name: str, action: Callable[[], object]) -> "IndexPlan":
        self.steps.append((name, action))
        return self

    def __len__(self) -> int:
        return len(self.steps)

    def execute(self) -> None:
        done: List[str] = []
        for name, action in self.steps:
            try:
                action()
            except RedisError as e:
                _log.error(
                    "Plan '%s' falló en paso '%s' (aplicados: %s): %s",
                    self.label, name, ", ".join(done) or "ninguno", e,
                )
                raise StoreUnavailable() from e
            done.append(name)
