"""Health (sin auth), salidas tipadas y estables."""
from fastapi import APIRouter, Depends, status
from redis import Redis

from hackathon_api.api.deps import get_store
from hackathon_api.api.schemas.health import HealthOut, PingOut
from hackathon_api.infrastructure.db.store import store_ready

router = APIRouter(tags=["Health"])  # no prefix to keep paths stable


@router.get("/ping", response_model=PingOut, summary="Ping básico")
def ping() -> PingOut:
    return PingOut(message="pong")


@router.get("/health", status_code=status.HTTP_200_OK, response_model=HealthOut, summary="Salud básica + store")
def health(store: Redis = Depends(get_store)) -> HealthOut:
    return HealthOut(ok=True, store=store_ready(store))
