"""Feature flags: lectura pública filtrada por rol, escritura sólo admin."""
from typing import Optional

from fastapi import APIRouter, Depends
from redis import Redis

from hackathon_api.api.deps import get_optional_user, get_store, require_admin
from hackathon_api.api.schemas.misc import FeatureFlagUpdate
from hackathon_api.repositories import feature_flag_repo
from hackathon_api.services.authz import Requester


def _ensure_flags(store: Redis = Depends(get_store)) -> None:
    feature_flag_repo.initialize(store)


router = APIRouter(prefix="/feature-flags", tags=["FeatureFlags"], dependencies=[Depends(_ensure_flags)])


@router.get("", response_model=dict, summary="Listar flags visibles para el rol")
def list_flags(
    requester: Optional[Requester] = Depends(get_optional_user),
    store: Redis = Depends(get_store),
):
    role = requester.role if requester else "user"
    return {"success": True, "data": feature_flag_repo.list_flags(store, role), "userRole": role}


@router.put("/{flag_id}", response_model=dict, summary="Actualizar flag (admin)")
def update_flag(
    flag_id: str,
    payload: FeatureFlagUpdate,
    _admin: Requester = Depends(require_admin),
    store: Redis = Depends(get_store),
):
    return {"success": True, "data": feature_flag_repo.update_flag(store, flag_id, payload.to_record())}


@router.post("/reset", response_model=dict, summary="Restaurar defaults (admin)")
def reset_flags(_admin: Requester = Depends(require_admin), store: Redis = Depends(get_store)):
    return {"success": True, "data": feature_flag_repo.reset_flags(store)}
