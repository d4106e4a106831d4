from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from aura_checkout.services.catalogo_planos import listar_planos

router = APIRouter(prefix="/plans", tags=["Planos"])


@router.get("")
def get_planos() -> list[dict[str, Any]]:
    return listar_planos()
