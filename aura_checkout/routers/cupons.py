from __future__ import annotations

from fastapi import APIRouter, Depends

from aura_checkout.common.errors import CouponError
from aura_checkout.routers.checkout import get_checkout_service
from aura_checkout.schemas.cupons import ValidarCupomIn, ValidarCupomOut
from aura_checkout.services.checkout import CheckoutService
from aura_checkout.services.cupons import validar_cupom

router = APIRouter(prefix="/coupons", tags=["Cupons"])


@router.post("/validate", response_model=ValidarCupomOut, response_model_exclude_none=True)
def validar_cupom_endpoint(
    in_: ValidarCupomIn,
    service: CheckoutService = Depends(get_checkout_service),
) -> ValidarCupomOut:
    try:
        cupom = validar_cupom(in_.code, store=service.store)
    except CouponError as e:
        return ValidarCupomOut(success=False, error=e.message)
    return ValidarCupomOut(success=True, coupon=cupom)
