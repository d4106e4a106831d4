from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from aura_checkout.common.errors import CouponExpired, CouponNotFound, CouponUsageExceeded, PersistenceError
from aura_checkout.common.logging_setup import get_logger
from aura_checkout.schemas.cupons import Cupom

logger = get_logger(__name__)


class CouponStore(Protocol):
    def buscar_cupom_ativo(self, codigo: str) -> dict[str, Any] | None: ...


def validar_cupom(codigo: str, *, store: CouponStore, agora: datetime | None = None) -> Cupom:
    """
    Busca o cupom ativo pelo código exato (quem chama já manda em maiúsculas) e
    confere janela de vigência e limite de usos. Devolve o cupom sem alterá-lo.
    """
    linha = store.buscar_cupom_ativo(codigo)
    if not linha:
        logger.info("coupon_not_found", extra={"coupon": codigo})
        raise CouponNotFound(codigo)

    try:
        cupom = Cupom.model_validate(linha)
    except PydanticValidationError as e:
        logger.error("coupon_row_invalid", extra={"coupon": codigo, "err": str(e)})
        raise PersistenceError(
            "Cadastro do cupom inválido no banco", code="COUPON_ROW_INVALID", cause=e, data={"coupon": codigo}
        ) from e
    agora = agora or datetime.now(UTC)
    if agora.tzinfo is None:
        agora = agora.replace(tzinfo=UTC)

    if not (cupom.start_date <= agora <= cupom.end_date):
        logger.info("coupon_expired", extra={"coupon": codigo})
        raise CouponExpired(codigo)

    if cupom.max_uses is not None and cupom.current_uses >= cupom.max_uses:
        logger.info("coupon_usage_exceeded", extra={"coupon": codigo, "uses": cupom.current_uses})
        raise CouponUsageExceeded(codigo)

    # TODO: incrementar coupons.current_uses após checkout concluído (pendente confirmação de produto)
    return cupom
