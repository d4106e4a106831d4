from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from aura_checkout.schemas.checkout import BillingCycle, PlanKey
from aura_checkout.schemas.cupons import Cupom
from aura_checkout.services.catalogo_planos import preco_base

CENTAVOS = Decimal("0.01")


def _q(v: Decimal) -> Decimal:
    return v.quantize(CENTAVOS, rounding=ROUND_HALF_UP)


def calcular_desconto(base: Decimal, cupom: Cupom | None) -> Decimal:
    """percentage: base * valor / 100; fixed: o próprio valor."""
    if cupom is None:
        return Decimal("0.00")
    valor = Decimal(str(cupom.value))
    if cupom.type == "percentage":
        return _q(base * valor / Decimal(100))
    return _q(valor)


def calcular_preco_final(base: Decimal, cupom: Cupom | None = None) -> Decimal:
    """max(0, base - desconto); nunca negativo."""
    return max(Decimal("0.00"), _q(Decimal(base) - calcular_desconto(Decimal(base), cupom)))


def preco_checkout(plano: PlanKey | str, ciclo: BillingCycle | str, cupom: Cupom | None = None) -> Decimal:
    return calcular_preco_final(preco_base(plano, ciclo), cupom)
