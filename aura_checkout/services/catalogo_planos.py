from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from types import MappingProxyType
from typing import NamedTuple

from aura_checkout.schemas.checkout import BillingCycle, PlanKey


class Plano(NamedTuple):
    nome: str
    precos: Mapping[BillingCycle, Decimal]
    asaas_plan_id: str  # id do plano gravado em companies.plan_id


def _plano(nome: str, mensal: str, anual: str, plan_id: str) -> Plano:
    precos = MappingProxyType({BillingCycle.MONTHLY: Decimal(mensal), BillingCycle.YEARLY: Decimal(anual)})
    return Plano(nome=nome, precos=precos, asaas_plan_id=plan_id)


# Catálogo somente-leitura, compartilhado pelo processo
PLANOS: Mapping[PlanKey, Plano] = MappingProxyType(
    {
        PlanKey.STARTER: _plano("Starter", "99.90", "890.00", "4f65fc87-2c9c-46cd-9ea3-6fa1d7d12889"),
        PlanKey.PRO: _plano("Pro", "297.00", "2600.00", "3c6ad4b5-6e31-48b8-ad92-715cec145eae"),
        PlanKey.BUSINESS: _plano("Business", "497.00", "4400.00", "d9552f1d-122e-4e68-bd60-c16592167c80"),
        PlanKey.INTELLIGENCE: _plano("Intelligence", "997.00", "8900.00", "a1d17fda-74e3-4e96-a5ff-de8843f37546"),
    }
)


def obter_plano(chave: PlanKey | str) -> Plano:
    return PLANOS[PlanKey(chave)]


def preco_base(chave: PlanKey | str, ciclo: BillingCycle | str) -> Decimal:
    return obter_plano(chave).precos[BillingCycle(ciclo)]


def listar_planos() -> list[dict[str, object]]:
    return [
        {
            "key": chave.value,
            "name": plano.nome,
            "prices": {ciclo.value: float(valor) for ciclo, valor in plano.precos.items()},
        }
        for chave, plano in PLANOS.items()
    ]
