from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Protocol

from aura_checkout.common.errors import AppError, PersistenceError
from aura_checkout.common.logging_setup import get_logger
from aura_checkout.schemas.checkout import CheckoutSubmission
from aura_checkout.services.catalogo_planos import obter_plano
from aura_checkout.services.metodos_pagamento import regra_para

logger = get_logger(__name__)


class RecordStore(Protocol):
    def inserir(self, tabela: str, linha: Mapping[str, Any]) -> str: ...


@dataclass(frozen=True)
class RegistrosComerciais:
    subscription_id: str | None
    company_id: str | None


def linha_assinatura(sub: CheckoutSubmission, valor: Decimal, hoje: date) -> dict[str, Any]:
    regra = regra_para(sub.payment_method)
    return {
        "company": sub.full_name,
        "cnpj": sub.documento_limpo,
        "plan": sub.nome_plano,
        "value": float(valor),
        "status": regra.status_assinatura,
        "next_billing": regra.vencimento(hoje).isoformat(),
        "payment_method": sub.payment_method.value,
        "email": sub.email,
        "billing_cycle": sub.billing_cycle.value,
    }


def linha_empresa(sub: CheckoutSubmission) -> dict[str, Any]:
    regra = regra_para(sub.payment_method)
    return {
        "cnpj": sub.documento_limpo,
        "name": sub.full_name,
        "email": sub.email,
        "phone": sub.telefone_limpo,
        "address": f"{sub.address}, {sub.number} - {sub.city}/{sub.state} - CEP: {sub.postal_code}",
        "status": regra.status_empresa,
        "plan": sub.nome_plano,
        "plan_id": obter_plano(sub.plan_key).asaas_plan_id,
    }


def _inserir_sem_propagar(store: RecordStore, tabela: str, linha: Mapping[str, Any]) -> str | None:
    try:
        return store.inserir(tabela, linha)
    except AppError as e:
        erro = e if isinstance(e, PersistenceError) else PersistenceError(e.message, code=e.code, cause=e)
        logger.error("record_write_failed", extra={"table": tabela, "code": erro.code, "err": erro.message})
    except Exception as e:
        logger.exception("record_write_failed", extra={"table": tabela, "err": str(e)})
    return None


def gravar_registros(
    sub: CheckoutSubmission,
    valor: Decimal,
    *,
    store: RecordStore,
    hoje: date,
) -> RegistrosComerciais:
    """
    Grava as linhas de `subscriptions` e `companies` de forma independente.
    Cada insert é tentado mesmo que o outro falhe; falhas só são logadas,
    pois o provedor de cobrança já é a fonte da verdade neste ponto.
    """
    subscription_id = _inserir_sem_propagar(store, "subscriptions", linha_assinatura(sub, valor, hoje))
    company_id = _inserir_sem_propagar(store, "companies", linha_empresa(sub))
    return RegistrosComerciais(subscription_id=subscription_id, company_id=company_id)
