from __future__ import annotations

import re
from datetime import date
from decimal import Decimal
from typing import Any

from aura_checkout.common.errors import ProviderError
from aura_checkout.common.logging_setup import get_logger
from aura_checkout.schemas.checkout import CheckoutSubmission, PaymentMethod
from aura_checkout.services.asaas_client import AsaasClient
from aura_checkout.services.metodos_pagamento import regra_para

logger = get_logger(__name__)


def montar_payload_assinatura(
    cliente_id: str,
    sub: CheckoutSubmission,
    valor: Decimal,
    hoje: date,
) -> dict[str, Any]:
    """Payload de POST /subscriptions: tipo de cobrança e vencimento saem da tabela de regras."""
    regra = regra_para(sub.payment_method)
    payload: dict[str, Any] = {
        "customer": cliente_id,
        "billingType": regra.billing_type,
        "value": float(valor),
        "nextDueDate": regra.vencimento(hoje).isoformat(),
        "cycle": sub.billing_cycle.value,
        "description": f"Aura Almoxarifado - {sub.nome_plano}",
        "externalReference": sub.documento_limpo,
    }

    if sub.payment_method is PaymentMethod.CREDIT_CARD:
        mes, ano = sub.validade_cartao()
        payload["creditCard"] = {
            "holderName": sub.card_name,
            "number": re.sub(r"\D", "", sub.card_number or ""),
            "expiryMonth": mes,
            "expiryYear": ano,
            "ccv": sub.card_cvc,
        }
        payload["creditCardHolderInfo"] = {
            "name": sub.card_name,
            "email": sub.email,
            "cpfCnpj": sub.documento_limpo,
            "postalCode": sub.cep_limpo,
            "addressNumber": sub.number,
            "phone": sub.telefone_limpo,
        }
    return payload


def criar_assinatura(
    cliente_id: str,
    sub: CheckoutSubmission,
    valor: Decimal,
    *,
    asaas: AsaasClient,
    hoje: date,
) -> dict[str, Any]:
    """Envia uma única criação de assinatura. Recusa do provedor sobe como ProviderError, sem retry."""
    payload = montar_payload_assinatura(cliente_id, sub, valor, hoje)
    assinatura = asaas.criar_assinatura(payload)
    if not assinatura.get("id"):
        raise ProviderError("Provedor não devolveu o id da assinatura criada", code="ASAAS_NO_SUBSCRIPTION_ID")
    logger.info(
        "subscription_created",
        extra={
            "subscription_id": assinatura["id"],
            "billing_type": payload["billingType"],
            "next_due_date": payload["nextDueDate"],
            "value": payload["value"],
        },
    )
    return assinatura
