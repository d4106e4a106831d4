from __future__ import annotations

from typing import Any

from aura_checkout.common.errors import ProviderError
from aura_checkout.common.logging_setup import get_logger
from aura_checkout.schemas.checkout import CheckoutSubmission
from aura_checkout.services.asaas_client import AsaasClient

logger = get_logger(__name__)


def montar_payload_cliente(sub: CheckoutSubmission) -> dict[str, Any]:
    doc = sub.documento_limpo
    return {
        "name": sub.full_name,
        "email": sub.email,
        "phone": sub.telefone_limpo,
        "cpfCnpj": doc,
        "postalCode": sub.cep_limpo,
        "address": sub.address,
        "addressNumber": sub.number,
        "province": sub.city,
        "externalReference": doc,
    }


def resolver_cliente(sub: CheckoutSubmission, *, asaas: AsaasClient) -> str:
    """
    Busca o cliente no Asaas pelo CPF/CNPJ; se existir, usa o primeiro; senão cria.

    Busca-e-cria não é atômico: dois checkouts simultâneos com o mesmo documento
    podem criar dois clientes. Não há trava aqui porque a unicidade teria de vir
    do provedor, e ele não a garante.
    """
    doc = sub.documento_limpo
    existentes = asaas.listar_clientes(doc)
    if existentes:
        cliente_id = str(existentes[0]["id"])
        logger.info("customer_reused", extra={"customer_id": cliente_id, "matches": len(existentes)})
        return cliente_id

    criado = asaas.criar_cliente(montar_payload_cliente(sub))
    cliente_id = criado.get("id")
    if not cliente_id:
        raise ProviderError("Provedor não devolveu o id do cliente criado", code="ASAAS_NO_CUSTOMER_ID")
    logger.info("customer_created", extra={"customer_id": cliente_id})
    return str(cliente_id)
