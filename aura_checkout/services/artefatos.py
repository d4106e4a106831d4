from __future__ import annotations

from aura_checkout.common.logging_setup import get_logger
from aura_checkout.schemas.checkout import ArtefatoPagamento, PaymentMethod
from aura_checkout.services.asaas_client import AsaasClient
from aura_checkout.services.metodos_pagamento import TipoArtefato, regra_para

logger = get_logger(__name__)


def obter_artefato(
    assinatura_id: str,
    metodo: PaymentMethod,
    *,
    asaas: AsaasClient,
) -> ArtefatoPagamento | None:
    """
    Busca a primeira cobrança da assinatura e extrai o artefato do método:
    PIX -> imagem do QR + copia-e-cola; boleto -> URL + nosso número.
    Sem cobrança gerada ainda -> None (a resposta só omite os campos).
    """
    tipo = regra_para(metodo).artefato
    if tipo is None:
        return None

    cobrancas = asaas.listar_cobrancas_assinatura(assinatura_id)
    if not cobrancas:
        logger.info("artifact_no_invoice", extra={"subscription_id": assinatura_id})
        return None
    primeira = cobrancas[0]

    if tipo is TipoArtefato.PIX:
        pix = asaas.obter_pix_qrcode(str(primeira["id"]))
        return ArtefatoPagamento(pix_qr_code=pix.get("encodedImage"), pix_copy_paste=pix.get("payload"))

    return ArtefatoPagamento(boleto_url=primeira.get("bankSlipUrl"), boleto_barcode=primeira.get("nossoNumero"))
