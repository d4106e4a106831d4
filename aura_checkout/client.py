# aura_checkout/client.py
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import requests

from aura_checkout.common.errors import ExternalError
from aura_checkout.common.http_client import http_post
from aura_checkout.common.logging_setup import get_logger
from aura_checkout.schemas.checkout import CheckoutResult

logger = get_logger(__name__)

ERRO_NAO_JSON = "Erro do servidor: O endpoint não retornou JSON. Verifique se a URL do serviço está correta."
ERRO_PADRAO = "Erro ao processar pagamento"


def processar_checkout(
    url: str,
    dados: Mapping[str, Any],
    *,
    plano: str = "business",
    ciclo: str = "MONTHLY",
    session: requests.Session | None = None,
    timeout: tuple[float, float] = (5.0, 60.0),
) -> CheckoutResult:
    """
    Lado de quem chama o POST /create-subscription: sempre devolve um CheckoutResult,
    traduzindo corpo não-JSON e falhas de rede em mensagem legível.
    """
    try:
        res = http_post(url, json={**dados, "planKey": plano, "billingCycle": ciclo}, session=session, timeout=timeout)
    except ExternalError as e:
        return CheckoutResult.falha(e.message)

    content_type = (res.headers.get("content-type") or "").lower()
    if "application/json" not in content_type:
        logger.error("checkout_non_json_response", extra={"status": res.status_code, "sample": (res.text or "")[:200]})
        return CheckoutResult.falha(ERRO_NAO_JSON)

    try:
        corpo = res.json()
    except ValueError:
        return CheckoutResult.falha(ERRO_NAO_JSON)

    if not res.ok or not isinstance(corpo, Mapping) or not corpo.get("success"):
        erro = corpo.get("error") if isinstance(corpo, Mapping) else None
        return CheckoutResult.falha(str(erro or ERRO_PADRAO))

    return CheckoutResult.model_validate(corpo)
