# aura_checkout/services/asaas_client.py
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

import requests

from aura_checkout.common.errors import ExternalError, ProviderError
from aura_checkout.common.http_client import http_request, read_json
from aura_checkout.common.logging_setup import get_logger

logger = get_logger(__name__)


def _primeiro_erro(corpo: Mapping[str, Any]) -> str | None:
    erros = corpo.get("errors")
    if isinstance(erros, list) and erros:
        e0 = erros[0] if isinstance(erros[0], Mapping) else {}
        return str(e0.get("description") or e0.get("code") or "Erro no provedor de pagamento")
    return None


class AsaasClient:
    """
    Cliente REST do Asaas (v3). Autenticação pelo header `access_token`.
    Sem retry: qualquer falha (recusa, timeout, rede, corpo inválido) vira ProviderError.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: tuple[float, float] = (5.0, 30.0),
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session
        self.headers = {"Content-Type": "application/json", "access_token": api_key}

    def _request(
        self,
        method: str,
        endpoint: str,
        *,
        body: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        logger.info("asaas_request", extra={"method": method, "endpoint": endpoint})
        try:
            res = http_request(
                method,
                url,
                json=dict(body) if body is not None else None,
                params=dict(params) if params else None,
                headers=self.headers,
                timeout=self.timeout,
                session=self.session,
            )
            corpo = read_json(res)
        except ExternalError as e:
            raise ProviderError(
                "Provedor de pagamento indisponível no momento. Tente novamente.",
                code=e.code,
                cause=e,
                retryable=e.retryable,
                data={"endpoint": endpoint},
            ) from e

        if not isinstance(corpo, Mapping):
            raise ProviderError("Resposta inesperada do provedor de pagamento", code="ASAAS_BAD_BODY")

        descricao = _primeiro_erro(corpo)
        if descricao is not None:
            logger.warning(
                "asaas_rejected",
                extra={"endpoint": endpoint, "status": res.status_code, "err": descricao},
            )
            raise ProviderError(descricao, code="ASAAS_REJECTED", data={"endpoint": endpoint, "status": res.status_code})
        if not res.ok:
            raise ProviderError(
                f"Falha HTTP {res.status_code} no provedor de pagamento",
                code="ASAAS_HTTP_ERROR",
                data={"endpoint": endpoint, "status": res.status_code},
            )
        return cast(dict[str, Any], dict(corpo))

    # ---- clientes ----
    def listar_clientes(self, cpf_cnpj: str) -> list[dict[str, Any]]:
        corpo = self._request("GET", "/customers", params={"cpfCnpj": cpf_cnpj})
        return list(corpo.get("data") or [])

    def criar_cliente(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/customers", body=payload)

    # ---- assinaturas / cobranças ----
    def criar_assinatura(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/subscriptions", body=payload)

    def listar_cobrancas_assinatura(self, assinatura_id: str) -> list[dict[str, Any]]:
        corpo = self._request("GET", f"/subscriptions/{assinatura_id}/payments")
        return list(corpo.get("data") or [])

    def obter_pix_qrcode(self, cobranca_id: str) -> dict[str, Any]:
        return self._request("GET", f"/payments/{cobranca_id}/pixQrCode")
