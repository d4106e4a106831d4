# aura_checkout/services/supabase_client.py
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import requests

from aura_checkout.common.errors import ExternalError, PersistenceError
from aura_checkout.common.http_client import http_get, http_post, read_json
from aura_checkout.common.logging_setup import get_logger

logger = get_logger(__name__)


class SupabaseStore:
    """Acesso PostgREST (/rest/v1) com a service role key: cupons e registros comerciais."""

    def __init__(
        self,
        url: str,
        service_key: str,
        *,
        timeout: tuple[float, float] = (5.0, 30.0),
        session: requests.Session | None = None,
    ) -> None:
        self.rest_url = f"{url.rstrip('/')}/rest/v1"
        self.timeout = timeout
        self.session = session
        self.headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
        }

    def _erro(self, res: requests.Response, tabela: str) -> PersistenceError:
        try:
            corpo = res.json()
            detalhe = corpo.get("message") if isinstance(corpo, Mapping) else None
        except ValueError:
            detalhe = None
        return PersistenceError(
            detalhe or f"Falha HTTP {res.status_code} em {tabela}",
            code="STORE_HTTP_ERROR",
            data={"table": tabela, "status": res.status_code},
        )

    def selecionar_um(self, tabela: str, filtros: Mapping[str, str]) -> dict[str, Any] | None:
        params = {"select": "*", "limit": "1", **{k: f"eq.{v}" for k, v in filtros.items()}}
        try:
            res = http_get(
                f"{self.rest_url}/{tabela}",
                params=params,
                headers=self.headers,
                timeout=self.timeout,
                session=self.session,
            )
            if not res.ok:
                raise self._erro(res, tabela)
            linhas = read_json(res)
        except PersistenceError:
            raise
        except ExternalError as e:
            raise PersistenceError(e.message, code=e.code, cause=e, data={"table": tabela}) from e
        if isinstance(linhas, list) and linhas:
            return dict(linhas[0])
        return None

    def inserir(self, tabela: str, linha: Mapping[str, Any]) -> str:
        """Insere uma linha e devolve o id gerado."""
        try:
            res = http_post(
                f"{self.rest_url}/{tabela}",
                json=dict(linha),
                params={"select": "id"},
                headers={**self.headers, "Prefer": "return=representation"},
                timeout=self.timeout,
                session=self.session,
            )
            if not res.ok:
                raise self._erro(res, tabela)
            corpo = read_json(res)
        except PersistenceError:
            raise
        except ExternalError as e:
            raise PersistenceError(e.message, code=e.code, cause=e, data={"table": tabela}) from e

        registro = corpo[0] if isinstance(corpo, list) and corpo else corpo
        if not isinstance(registro, Mapping) or registro.get("id") is None:
            raise PersistenceError(f"Insert em {tabela} não devolveu id", code="STORE_NO_ID", data={"table": tabela})
        logger.info("store_insert_ok", extra={"table": tabela, "id": registro["id"]})
        return str(registro["id"])

    def buscar_cupom_ativo(self, codigo: str) -> dict[str, Any] | None:
        return self.selecionar_um("coupons", {"code": codigo, "is_active": "true"})
