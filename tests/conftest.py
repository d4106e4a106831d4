from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

import pytest
import requests

from aura_checkout.common.errors import PersistenceError, ProviderError
from aura_checkout.schemas.checkout import CheckoutSubmission
from aura_checkout.services.checkout import CheckoutService
from aura_checkout.services.turnstile_client import ResultadoVerificacao

TZ = ZoneInfo("America/Sao_Paulo")
AGORA = datetime(2026, 3, 10, 14, 30, tzinfo=TZ)


# ---------------------------
# Fakes dos colaboradores externos
# ---------------------------
class FakeAsaas:
    def __init__(self) -> None:
        self.clientes: list[dict[str, Any]] = []
        self.assinaturas: list[dict[str, Any]] = []
        self.cobrancas: dict[str, list[dict[str, Any]]] = {}
        self.erro_cliente: str | None = None
        self.erro_assinatura: str | None = None
        self.erro_cobrancas: str | None = None
        self.gerar_cobranca = True

    def listar_clientes(self, cpf_cnpj: str) -> list[dict[str, Any]]:
        return [c for c in self.clientes if c["cpfCnpj"] == cpf_cnpj]

    def criar_cliente(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        if self.erro_cliente:
            raise ProviderError(self.erro_cliente, code="ASAAS_REJECTED")
        cliente = {"id": f"cus_{len(self.clientes) + 1:06d}", **payload}
        self.clientes.append(cliente)
        return cliente

    def criar_assinatura(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        if self.erro_assinatura:
            raise ProviderError(self.erro_assinatura, code="ASAAS_REJECTED")
        n = len(self.assinaturas) + 1
        assinatura = {"id": f"sub_{n:06d}", **payload}
        self.assinaturas.append(assinatura)
        if self.gerar_cobranca:
            self.cobrancas[assinatura["id"]] = [
                {
                    "id": f"pay_{n:06d}",
                    "bankSlipUrl": f"https://www.asaas.com/b/pdf/pay_{n:06d}",
                    "nossoNumero": f"0000{n}",
                }
            ]
        return assinatura

    def listar_cobrancas_assinatura(self, assinatura_id: str) -> list[dict[str, Any]]:
        if self.erro_cobrancas:
            raise ProviderError(self.erro_cobrancas)
        return self.cobrancas.get(assinatura_id, [])

    def obter_pix_qrcode(self, cobranca_id: str) -> dict[str, Any]:
        return {"encodedImage": f"iVBORw0KGgo-{cobranca_id}", "payload": f"00020126580014br.gov.bcb.pix-{cobranca_id}"}


class FakeStore:
    def __init__(self) -> None:
        self.cupons: dict[str, dict[str, Any]] = {}
        self.tabelas: dict[str, list[dict[str, Any]]] = {"subscriptions": [], "companies": []}
        self.falhar: set[str] = set()

    def buscar_cupom_ativo(self, codigo: str) -> dict[str, Any] | None:
        linha = self.cupons.get(codigo)
        if linha and linha.get("is_active", True):
            return linha
        return None

    def inserir(self, tabela: str, linha: Mapping[str, Any]) -> str:
        if tabela in self.falhar:
            raise PersistenceError(f"insert em {tabela} recusado", code="STORE_HTTP_ERROR")
        rows = self.tabelas.setdefault(tabela, [])
        novo_id = f"{tabela[:3]}-{len(rows) + 1}"
        rows.append({"id": novo_id, **linha})
        return novo_id


class FakeVerificador:
    def __init__(self, ok: bool = True, codes: list[str] | None = None) -> None:
        self.ok = ok
        self.codes = codes or []
        self.chamadas: list[tuple[str | None, str]] = []

    def verificar(self, token: str | None, ip: str) -> ResultadoVerificacao:
        self.chamadas.append((token, ip))
        return ResultadoVerificacao(self.ok, list(self.codes))


class FakeNotificador:
    def __init__(self, erro: Exception | None = None) -> None:
        self.enviados: list[tuple[str, dict[str, Any]]] = []
        self.erro = erro

    def enviar(self, tipo: str, payload: Mapping[str, Any]) -> None:
        if self.erro is not None:
            raise self.erro
        self.enviados.append((tipo, dict(payload)))

    def shutdown(self, wait: bool = True) -> None:
        pass


# ---------------------------
# Fixtures
# ---------------------------
DADOS_BASE: dict[str, Any] = {
    "fullName": "Almoxarifado Central Ltda",
    "email": "Compras@Central.com.br",
    "phone": "(11) 98765-4321",
    "personType": "legal",
    "document": "12.345.678/0001-90",
    "postalCode": "01310-100",
    "address": "Av. Paulista",
    "number": "1578",
    "city": "São Paulo",
    "state": "SP",
    "paymentMethod": "pix",
    "planKey": "business",
    "billingCycle": "MONTHLY",
    "turnstileToken": "tok-ok",
}

DADOS_CARTAO: dict[str, Any] = {
    "cardNumber": "4111 1111 1111 1111",
    "cardExpiry": "08/29",
    "cardCVC": "123",
    "cardName": "MARIA SILVA",
}


@pytest.fixture
def dados() -> Callable[..., dict[str, Any]]:
    def _make(**over: Any) -> dict[str, Any]:
        base = dict(DADOS_BASE)
        if over.get("paymentMethod") == "credit_card":
            base.update(DADOS_CARTAO)
        base.update(over)
        return base

    return _make


@pytest.fixture
def submissao(dados: Callable[..., dict[str, Any]]) -> Callable[..., CheckoutSubmission]:
    def _make(**over: Any) -> CheckoutSubmission:
        return CheckoutSubmission.model_validate(dados(**over))

    return _make


@pytest.fixture
def asaas() -> FakeAsaas:
    return FakeAsaas()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def verificador() -> FakeVerificador:
    return FakeVerificador()


@pytest.fixture
def notificador() -> FakeNotificador:
    return FakeNotificador()


@pytest.fixture
def service(
    asaas: FakeAsaas,
    store: FakeStore,
    verificador: FakeVerificador,
    notificador: FakeNotificador,
) -> CheckoutService:
    return CheckoutService(
        asaas=asaas,  # type: ignore[arg-type]
        store=store,  # type: ignore[arg-type]
        verificador=verificador,
        notificador=notificador,  # type: ignore[arg-type]
        timezone="America/Sao_Paulo",
        relogio=lambda tz: AGORA.astimezone(tz),
    )


def cupom_linha(**over: Any) -> dict[str, Any]:
    linha: dict[str, Any] = {
        "id": "c0f1",
        "code": "AURA10",
        "type": "percentage",
        "value": 10,
        "is_active": True,
        "max_uses": 100,
        "current_uses": 3,
        "start_date": "2026-01-01T00:00:00+00:00",
        "end_date": "2026-12-31T23:59:59+00:00",
    }
    linha.update(over)
    return linha


def fazer_resposta(
    status: int,
    corpo: Any = None,
    *,
    content_type: str = "application/json",
    texto: str | None = None,
    url: str = "https://example.invalid",
) -> requests.Response:
    res = requests.Response()
    res.status_code = status
    res.url = url
    res.headers["content-type"] = content_type
    res._content = (texto if texto is not None else json.dumps(corpo)).encode("utf-8")
    return res


class SessaoGravada(requests.Session):
    """Session que não sai para a rede: devolve respostas enfileiradas e grava as chamadas."""

    def __init__(self, *respostas: requests.Response | Exception) -> None:
        super().__init__()
        self.respostas = list(respostas)
        self.chamadas: list[dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:  # type: ignore[override]
        self.chamadas.append({"method": method, "url": url, **kwargs})
        proxima = self.respostas.pop(0)
        if isinstance(proxima, Exception):
            raise proxima
        return proxima
