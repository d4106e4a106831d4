from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pydantic
import pytest

from aura_checkout.schemas.checkout import CheckoutResult, CheckoutSubmission, PaymentMethod


def test_normaliza_campos(submissao: Callable[..., CheckoutSubmission]) -> None:
    sub = submissao(couponCode="  aura10 ")
    assert sub.documento_limpo == "12345678000190"
    assert sub.telefone_limpo == "11987654321"
    assert sub.cep_limpo == "01310100"
    assert sub.email == "compras@central.com.br"
    assert sub.coupon_code == "AURA10"
    assert sub.nome_plano == "Plano Business"


def test_cupom_vazio_vira_none(submissao: Callable[..., CheckoutSubmission]) -> None:
    assert submissao(couponCode="   ").coupon_code is None


@pytest.mark.parametrize(
    "person_type,document",
    [
        ("individual", "12.345.678/0001-90"),
        ("legal", "123.456.789-09"),
        ("individual", "123.456.789"),
    ],
)
def test_documento_deve_bater_com_tipo_de_pessoa(
    dados: Callable[..., dict[str, Any]], person_type: str, document: str
) -> None:
    with pytest.raises(pydantic.ValidationError):
        CheckoutSubmission.model_validate(dados(personType=person_type, document=document))


def test_cpf_valido_para_pessoa_fisica(submissao: Callable[..., CheckoutSubmission]) -> None:
    sub = submissao(personType="individual", document="123.456.789-09")
    assert sub.documento_limpo == "12345678909"


def test_cartao_exige_campos(dados: Callable[..., dict[str, Any]]) -> None:
    payload = dados(paymentMethod="credit_card")
    payload.pop("cardCVC")
    with pytest.raises(pydantic.ValidationError, match="cardCVC"):
        CheckoutSubmission.model_validate(payload)


@pytest.mark.parametrize("expiry", ["13/29", "0829", "8/2029"])
def test_validade_invalida(dados: Callable[..., dict[str, Any]], expiry: str) -> None:
    with pytest.raises(pydantic.ValidationError):
        CheckoutSubmission.model_validate(dados(paymentMethod="credit_card", cardExpiry=expiry))


def test_pix_nao_exige_cartao(submissao: Callable[..., CheckoutSubmission]) -> None:
    sub = submissao(paymentMethod="pix")
    assert sub.payment_method is PaymentMethod.PIX
    assert sub.card_number is None


def test_validade_expandida(submissao: Callable[..., CheckoutSubmission]) -> None:
    assert submissao(paymentMethod="credit_card", cardExpiry="3/31").validade_cartao() == ("03", "2031")


def test_submissao_imutavel(submissao: Callable[..., CheckoutSubmission]) -> None:
    sub = submissao()
    with pytest.raises(pydantic.ValidationError):
        sub.email = "outro@x.com"  # type: ignore[misc]


def test_resultado_omite_campos_vazios() -> None:
    corpo = CheckoutResult(success=True, asaas_subscription_id="sub_1", pix_qr_code="img").to_json()
    assert corpo == {"success": True, "asaasSubscriptionId": "sub_1", "pixQrCode": "img"}
    assert CheckoutResult.falha("x").to_json() == {"success": False, "error": "x"}
