from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    PIX = "pix"
    PIX_AUTO = "pix_auto"
    BOLETO = "boleto"


class PersonType(str, Enum):
    INDIVIDUAL = "individual"
    LEGAL = "legal"


class BillingCycle(str, Enum):
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class PlanKey(str, Enum):
    STARTER = "starter"
    PRO = "pro"
    BUSINESS = "business"
    INTELLIGENCE = "intelligence"


# dígitos esperados no documento por tipo de pessoa (CPF / CNPJ)
DOCUMENTO_DIGITOS = {PersonType.INDIVIDUAL: 11, PersonType.LEGAL: 14}

_RE_VALIDADE = re.compile(r"^\s*(\d{1,2})\s*/\s*(\d{2})\s*$")


def _digits(s: str | None) -> str:
    return re.sub(r"\D", "", s or "")


class CheckoutSubmission(BaseModel):
    """
    Corpo do POST /create-subscription (nomes camelCase no JSON).
    Imutável; o documento é checado contra o tipo de pessoa e os campos de cartão
    são exigidos só quando o método é cartão de crédito.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    full_name: str = Field(..., alias="fullName", min_length=1)
    email: str = Field(..., min_length=3)
    phone: str = Field(..., min_length=1)
    person_type: PersonType = Field(..., alias="personType")
    document: str = Field(..., min_length=1, description="CPF ou CNPJ, com ou sem máscara")

    postal_code: str = Field(..., alias="postalCode", min_length=1)
    address: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)

    payment_method: PaymentMethod = Field(..., alias="paymentMethod")
    plan_key: PlanKey = Field(PlanKey.BUSINESS, alias="planKey")
    billing_cycle: BillingCycle = Field(BillingCycle.MONTHLY, alias="billingCycle")

    card_number: str | None = Field(None, alias="cardNumber")
    card_expiry: str | None = Field(None, alias="cardExpiry", description="MM/YY")
    card_cvc: str | None = Field(None, alias="cardCVC")
    card_name: str | None = Field(None, alias="cardName")

    coupon_code: str | None = Field(None, alias="couponCode")
    turnstile_token: str | None = Field(None, alias="turnstileToken")

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("E-mail inválido")
        return v

    @field_validator("coupon_code", mode="before")
    @classmethod
    def _cupom_upper(cls, v: object) -> str | None:
        if v is None:
            return None
        s = str(v).strip().upper()
        return s or None

    @model_validator(mode="after")
    def _checar_documento_e_cartao(self) -> "CheckoutSubmission":
        esperado = DOCUMENTO_DIGITOS[self.person_type]
        if len(_digits(self.document)) != esperado:
            rotulo = "CPF" if self.person_type is PersonType.INDIVIDUAL else "CNPJ"
            raise ValueError(f"{rotulo} inválido: informe {esperado} dígitos")

        if self.payment_method is PaymentMethod.CREDIT_CARD:
            faltando = [
                alias
                for alias, valor in (
                    ("cardNumber", self.card_number),
                    ("cardExpiry", self.card_expiry),
                    ("cardCVC", self.card_cvc),
                    ("cardName", self.card_name),
                )
                if not (valor or "").strip()
            ]
            if faltando:
                raise ValueError("Dados do cartão obrigatórios: " + ", ".join(faltando))
            if not 13 <= len(_digits(self.card_number)) <= 19:
                raise ValueError("Número do cartão inválido")
            m = _RE_VALIDADE.match(self.card_expiry or "")
            if not m or not 1 <= int(m.group(1)) <= 12:
                raise ValueError("Validade do cartão inválida (use MM/AA)")
            if not re.fullmatch(r"\d{3,4}", (self.card_cvc or "").strip()):
                raise ValueError("CVC inválido")
        return self

    # ---- derivados normalizados ----
    @property
    def documento_limpo(self) -> str:
        return _digits(self.document)

    @property
    def telefone_limpo(self) -> str:
        return _digits(self.phone)

    @property
    def cep_limpo(self) -> str:
        return _digits(self.postal_code)

    @property
    def nome_plano(self) -> str:
        return f"Plano {self.plan_key.value.capitalize()}"

    def validade_cartao(self) -> tuple[str, str]:
        """(MM, 20YY) a partir de 'MM/YY'."""
        m = _RE_VALIDADE.match(self.card_expiry or "")
        if not m:
            raise ValueError("Validade do cartão inválida (use MM/AA)")
        return f"{int(m.group(1)):02d}", f"20{m.group(2)}"


class ArtefatoPagamento(BaseModel):
    """QR/copia-e-cola do PIX ou URL/nosso número do boleto. Transitório (não persistido)."""

    model_config = ConfigDict(frozen=True)

    pix_qr_code: str | None = None
    pix_copy_paste: str | None = None
    boleto_url: str | None = None
    boleto_barcode: str | None = None


class CheckoutResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    subscription_id: str | None = Field(None, alias="subscriptionId")
    company_id: str | None = Field(None, alias="companyId")
    asaas_subscription_id: str | None = Field(None, alias="asaasSubscriptionId")
    asaas_customer_id: str | None = Field(None, alias="asaasCustomerId")
    pix_qr_code: str | None = Field(None, alias="pixQrCode")
    pix_copy_paste: str | None = Field(None, alias="pixCopyPaste")
    boleto_url: str | None = Field(None, alias="boletoUrl")
    boleto_barcode: str | None = Field(None, alias="boletoBarcode")
    error: str | None = None

    @classmethod
    def falha(cls, error: str) -> "CheckoutResult":
        return cls(success=False, error=error)

    def to_json(self) -> dict[str, object]:
        return self.model_dump(by_alias=True, exclude_none=True)
