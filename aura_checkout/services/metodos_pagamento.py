from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from types import MappingProxyType

from aura_checkout.schemas.checkout import PaymentMethod


class TipoArtefato(str, Enum):
    PIX = "pix"
    BOLETO = "boleto"


@dataclass(frozen=True)
class RegraPagamento:
    billing_type: str
    trial: bool
    dias_vencimento: int
    artefato: TipoArtefato | None
    notificacao: str

    @property
    def status_empresa(self) -> str:
        return "Pending" if self.trial else "AwaitingPayment"

    @property
    def status_assinatura(self) -> str:
        return "trial" if self.trial else "pending_payment"

    def vencimento(self, hoje: date) -> date:
        return hoje + timedelta(days=self.dias_vencimento)


# Única tabela método -> comportamento; toda ramificação por método passa por aqui
REGRAS_PAGAMENTO: Mapping[PaymentMethod, RegraPagamento] = MappingProxyType(
    {
        PaymentMethod.CREDIT_CARD: RegraPagamento("CREDIT_CARD", True, 7, None, "trial_started"),
        PaymentMethod.PIX_AUTO: RegraPagamento("PIX", True, 7, TipoArtefato.PIX, "pix_auto_created"),
        PaymentMethod.PIX: RegraPagamento("PIX", False, 0, TipoArtefato.PIX, "pix_created"),
        PaymentMethod.BOLETO: RegraPagamento("BOLETO", False, 3, TipoArtefato.BOLETO, "boleto_created"),
    }
)


def regra_para(metodo: PaymentMethod | str) -> RegraPagamento:
    return REGRAS_PAGAMENTO[PaymentMethod(metodo)]
