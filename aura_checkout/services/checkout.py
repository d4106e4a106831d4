# aura_checkout/services/checkout.py
from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Protocol
from zoneinfo import ZoneInfo

from aura_checkout.common.errors import ProviderError, SecurityCheckFailed
from aura_checkout.common.logging_setup import get_logger
from aura_checkout.common.settings import Settings, validar_obrigatorias
from aura_checkout.schemas.checkout import ArtefatoPagamento, CheckoutResult, CheckoutSubmission
from aura_checkout.services.artefatos import obter_artefato
from aura_checkout.services.asaas_client import AsaasClient
from aura_checkout.services.assinaturas import criar_assinatura
from aura_checkout.services.clientes import resolver_cliente
from aura_checkout.services.cupons import validar_cupom
from aura_checkout.services.metodos_pagamento import regra_para
from aura_checkout.services.notificacoes import NotificationDispatcher, montar_notificacao
from aura_checkout.services.precos import preco_checkout
from aura_checkout.services.registros import gravar_registros
from aura_checkout.services.supabase_client import SupabaseStore
from aura_checkout.services.turnstile_client import ResultadoVerificacao, SemVerificacao, TurnstileVerifier

logger = get_logger(__name__)


class Verificador(Protocol):
    def verificar(self, token: str | None, ip: str) -> ResultadoVerificacao: ...


class CheckoutService:
    """
    Orquestra um checkout, em sequência:
      verificação anti-bot -> cupom/preço -> cliente -> assinatura -> registros
      -> artefato de pagamento (PIX/boleto) -> notificação.

    Falha na verificação, no cupom, no cliente ou na assinatura aborta tudo.
    Registros e notificação são efeitos colaterais: falham só no log.
    Reenviar o mesmo documento reaproveita o cliente, mas cria outra assinatura.
    """

    def __init__(
        self,
        *,
        asaas: AsaasClient,
        store: SupabaseStore,
        verificador: Verificador,
        notificador: NotificationDispatcher,
        timezone: str = "America/Sao_Paulo",
        relogio: Callable[[ZoneInfo], datetime] | None = None,
    ) -> None:
        self.asaas = asaas
        self.store = store
        self.verificador = verificador
        self.notificador = notificador
        self.tz = ZoneInfo(timezone)
        self._relogio = relogio or (lambda tz: datetime.now(tz))

    def processar(self, sub: CheckoutSubmission, *, ip_cliente: str = "") -> CheckoutResult:
        agora = self._relogio(self.tz)
        hoje = agora.astimezone(self.tz).date()
        regra = regra_para(sub.payment_method)

        verificacao = self.verificador.verificar(sub.turnstile_token, ip_cliente)
        if not verificacao.success:
            logger.warning("security_check_failed", extra={"codes": verificacao.error_codes})
            raise SecurityCheckFailed(verificacao.error_codes)

        cupom = validar_cupom(sub.coupon_code, store=self.store, agora=agora) if sub.coupon_code else None
        valor = preco_checkout(sub.plan_key, sub.billing_cycle, cupom)
        logger.info(
            "checkout_started",
            extra={
                "plan": sub.plan_key.value,
                "cycle": sub.billing_cycle.value,
                "method": sub.payment_method.value,
                "coupon": cupom.code if cupom else None,
                "value": float(valor),
            },
        )

        cliente_id = resolver_cliente(sub, asaas=self.asaas)
        assinatura = criar_assinatura(cliente_id, sub, valor, asaas=self.asaas, hoje=hoje)
        registros = gravar_registros(sub, valor, store=self.store, hoje=hoje)

        resultado = CheckoutResult(
            success=True,
            subscription_id=registros.subscription_id,
            company_id=registros.company_id,
            asaas_subscription_id=str(assinatura["id"]),
            asaas_customer_id=cliente_id,
        )

        artefato: ArtefatoPagamento | None = None
        if regra.artefato is not None:
            try:
                artefato = obter_artefato(str(assinatura["id"]), sub.payment_method, asaas=self.asaas)
            except ProviderError as e:
                # assinatura já existe no provedor; segue sem os campos do artefato
                logger.error("artifact_fetch_failed", extra={"subscription_id": assinatura["id"], "err": e.message})
            if artefato is not None:
                resultado = resultado.model_copy(update=artefato.model_dump(exclude_none=True))

        if regra.artefato is None or artefato is not None:
            self._notificar(sub, valor, artefato)

        logger.info("checkout_done", extra={"asaas_subscription_id": resultado.asaas_subscription_id})
        return resultado

    def _notificar(self, sub: CheckoutSubmission, valor: Decimal, artefato: ArtefatoPagamento | None) -> None:
        payload = montar_notificacao(sub, valor, artefato)
        try:
            self.notificador.enviar(payload["type"], payload)
        except Exception as e:
            logger.exception("notification_dispatch_error", extra={"type": payload["type"], "err": str(e)})


def build_checkout_service(settings: Settings) -> CheckoutService:
    """Monta o serviço com os clientes reais; falha cedo com ConfigurationError."""
    validar_obrigatorias(settings)
    timeout = settings.http_timeout
    verificador: Verificador = (
        TurnstileVerifier(settings.TURNSTILE_SECRET_KEY, verify_url=settings.TURNSTILE_VERIFY_URL, timeout=timeout)
        if settings.TURNSTILE_ENABLED
        else SemVerificacao()
    )
    return CheckoutService(
        asaas=AsaasClient(settings.ASAAS_API_URL, settings.ASAAS_API_KEY, timeout=timeout),
        store=SupabaseStore(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY, timeout=timeout),
        verificador=verificador,
        notificador=NotificationDispatcher(
            settings.notify_url,
            max_workers=settings.NOTIFY_MAX_WORKERS,
            timeout=timeout,
        ),
        timezone=settings.TIMEZONE,
    )
