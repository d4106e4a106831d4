# aura_checkout/services/notificacoes.py
from __future__ import annotations

from collections.abc import Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from decimal import Decimal
from typing import Any

import requests

from aura_checkout.common.errors import ExternalError, NotificationError
from aura_checkout.common.http_client import http_post
from aura_checkout.common.logging_setup import get_correlation_id, get_logger, set_correlation_id
from aura_checkout.schemas.checkout import ArtefatoPagamento, CheckoutSubmission
from aura_checkout.services.metodos_pagamento import TipoArtefato, regra_para

logger = get_logger(__name__)

TIPOS_NOTIFICACAO = frozenset({"trial_started", "pix_created", "pix_auto_created", "boleto_created"})


def montar_notificacao(
    sub: CheckoutSubmission,
    valor: Decimal,
    artefato: ArtefatoPagamento | None,
) -> dict[str, Any]:
    regra = regra_para(sub.payment_method)
    payload: dict[str, Any] = {
        "to": sub.email,
        "type": regra.notificacao,
        "customerName": sub.full_name,
        "planName": sub.nome_plano,
        "planValue": float(valor),
        "document": sub.documento_limpo,
    }
    if artefato is not None and regra.artefato is TipoArtefato.PIX:
        payload.update(pixQrCode=artefato.pix_qr_code, pixCopyPaste=artefato.pix_copy_paste, isTrial=regra.trial)
    elif artefato is not None and regra.artefato is TipoArtefato.BOLETO:
        payload["boletoUrl"] = artefato.boleto_url
    return payload


class NotificationDispatcher:
    """
    Envio fire-and-forget para a função de e-mail. O POST roda no executor;
    o resultado só é observado pelo callback de log, nunca pelo fluxo do checkout.
    """

    def __init__(
        self,
        url: str,
        *,
        max_workers: int = 4,
        timeout: tuple[float, float] = (5.0, 30.0),
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")

    def _post(self, payload: Mapping[str, Any], cid: str) -> None:
        set_correlation_id(cid)
        try:
            res = http_post(self.url, json=dict(payload), timeout=self.timeout, session=self.session)
        except ExternalError as e:
            raise NotificationError(e.message, code=e.code, cause=e, data={"type": payload.get("type")}) from e
        if not res.ok:
            raise NotificationError(
                f"Falha HTTP {res.status_code} ao enviar notificação",
                code="NOTIFY_HTTP_ERROR",
                data={"type": payload.get("type"), "status": res.status_code},
            )
        logger.info("notification_sent", extra={"type": payload.get("type")})

    @staticmethod
    def _registrar_resultado(tipo: str, fut: Future[None]) -> None:
        exc = fut.exception()
        if exc is None:
            return
        if isinstance(exc, NotificationError):
            logger.error("notification_failed", extra={"type": tipo, "code": exc.code, "err": exc.message})
        else:
            logger.error("notification_failed", extra={"type": tipo, "err": repr(exc)})

    def enviar(self, tipo: str, payload: Mapping[str, Any]) -> Future[None] | None:
        if tipo not in TIPOS_NOTIFICACAO:
            raise ValueError(f"Tipo de notificação desconhecido: {tipo}")
        if not self.url:
            logger.warning("notification_skipped_no_url", extra={"type": tipo})
            return None
        try:
            fut = self._executor.submit(self._post, {**payload, "type": tipo}, get_correlation_id())
        except RuntimeError as e:  # executor já encerrado
            logger.error("notification_not_submitted", extra={"type": tipo, "err": str(e)})
            return None
        fut.add_done_callback(lambda f: self._registrar_resultado(tipo, f))
        return fut

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
