from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

import requests

from aura_checkout.common.errors import ExternalError
from aura_checkout.common.http_client import http_post, read_json
from aura_checkout.common.logging_setup import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResultadoVerificacao:
    success: bool
    error_codes: list[str] = field(default_factory=list)


class TurnstileVerifier:
    """Verificação anti-bot (Cloudflare Turnstile siteverify)."""

    def __init__(
        self,
        secret: str,
        *,
        verify_url: str = "https://challenges.cloudflare.com/turnstile/v0/siteverify",
        timeout: tuple[float, float] = (5.0, 30.0),
        session: requests.Session | None = None,
    ) -> None:
        self.secret = secret
        self.verify_url = verify_url
        self.timeout = timeout
        self.session = session

    def verificar(self, token: str | None, ip: str) -> ResultadoVerificacao:
        if not token:
            return ResultadoVerificacao(False, ["missing-input-response"])
        try:
            res = http_post(
                self.verify_url,
                data={"secret": self.secret, "response": token, "remoteip": ip},
                timeout=self.timeout,
                session=self.session,
            )
            outcome = read_json(res)
        except ExternalError as e:
            logger.warning("turnstile_unavailable", extra={"code": e.code})
            return ResultadoVerificacao(False, ["internal-error"])
        if not isinstance(outcome, Mapping):
            logger.warning("turnstile_bad_payload", extra={"kind": type(outcome).__name__})
            return ResultadoVerificacao(False, ["internal-error"])

        resultado = ResultadoVerificacao(
            bool(outcome.get("success")),
            [str(c) for c in outcome.get("error-codes") or []],
        )
        logger.info("turnstile_verified", extra={"ok": resultado.success, "codes": resultado.error_codes})
        return resultado


class SemVerificacao:
    """Usado com TURNSTILE_ENABLED=0 (dev local)."""

    def verificar(self, token: str | None, ip: str) -> ResultadoVerificacao:
        return ResultadoVerificacao(True)
