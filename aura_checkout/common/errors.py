# aura_checkout/common/errors.py
from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Erro base da aplicação: mensagem legível + código estável + dados extras."""

    http_status: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: str = "APP_ERROR",
        cause: BaseException | None = None,
        retryable: bool = False,
        data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.cause = cause
        self.retryable = retryable
        self.data = data or {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "retryable": self.retryable, "data": self.data}


# ---------------------------
# Erros do usuário (4xx)
# ---------------------------
class UserError(AppError):
    http_status = 400


class ValidationError(UserError):
    """Submissão com campo ausente/mal formatado. Rejeitada antes de qualquer chamada externa."""


class CouponError(ValidationError):
    pass


class CouponNotFound(CouponError):
    def __init__(self, codigo: str) -> None:
        super().__init__("Cupom inválido ou inativo", code="COUPON_NOT_FOUND", data={"code": codigo})


class CouponExpired(CouponError):
    def __init__(self, codigo: str) -> None:
        super().__init__("Cupom expirado ou fora do período de validade", code="COUPON_EXPIRED", data={"code": codigo})


class CouponUsageExceeded(CouponError):
    def __init__(self, codigo: str) -> None:
        super().__init__("Cupom atingiu o limite de usos", code="COUPON_USAGE_EXCEEDED", data={"code": codigo})


class SecurityCheckFailed(UserError):
    def __init__(self, error_codes: list[str]) -> None:
        codes = ", ".join(error_codes)
        super().__init__(
            f"Verificação de segurança falhou: {codes}. Por favor, recarregue a página.",
            code="SECURITY_CHECK_FAILED",
            data={"error_codes": list(error_codes)},
        )


# ---------------------------
# Erros de integrações externas
# ---------------------------
class ExternalError(AppError):
    http_status = 502


class ProviderError(ExternalError):
    """Provedor de cobrança recusou (ou não respondeu) a operação; a mensagem segue como veio."""

    http_status = 400


class PersistenceError(ExternalError):
    pass


class NotificationError(ExternalError):
    pass


class ConfigurationError(AppError):
    def __init__(self, message: str, *, missing: list[str] | None = None) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR", data={"missing": list(missing or [])})


__all__ = [
    "AppError",
    "ConfigurationError",
    "CouponError",
    "CouponExpired",
    "CouponNotFound",
    "CouponUsageExceeded",
    "ExternalError",
    "NotificationError",
    "PersistenceError",
    "ProviderError",
    "SecurityCheckFailed",
    "UserError",
    "ValidationError",
]
