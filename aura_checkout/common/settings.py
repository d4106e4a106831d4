# aura_checkout/common/settings.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from aura_checkout.common.errors import ConfigurationError

BASE_DIR = Path(__file__).resolve().parents[2]  # raiz do projeto


class Settings(BaseSettings):
    # Asaas (provedor de cobrança)
    ASAAS_API_KEY: str = ""
    ASAAS_API_URL: str = "https://api.asaas.com/v3"

    # Supabase / PostgREST (cupons + registros comerciais)
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = Field(
        default="",
        validation_alias=AliasChoices("SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_SERVICE_KEY"),
    )

    # Turnstile (verificação anti-bot)
    TURNSTILE_ENABLED: bool = True
    TURNSTILE_SECRET_KEY: str = ""
    TURNSTILE_VERIFY_URL: str = "https://challenges.cloudflare.com/turnstile/v0/siteverify"

    # Notificação (função de e-mail); vazio = deriva de SUPABASE_URL
    NOTIFY_URL: str = ""
    NOTIFY_MAX_WORKERS: int = 4

    # timeouts (connect, read) de toda chamada de saída
    HTTP_CONNECT_TIMEOUT: float = 5.0
    HTTP_READ_TIMEOUT: float = 30.0

    # nome IANA; a variável TZ do processo não é lida
    TIMEZONE: str = "America/Sao_Paulo"
    CORS_ORIGINS: str = "*"
    APP_ENV: str = "dev"

    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def http_timeout(self) -> tuple[float, float]:
        return (self.HTTP_CONNECT_TIMEOUT, self.HTTP_READ_TIMEOUT)

    @property
    def notify_url(self) -> str:
        if self.NOTIFY_URL:
            return self.NOTIFY_URL
        if self.SUPABASE_URL:
            return f"{self.SUPABASE_URL.rstrip('/')}/functions/v1/send-checkout-email"
        return ""

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()] or ["*"]


def validar_obrigatorias(settings: Settings) -> Settings:
    """Falha cedo (antes de qualquer trabalho) se faltar credencial/endpoint obrigatório."""
    faltando = [
        nome
        for nome in ("ASAAS_API_KEY", "ASAAS_API_URL", "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY")
        if not str(getattr(settings, nome) or "").strip()
    ]
    if settings.TURNSTILE_ENABLED and not settings.TURNSTILE_SECRET_KEY.strip():
        faltando.append("TURNSTILE_SECRET_KEY")
    try:
        ZoneInfo(settings.TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        faltando.append(f"TIMEZONE (valor inválido: {settings.TIMEZONE!r})")
    if faltando:
        raise ConfigurationError(
            "Configuração incompleta: defina " + ", ".join(faltando) + " no ambiente ou no .env",
            missing=faltando,
        )
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
