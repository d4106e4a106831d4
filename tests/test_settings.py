from __future__ import annotations

import pytest

from aura_checkout.common.errors import ConfigurationError
from aura_checkout.common.settings import Settings, validar_obrigatorias
from aura_checkout.services.checkout import build_checkout_service

COMPLETO = {
    "ASAAS_API_KEY": "$aact_abc",
    "SUPABASE_URL": "https://proj.supabase.co",
    "SUPABASE_SERVICE_ROLE_KEY": "service",
    "TURNSTILE_SECRET_KEY": "0x4AAA",
    "TIMEZONE": "America/Sao_Paulo",
}


def _settings(**over: object) -> Settings:
    return Settings(_env_file=None, **{**COMPLETO, **over})  # type: ignore[arg-type]


def test_lista_todas_as_faltantes() -> None:
    with pytest.raises(ConfigurationError) as exc:
        validar_obrigatorias(_settings(ASAAS_API_KEY="", SUPABASE_URL=""))
    assert exc.value.data["missing"] == ["ASAAS_API_KEY", "SUPABASE_URL"]
    assert "ASAAS_API_KEY" in exc.value.message


def test_turnstile_desligado_dispensa_segredo() -> None:
    assert validar_obrigatorias(_settings(TURNSTILE_ENABLED=False, TURNSTILE_SECRET_KEY=""))


def test_turnstile_ligado_exige_segredo() -> None:
    with pytest.raises(ConfigurationError, match="TURNSTILE_SECRET_KEY"):
        validar_obrigatorias(_settings(TURNSTILE_SECRET_KEY=""))


def test_url_de_notificacao_derivada() -> None:
    assert _settings().notify_url == "https://proj.supabase.co/functions/v1/send-checkout-email"
    assert _settings(NOTIFY_URL="https://mail/x").notify_url == "https://mail/x"


def test_build_falha_antes_de_montar_clientes() -> None:
    with pytest.raises(ConfigurationError):
        build_checkout_service(_settings(SUPABASE_SERVICE_ROLE_KEY=""))


def test_build_com_configuracao_completa() -> None:
    service = build_checkout_service(_settings())
    try:
        assert service.asaas.base_url == "https://api.asaas.com/v3"
    finally:
        service.notificador.shutdown()


def test_timezone_invalido_falha_no_startup() -> None:
    with pytest.raises(ConfigurationError, match="TIMEZONE"):
        validar_obrigatorias(_settings(TIMEZONE="UTC0"))


def test_variavel_tz_do_processo_e_ignorada(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TZ", ":/etc/localtime")
    monkeypatch.delenv("TIMEZONE", raising=False)
    sem_timezone = {k: v for k, v in COMPLETO.items() if k != "TIMEZONE"}
    settings = Settings(_env_file=None, **sem_timezone)  # type: ignore[arg-type]
    assert settings.TIMEZONE == "America/Sao_Paulo"
    assert validar_obrigatorias(settings)
