# aura_checkout/common/logging_setup.py
from __future__ import annotations

import logging
import os
import re
import sys
import uuid
from collections.abc import Iterable
from contextvars import ContextVar
from typing import Any

from pythonjsonlogger import jsonlogger

# ---------------------------
# Contexto propagado por request
# ---------------------------
correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="-")
app_env_ctx: ContextVar[str] = ContextVar("app_env", default="dev")

# credenciais dos provedores e PAN de cartão
_SECRET_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(access_token[\"']?\s*[:=]\s*[\"']?)([A-Za-z0-9_\-\$\.]{6,})", re.IGNORECASE),
    re.compile(r"(apikey[\"']?\s*[:=]\s*[\"']?)([A-Za-z0-9_\-\.]{6,})", re.IGNORECASE),
    re.compile(r"(authorization:\s*bearer\s+)([A-Za-z0-9\._\-]{6,})", re.IGNORECASE),
    re.compile(r"(secret[\"']?\s*[:=]\s*[\"']?)([A-Za-z0-9_\-\.]{6,})", re.IGNORECASE),
)
# PAN: 13 a 19 dígitos (com espaço ou hífen opcionais) que passam no Luhn
_PAN_CANDIDATO = re.compile(r"\b\d(?:[ -]?\d){12,18}\b")


def get_correlation_id() -> str:
    return correlation_id_ctx.get("-")


def set_correlation_id(value: str | None = None) -> str:
    """Define (ou gera) o correlation_id do contexto atual e o devolve."""
    cid = value or str(uuid.uuid4())
    correlation_id_ctx.set(cid)
    return cid


# chaves de `extra` que nunca saem em claro
_CAMPOS_SENSIVEIS = frozenset({"access_token", "apikey", "secret", "cardNumber", "ccv", "cardCVC", "creditCard"})


def _luhn_ok(digitos: str) -> bool:
    total = 0
    for i, d in enumerate(reversed(digitos)):
        n = int(d)
        if i % 2:
            n = n * 2 - 9 if n > 4 else n * 2
        total += n
    return total % 10 == 0


def _mascarar_pan(m: re.Match[str]) -> str:
    digitos = re.sub(r"\D", "", m.group(0))
    return "***" if _luhn_ok(digitos) else m.group(0)


def mask_secrets(msg: str) -> str:
    for p in _SECRET_PATTERNS:
        msg = p.sub(r"\1***", msg)
    return _PAN_CANDIDATO.sub(_mascarar_pan, msg)


class ContextFilter(logging.Filter):
    def __init__(self, *, service: str, version: str, mask: bool = False) -> None:
        super().__init__()
        self.service = service
        self.version = version
        self.mask = mask

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_ctx.get("-")
        record.env = app_env_ctx.get()
        record.service = self.service
        record.version = self.version
        record.pid = os.getpid()
        for campo in _CAMPOS_SENSIVEIS.intersection(record.__dict__):
            setattr(record, campo, "***")
        if self.mask and isinstance(record.msg, str):
            record.msg = mask_secrets(record.msg)
        return True


class UtcJsonFormatter(jsonlogger.JsonFormatter):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("timestamp", True)
        kwargs.setdefault("json_ensure_ascii", False)
        kwargs.setdefault("rename_fields", {"asctime": "ts", "levelname": "level", "message": "msg"})
        super().__init__(*args, **kwargs)

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        ts = log_record.get("ts")
        if isinstance(ts, str) and not ts.endswith("Z"):
            log_record["ts"] = ts + "Z"


def _build_json_formatter() -> logging.Formatter:
    return UtcJsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s "
        "%(correlation_id)s %(env)s %(service)s %(version)s %(pid)s %(filename)s:%(lineno)d"
    )


def _build_text_formatter() -> logging.Formatter:
    return logging.Formatter(
        "[%(asctime)s] %(levelname)s %(name)s %(env)s %(service)s:%(version)s "
        "(cid=%(correlation_id)s pid=%(pid)s) %(message)s"
    )


def setup_logging(
    *,
    level: int | str | None = None,
    json_console: bool | None = None,
    file_path: str | None = None,
    quiet_loggers: Iterable[str] = ("urllib3", "httpx"),
) -> None:
    """
    Configura o logging global a partir do ambiente:
      - LOG_LEVEL (padrão INFO), LOG_JSON (padrão 1), LOG_FILE (opcional)
      - LOG_MASK_SECRETS=1 mascara tokens e números de cartão nas mensagens
      - campos fixos: service, version, env, correlation_id, pid
    """
    service = os.getenv("APP_NAME", "aura-checkout")
    version = os.getenv("APP_VERSION", "0.0.0")
    app_env_ctx.set(os.getenv("APP_ENV", "dev"))

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
    if isinstance(level, str):
        level = getattr(logging, level, logging.INFO)
    if json_console is None:
        json_console = os.getenv("LOG_JSON", "1") not in ("0", "false", "False")
    file_path = file_path or os.getenv("LOG_FILE")
    mask = os.getenv("LOG_MASK_SECRETS", "0") in ("1", "true", "True")

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)

    ctx_filter = ContextFilter(service=service, version=version, mask=mask)
    handlers: list[tuple[logging.Handler, logging.Formatter]] = [
        (logging.StreamHandler(stream=sys.stdout), _build_json_formatter() if json_console else _build_text_formatter()),
    ]
    if file_path:
        handlers.append((logging.FileHandler(file_path, encoding="utf-8"), _build_json_formatter()))
    for handler, formatter in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(ctx_filter)
        root.addHandler(handler)

    for name in quiet_loggers or ():
        logging.getLogger(name).setLevel(logging.WARNING)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        logging.getLogger(name).setLevel(level)


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name or "aura_checkout")
