# aura_checkout/main.py
from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aura_checkout.common.errors import AppError
from aura_checkout.common.logging_setup import get_logger, setup_logging
from aura_checkout.common.middlewares import CorrelationIdMiddleware, PreflightVazioMiddleware
from aura_checkout.common.settings import get_settings
from aura_checkout.routers.checkout import router as checkout_router
from aura_checkout.routers.cupons import router as cupons_router
from aura_checkout.routers.planos import router as planos_router
from aura_checkout.schemas.checkout import CheckoutResult
from aura_checkout.services.checkout import CheckoutService, build_checkout_service

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Inicialização de logging
# -----------------------------------------------------------------------------
def _init_logging() -> None:
    # Lê envs: LOG_LEVEL, LOG_JSON, LOG_FILE, LOG_MASK_SECRETS, APP_NAME, APP_VERSION, APP_ENV
    setup_logging()
    logger.info(
        "app_startup",
        extra={"app": os.getenv("APP_NAME", "aura-checkout"), "version": os.getenv("APP_VERSION", "0.0.0")},
    )


def _mensagem_validacao(exc: RequestValidationError) -> str:
    partes: list[str] = []
    for err in exc.errors():
        msg = str(err.get("msg", "")).removeprefix("Value error, ")
        campo = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        partes.append(f"{campo}: {msg}" if campo else msg)
    return "; ".join(partes) or "Dados inválidos"


# -----------------------------------------------------------------------------
# Criação do app
# -----------------------------------------------------------------------------
def create_app(checkout_service: CheckoutService | None = None) -> FastAPI:
    _init_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # configuração obrigatória é checada aqui, antes de aceitar requests
        if app.state.checkout_service is None:
            app.state.checkout_service = build_checkout_service(get_settings())
        yield
        app.state.checkout_service.notificador.shutdown(wait=False)

    app = FastAPI(title="Aura Checkout API", lifespan=lifespan)
    app.state.checkout_service = checkout_service

    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["*"],
    )
    # externo ao CORS: esvazia o corpo "OK" do preflight
    app.add_middleware(PreflightVazioMiddleware)

    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        logger.warning("request_failed", extra={"path": request.url.path, "code": exc.code, "err": exc.message})
        return JSONResponse(status_code=exc.http_status, content=CheckoutResult.falha(exc.message).to_json())

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        mensagem = _mensagem_validacao(exc)
        logger.info("request_invalid", extra={"path": request.url.path, "err": mensagem})
        return JSONResponse(status_code=400, content=CheckoutResult.falha(mensagem).to_json())

    @app.exception_handler(Exception)
    async def _unexpected_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("request_unexpected_error", extra={"path": request.url.path, "err": str(exc)})
        return JSONResponse(status_code=500, content=CheckoutResult.falha("Erro interno do servidor").to_json())

    app.include_router(checkout_router)
    app.include_router(cupons_router)
    app.include_router(planos_router)

    @app.get("/health", tags=["Health"])
    def health() -> dict[str, bool]:
        return {"ok": True}

    return app


# Instância utilizada pelo servidor (uvicorn/gunicorn)
app = create_app()
