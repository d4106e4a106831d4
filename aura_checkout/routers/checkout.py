from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from aura_checkout.common.errors import AppError
from aura_checkout.common.logging_setup import get_logger
from aura_checkout.schemas.checkout import CheckoutResult, CheckoutSubmission
from aura_checkout.services.checkout import CheckoutService

router = APIRouter(tags=["Checkout"])
logger = get_logger(__name__)


def get_checkout_service(request: Request) -> CheckoutService:
    return request.app.state.checkout_service


def _ip_cliente(request: Request) -> str:
    encaminhado = request.headers.get("x-forwarded-for", "")
    if encaminhado:
        return encaminhado.split(",")[0].strip()
    return request.client.host if request.client else ""


@router.options("/create-subscription", include_in_schema=False)
def create_subscription_preflight() -> Response:
    return Response(status_code=200)


@router.post(
    "/create-subscription",
    response_model=CheckoutResult,
    response_model_exclude_none=True,
    response_model_by_alias=True,
    summary="Cria cliente + assinatura no Asaas e grava os registros comerciais",
)
def create_subscription(
    sub: CheckoutSubmission,
    request: Request,
    service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResult | JSONResponse:
    try:
        return service.processar(sub, ip_cliente=_ip_cliente(request))
    except AppError:
        raise
    except Exception as e:
        logger.exception("checkout_unexpected_error", extra={"err": str(e)})
        return JSONResponse(
            status_code=500,
            content=CheckoutResult.falha("Erro interno ao processar o checkout").to_json(),
        )
