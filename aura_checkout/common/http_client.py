# aura_checkout/common/http_client.py
from __future__ import annotations

from functools import lru_cache
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from .errors import ExternalError
from .logging_setup import get_correlation_id, get_logger

DEFAULT_TIMEOUT: tuple[float, float] = (5.0, 30.0)

logger = get_logger("http")


def _build_session() -> requests.Session:
    s = requests.Session()
    s.headers.update(
        {
            "User-Agent": "aura-checkout/HTTPClient",
            "Accept": "application/json, */*;q=0.1",
        }
    )
    # sem retry: checkout não é idempotente no provedor (cada POST cria uma assinatura)
    adapter = HTTPAdapter(max_retries=0, pool_connections=20, pool_maxsize=20)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    return s


@lru_cache(maxsize=1)
def _get_cached_session() -> requests.Session:
    return _build_session()


def get_session(session: requests.Session | None = None) -> requests.Session:
    return session or _get_cached_session()


def _request_with_handling(method: str, url: str, **kwargs: Any) -> requests.Response:
    """
    Executa a chamada com timeout limitado e correlation-id.
    Não levanta para 4xx/5xx: os provedores devolvem o motivo no corpo e quem chama interpreta.
    Timeout e erro de rede viram ExternalError.
    """
    timeout = kwargs.pop("timeout", DEFAULT_TIMEOUT)
    session: requests.Session = kwargs.pop("session", None) or get_session()

    headers = kwargs.pop("headers", {}) or {}
    headers = {**session.headers, **headers}
    headers.setdefault("X-Correlation-ID", get_correlation_id())
    kwargs["headers"] = headers

    try:
        res = session.request(method, url, timeout=timeout, **kwargs)
    except requests.Timeout as e:
        logger.warning("http_timeout", extra={"method": method, "url": url})
        raise ExternalError(
            f"Timeout ao chamar {url}",
            code="HTTP_TIMEOUT",
            cause=e,
            retryable=True,
            data={"url": url},
        ) from e
    except requests.RequestException as e:
        logger.error("http_request_exception", extra={"method": method, "url": url, "err": str(e)})
        raise ExternalError(
            f"Erro de rede ao chamar {url}",
            code="HTTP_REQUEST_ERROR",
            cause=e,
            retryable=True,
            data={"url": url},
        ) from e

    logger.info("http_done", extra={"method": method, "url": url, "status": res.status_code})
    return res


def read_json(res: requests.Response) -> Any:
    """Decodifica o corpo JSON; corpo não-JSON vira ExternalError (nunca repassado cru)."""
    try:
        return res.json()
    except ValueError as e:
        sample = (res.text or "")[:200].replace("\n", " ").strip()
        logger.error("http_bad_json", extra={"url": res.url, "status": res.status_code, "sample": sample})
        raise ExternalError(
            f"Resposta não-JSON de {res.url}",
            code="HTTP_BAD_JSON",
            cause=e,
            data={"url": res.url, "status": res.status_code},
        ) from e


def http_get(url: str, **kwargs: Any) -> requests.Response:
    return _request_with_handling("GET", url, **kwargs)


def http_post(url: str, **kwargs: Any) -> requests.Response:
    return _request_with_handling("POST", url, **kwargs)


def http_request(method: str, url: str, **kwargs: Any) -> requests.Response:
    return _request_with_handling(method.upper(), url, **kwargs)
