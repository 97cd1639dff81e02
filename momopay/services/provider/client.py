"""Thin async HTTP client for the MoMo provider.

Owns the subscription-key header, the per-call timeout and the translation of
transport failures and non-2xx answers into the typed step errors. One
instance wraps one shared `httpx.AsyncClient`, which is safe to use from many
concurrent workflow runs.
"""

import time
from typing import Any
from urllib.parse import quote

import httpx

from momopay.common.config import CommonSettings
from momopay.common.errors import UNREACHABLE, MomoError, ProviderTimeoutError
from momopay.common.logging import logger
from momopay.common.metrics import provider_call_duration_seconds, provider_calls_total

_DETAIL_LIMIT = 500


def build_http_client(config: CommonSettings, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Create the process-wide connection pool for provider calls."""

    return httpx.AsyncClient(
        base_url=config.momo_base_url,
        timeout=config.momo_request_timeout_seconds,
        transport=transport,
    )


def _upstream_detail(response: httpx.Response) -> str:
    text = response.text.strip()
    return text[:_DETAIL_LIMIT] if text else response.reason_phrase


def path_segment(value: str) -> str:
    """Percent-encode an id so it stays one path segment upstream."""

    return quote(value, safe="")


def json_body(response: httpx.Response) -> Any:
    """Decode a provider body, treating an empty body as `None`."""

    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class MomoClient:
    """Issues authenticated calls and maps failures onto `error_cls`."""

    def __init__(self, config: CommonSettings, http: httpx.AsyncClient) -> None:
        self.config = config
        self.http = http

    def _headers(self, extra: dict[str, str] | None, target_environment: bool) -> dict[str, str]:
        headers = {"Ocp-Apim-Subscription-Key": self.config.momo_subscription_key}
        if target_environment:
            headers["X-Target-Environment"] = self.config.momo_target_environment
        if extra:
            headers.update(extra)
        return headers

    async def call(
        self,
        step: str,
        error_cls: type[MomoError],
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json: Any = None,
        target_environment: bool = False,
    ) -> httpx.Response:
        """Send one request; return the 2xx response or raise a step error.

        Exactly one attempt is made. Timeouts raise `ProviderTimeoutError`,
        other transport failures raise `error_cls` with reason `unreachable`,
        and non-2xx answers raise `error_cls` with the upstream status.
        """

        started = time.perf_counter()
        outcome = "error"
        try:
            try:
                response = await self.http.request(
                    method,
                    path,
                    headers=self._headers(headers, target_environment),
                    json=json,
                    timeout=self.config.momo_request_timeout_seconds,
                )
            except httpx.TimeoutException as exc:
                outcome = "timeout"
                logger.warning("provider_timeout step=%s method=%s path=%s", step, method, path)
                raise ProviderTimeoutError(
                    f"no response within {self.config.momo_request_timeout_seconds}s",
                    step=step,
                ) from exc
            except httpx.TransportError as exc:
                outcome = "unreachable"
                logger.warning("provider_unreachable step=%s method=%s path=%s error=%s", step, method, path, exc)
                raise error_cls(f"could not reach provider: {exc}", reason=UNREACHABLE) from exc

            if response.is_success:
                outcome = "success"
                logger.info("provider_call step=%s status=%s", step, response.status_code)
                return response
            outcome = "rejected"
            logger.warning("provider_rejected step=%s status=%s", step, response.status_code)
            raise error_cls(
                "provider rejected request",
                status_code=response.status_code,
                detail=_upstream_detail(response),
            )
        finally:
            provider_call_duration_seconds.labels(service=self.config.service_name, step=step).observe(
                max(0.0, time.perf_counter() - started)
            )
            provider_calls_total.labels(service=self.config.service_name, step=step, outcome=outcome).inc()
