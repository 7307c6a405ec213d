# =============================================================================
# core/http.py  -  Shared HTTP plumbing for the upstream adapters
# =============================================================================
#
# Every outbound request goes through ProviderClient, which:
#   1. applies the fixed timeout and the User-Agent header
#   2. retries transport failures with the injected RetryPolicy
#   3. maps transport-level problems onto the core.errors taxonomy
#
# STATUS MAPPING:
#   timeout / connection error / 429 / 5xx  ->  TransientError (retried)
#   any other 4xx                           ->  UpstreamLogicalError
#   body that is not JSON when JSON needed  ->  MalformedPayloadError
#
# Adapters hold no per-request state; one ProviderClient is shared by all of
# them and closed once on shutdown.
# =============================================================================

import logging
from typing import Any, Mapping, Optional

import httpx

from core.config import Settings
from core.errors import MalformedPayloadError, TransientError, UpstreamLogicalError
from core.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)


class ProviderClient:
    """Thin wrapper over httpx.AsyncClient with retry and error mapping."""

    def __init__(
        self,
        settings: Settings,
        retry_policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep=None,
    ):
        self.retry_policy = retry_policy or RetryPolicy(max_attempts=settings.retry_attempts)
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            timeout=settings.request_timeout_s,
            headers={"User-Agent": settings.user_agent},
            follow_redirects=True,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send(
        self,
        provider: str,
        method: str,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Response:
        async def attempt() -> httpx.Response:
            try:
                response = await self._client.request(method, url, params=params)
            except httpx.TimeoutException as exc:
                raise TransientError(f"{provider} request timed out", provider) from exc
            except httpx.TransportError as exc:
                raise TransientError(f"{provider} network error: {exc}", provider) from exc

            status = response.status_code
            if status == 429 or status >= 500:
                raise TransientError(f"{provider} returned HTTP {status}", provider)
            if status >= 400:
                raise UpstreamLogicalError(f"{provider} returned HTTP {status}", provider)
            return response

        kwargs = {} if self._sleep is None else {"sleep": self._sleep}
        response = await call_with_retry(attempt, self.retry_policy, **kwargs)
        logger.debug("%s %s %s -> %d", provider, method, url, response.status_code)
        return response

    async def get_json(
        self,
        provider: str,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        response = await self._send(provider, "GET", url, params)
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedPayloadError(f"{provider} returned a non-JSON body", provider) from exc

    async def get_text(self, provider: str, url: str) -> httpx.Response:
        """GET and return the full response (callers need headers and text)."""
        return await self._send(provider, "GET", url)

    async def head(self, provider: str, url: str) -> httpx.Response:
        return await self._send(provider, "HEAD", url)
