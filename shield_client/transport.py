"""HTTP transport for the Shield API with retry and exponential backoff.

Requests are retried with stamina when no response was received
(``httpx.TransportError``) or the server answered with a 5xx status. POST is
retried as well: create requests carry caller-chosen references, so a repeated
create that already succeeded comes back as 409 instead of a duplicate share.
"""

from collections.abc import Mapping
from http import HTTPStatus
from typing import Any

import httpx
import stamina
import structlog

from shield_client.errors import ShieldTransportError

logger = structlog.get_logger(__name__)

TIMEOUT = 30
MAX_ATTEMPTS = 3
RETRY_BACKOFF = 0.5


class ServerError(Exception):
    """5xx response, raised inside an attempt to trigger a retry."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        super().__init__(f"server error: {response.status_code}")


def backoff_delay(attempt: int, retry_backoff: float = RETRY_BACKOFF) -> float:
    """Delay in seconds before retry number ``attempt`` (zero-based).

    Example:
        >>> [backoff_delay(n) for n in range(3)]
        [0.5, 1.0, 2.0]
    """
    return retry_backoff * 2**attempt


class ShieldTransport:
    """Async HTTP transport bound to one Shield base URL.

    The transport holds no per-request state; concurrent requests are retried
    independently.

    Example:
        >>> transport = ShieldTransport(base_url="https://shield.openfort.io")
        >>> response = await transport.request("GET", "/shares", headers={...})
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = TIMEOUT,
        max_attempts: int = MAX_ATTEMPTS,
        retry_backoff: float = RETRY_BACKOFF,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Shield transport.

        Args:
            base_url: Shield base URL (e.g., "https://shield.openfort.io")
            timeout: Request timeout in seconds (default: 30)
            max_attempts: Attempts per request including the first (default: 3)
            retry_backoff: Delay before the first retry, doubled on each retry
            transport: Optional httpx transport (used by tests)
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.base_url = base_url.rstrip("/")
        self.max_attempts = max_attempts
        self.retry_backoff = retry_backoff
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def request(
        self,
        verb: str,
        path: str,
        *,
        headers: Mapping[str, str],
        params: Mapping[str, str] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Send a request, retrying transient failures.

        Args:
            verb: HTTP verb
            path: API path relative to the base URL
            headers: Request headers
            params: Optional query parameters
            json: Optional JSON body

        Returns:
            The first response with status < 500, or the last 5xx response
            once all attempts are used up

        Raises:
            ShieldTransportError: If the request failed without a usable response
        """
        try:
            async for attempt in stamina.retry_context(
                on=(httpx.TransportError, ServerError),
                attempts=self.max_attempts,
                timeout=None,
                wait_initial=self.retry_backoff,
                wait_max=backoff_delay(self.max_attempts, self.retry_backoff),
                wait_jitter=0,
                wait_exp_base=2,
            ):
                with attempt:
                    response = await self._client.request(
                        verb,
                        path,
                        headers=dict(headers),
                        params=params,
                        json=json,
                    )
                    if response.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
                        raise ServerError(response)
        except ServerError as e:
            logger.warning(
                "retries exhausted",
                verb=verb,
                path=path,
                status_code=e.response.status_code,
            )
            return e.response
        except httpx.RequestError as e:
            logger.error("network failure", verb=verb, path=path, error=str(e))
            raise ShieldTransportError(f"network failure: {e}") from e
        return response

    async def aclose(self) -> None:
        await self._client.aclose()
