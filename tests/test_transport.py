"""Tests for shield_client.transport module."""

# ruff: noqa: ARG001

import json
from collections.abc import Callable
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from shield_client.errors import ShieldTransportError
from shield_client.transport import (
    MAX_ATTEMPTS,
    ShieldTransport,
    backoff_delay,
)

BASE_URL = "https://shield.example.com"
HEADERS = {"x-api-key": "pk"}

MakeTransport = Callable[..., httpx.MockTransport]


def test_backoff_delay() -> None:
    assert [backoff_delay(n) for n in range(4)] == [0.5, 1.0, 2.0, 4.0]
    assert backoff_delay(2, retry_backoff=1.0) == 4.0


def test_defaults() -> None:
    transport = ShieldTransport(base_url=BASE_URL + "/")
    assert transport.base_url == BASE_URL
    assert transport.max_attempts == MAX_ATTEMPTS == 3


def test_invalid_max_attempts() -> None:
    with pytest.raises(ValueError, match="max_attempts"):
        ShieldTransport(base_url=BASE_URL, max_attempts=0)


@pytest.mark.asyncio
async def test_request_sends_headers_params_and_body(
    make_transport: MakeTransport,
) -> None:
    requests: list[httpx.Request] = []
    transport = ShieldTransport(
        base_url=BASE_URL,
        transport=make_transport([httpx.Response(200, json={"ok": True})], requests),
    )

    response = await transport.request(
        "POST",
        "/shares",
        headers=HEADERS,
        params={"reference": "ref-1"},
        json={"secret": "s"},
    )

    assert response.json() == {"ok": True}
    assert len(requests) == 1
    assert requests[0].method == "POST"
    assert requests[0].url == httpx.URL(f"{BASE_URL}/shares?reference=ref-1")
    assert requests[0].headers["x-api-key"] == "pk"
    assert json.loads(requests[0].content) == {"secret": "s"}
    await transport.aclose()


@pytest.mark.asyncio
async def test_retry_server_errors_then_success(
    enable_retry: None, make_transport: MakeTransport
) -> None:
    requests: list[httpx.Request] = []
    transport = ShieldTransport(
        base_url=BASE_URL,
        transport=make_transport(
            [
                httpx.Response(500),
                httpx.Response(502),
                httpx.Response(200, json={"secret": "s"}),
            ],
            requests,
        ),
    )

    response = await transport.request("GET", "/shares", headers=HEADERS)

    assert response.status_code == 200
    assert len(requests) == 3


@pytest.mark.asyncio
async def test_retry_backoff_delays(
    enable_backoff: None, make_transport: MakeTransport
) -> None:
    transport = ShieldTransport(
        base_url=BASE_URL,
        transport=make_transport(
            [httpx.Response(500), httpx.Response(500), httpx.Response(200)]
        ),
    )

    with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
        response = await transport.request("GET", "/shares", headers=HEADERS)

    assert response.status_code == 200
    assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.0]


@pytest.mark.asyncio
async def test_post_is_retried(
    enable_retry: None, make_transport: MakeTransport
) -> None:
    requests: list[httpx.Request] = []
    transport = ShieldTransport(
        base_url=BASE_URL,
        transport=make_transport(
            [httpx.Response(503), httpx.Response(409)], requests
        ),
    )

    response = await transport.request(
        "POST", "/shares", headers=HEADERS, json={"secret": "s"}
    )

    assert response.status_code == 409
    assert len(requests) == 2


@pytest.mark.asyncio
async def test_client_error_not_retried(
    enable_retry: None, make_transport: MakeTransport
) -> None:
    requests: list[httpx.Request] = []
    transport = ShieldTransport(
        base_url=BASE_URL,
        transport=make_transport(
            [httpx.Response(400, json={"code": "EC_MISSING"}), httpx.Response(200)],
            requests,
        ),
    )

    response = await transport.request("GET", "/shares", headers=HEADERS)

    assert response.status_code == 400
    assert len(requests) == 1


@pytest.mark.asyncio
async def test_retries_exhausted_returns_last_response(
    enable_retry: None, make_transport: MakeTransport
) -> None:
    requests: list[httpx.Request] = []
    transport = ShieldTransport(
        base_url=BASE_URL,
        transport=make_transport(
            [httpx.Response(500), httpx.Response(500), httpx.Response(504)], requests
        ),
    )

    response = await transport.request("GET", "/shares", headers=HEADERS)

    assert response.status_code == 504
    assert len(requests) == 3


@pytest.mark.asyncio
async def test_network_failure_retried(
    enable_retry: None, make_transport: MakeTransport
) -> None:
    transport = ShieldTransport(
        base_url=BASE_URL,
        transport=make_transport(
            [httpx.ConnectError("connection refused"), httpx.Response(200)]
        ),
    )

    response = await transport.request("GET", "/shares", headers=HEADERS)

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_network_failure_exhausted(
    enable_retry: None, make_transport: MakeTransport
) -> None:
    transport = ShieldTransport(
        base_url=BASE_URL,
        transport=make_transport(
            [httpx.ReadTimeout("timeout") for _ in range(3)]
        ),
    )

    with pytest.raises(ShieldTransportError) as exc_info:
        await transport.request("GET", "/shares", headers=HEADERS)

    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)


@pytest.mark.asyncio
async def test_no_retry_when_stamina_inactive(make_transport: MakeTransport) -> None:
    requests: list[httpx.Request] = []
    transport = ShieldTransport(
        base_url=BASE_URL,
        transport=make_transport([httpx.Response(500), httpx.Response(200)], requests),
    )

    response = await transport.request("GET", "/shares", headers=HEADERS)

    assert response.status_code == 500
    assert len(requests) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [httpx.TooManyRedirects("too many redirects"), httpx.DecodingError("bad gzip")],
)
async def test_request_error_wrapped(
    make_transport: MakeTransport, error: httpx.RequestError
) -> None:
    """Non-transport request errors surface as ShieldTransportError too."""
    transport = ShieldTransport(base_url=BASE_URL, transport=make_transport([error]))

    with pytest.raises(ShieldTransportError) as exc_info:
        await transport.request("GET", "/shares", headers=HEADERS)

    assert exc_info.value.__cause__ is error
