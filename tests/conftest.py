"""Global test configuration for shield_client tests."""

from collections.abc import Callable, Generator

import httpx
import pytest
import stamina


@pytest.fixture(autouse=True, scope="session")
def deactivate_retries() -> None:
    """Disable stamina retries globally for all tests.

    Individual retry tests can re-enable with the enable_retry fixture.
    """
    stamina.set_active(False)


@pytest.fixture
def enable_retry() -> Generator[None, None, None]:
    """Enable stamina retry without backoff waits."""
    stamina.set_active(True)
    stamina.set_testing(True, attempts=3)
    yield
    stamina.set_testing(False)
    stamina.set_active(False)


@pytest.fixture
def enable_backoff() -> Generator[None, None, None]:
    """Enable stamina retry with real backoff computation.

    Tests using this fixture must patch asyncio.sleep.
    """
    stamina.set_active(True)
    yield
    stamina.set_active(False)


def _sequence_transport(
    responses: list[httpx.Response | Exception],
    requests: list[httpx.Request] | None = None,
) -> httpx.MockTransport:
    """MockTransport answering with ``responses`` in order.

    Exceptions in the list are raised instead of answering.
    """
    pending = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        item = pending.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    return httpx.MockTransport(handler)


@pytest.fixture
def make_transport() -> Callable[..., httpx.MockTransport]:
    """Factory for MockTransports answering with a fixed response sequence."""
    return _sequence_transport
