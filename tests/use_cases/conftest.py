"""Pytest fixtures for use case tests."""

from __future__ import annotations

from typing import Any, AsyncGenerator, Awaitable, Callable, Optional, Sequence

import pytest

from paywally.application.paywally import Paywally
from paywally.infrastructure.http.http_client import AsyncHttpClient
from tests.fixtures import (
    CountingRng,
    FakeLnurlServer,
    FakeRelayPoolFactory,
    RecordingSleep,
    TestMintWallet,
)


@pytest.fixture
def wallet() -> TestMintWallet:
    """In-memory wallet with a paid-on-first-check mint quote."""
    return TestMintWallet()


@pytest.fixture
def relay_factory() -> FakeRelayPoolFactory:
    """Relay pool factory where every relay accepts."""
    return FakeRelayPoolFactory()


@pytest.fixture
def lnurl_server() -> FakeLnurlServer:
    return FakeLnurlServer()


@pytest.fixture
async def lnurl_client(lnurl_server: FakeLnurlServer) -> AsyncGenerator[AsyncHttpClient, None]:
    client = lnurl_server.client()
    yield client
    await client.aclose()


@pytest.fixture
async def make_paywally(
    options_data: dict[str, Any],
    wallet: TestMintWallet,
    lnurl_client: AsyncHttpClient,
    relay_factory: FakeRelayPoolFactory,
    sleep: RecordingSleep,
    rng: CountingRng,
) -> AsyncGenerator[Callable[..., Awaitable[Paywally]], None]:
    """Build Paywally instances wired to the in-memory collaborators.

    Keyword arguments override ``Paywally.create`` parameters; ``options`` may
    carry option overrides and ``callbacks`` the positional callbacks.
    """
    created: list[Paywally] = []

    async def _make(
        *,
        options: Optional[dict[str, Any]] = None,
        callbacks: Sequence[Any] = (),
        **overrides: Any,
    ) -> Paywally:
        params: dict[str, Any] = {
            "wallet": wallet,
            "http_client": lnurl_client,
            "relay_pool_factory": relay_factory,
            "sleep": sleep,
            "rng": rng,
        }
        params.update(overrides)
        paywally = await Paywally.create(
            {**options_data, **(options or {})}, *callbacks, **params
        )
        created.append(paywally)
        return paywally

    yield _make

    for paywally in created:
        await paywally.aclose()
