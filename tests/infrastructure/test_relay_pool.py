"""Tests for RelayPool against a local websocket relay."""

from __future__ import annotations

import asyncio
import json
from typing import AsyncGenerator

import pytest
from websockets.asyncio.server import ServerConnection, serve

from paywally.crypto.nostr import finalize_event
from paywally.infrastructure.nostr.relay_pool import RelayPool, RelayRejected

SECRET_KEY = bytes.fromhex("7f" * 32)


def _event() -> dict:
    template = {"kind": 4, "tags": [], "content": "x?iv=eA==", "created_at": 1700000000}
    return finalize_event(template, SECRET_KEY, aux_rand=b"\x00" * 32)


class LocalRelay:
    """Minimal relay that answers every EVENT with a scripted OK."""

    def __init__(self) -> None:
        self.accept = True
        self.silent = False
        self.received: list[list] = []

    async def handler(self, connection: ServerConnection) -> None:
        async for raw in connection:
            message = json.loads(raw)
            self.received.append(message)
            if self.silent:
                continue
            event_id = message[1]["id"]
            # Unrelated traffic first; the pool must skip it.
            await connection.send(json.dumps(["NOTICE", "hello"]))
            await connection.send(json.dumps(["OK", "0" * 64, True, ""]))
            await connection.send(
                json.dumps(["OK", event_id, self.accept, "" if self.accept else "blocked: spam"])
            )


@pytest.fixture
async def relay() -> AsyncGenerator[tuple[LocalRelay, str], None]:
    local = LocalRelay()
    async with serve(local.handler, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        yield local, f"ws://127.0.0.1:{port}"


@pytest.mark.asyncio
async def test_publish_returns_relay_on_ok(relay: tuple[LocalRelay, str]) -> None:
    local, url = relay
    pool = RelayPool(open_timeout=2)
    event = _event()

    try:
        (pending,) = pool.publish([url], event)
        assert await pending == url
    finally:
        await pool.close()

    assert local.received == [["EVENT", event]]


@pytest.mark.asyncio
async def test_duplicate_relays_are_published_once(relay: tuple[LocalRelay, str]) -> None:
    local, url = relay
    pool = RelayPool(open_timeout=2)

    try:
        pending = pool.publish([url, url], _event())
        assert len(pending) == 1
        await asyncio.gather(*pending)
    finally:
        await pool.close()


@pytest.mark.asyncio
async def test_rejection_raises(relay: tuple[LocalRelay, str]) -> None:
    local, url = relay
    local.accept = False
    pool = RelayPool(open_timeout=2)

    try:
        (pending,) = pool.publish([url], _event())
        with pytest.raises(RelayRejected, match="blocked: spam"):
            await pending
    finally:
        await pool.close()


@pytest.mark.asyncio
async def test_close_cancels_unanswered_publish(relay: tuple[LocalRelay, str]) -> None:
    local, url = relay
    local.silent = True
    pool = RelayPool(open_timeout=2)

    (pending,) = pool.publish([url], _event())
    done, _ = await asyncio.wait([pending], timeout=0.1)
    assert not done

    await pool.close()

    assert pending.cancelled()
