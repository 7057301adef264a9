"""Short-lived pool of Nostr relay connections over websockets."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Optional, Sequence

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import WebSocketException

logger = logging.getLogger(__name__)


class RelayRejected(Exception):
    """Relay answered the publish with ``OK false``."""


class RelayPool:
    """Publishes events to a set of relays, one connection per relay.

    Satisfies :class:`paywally.domain.shared.RelayPoolProtocol`. Each publish
    runs as its own task; :meth:`close` cancels whatever is still pending and
    closes every connection that was opened.
    """

    def __init__(self, *, open_timeout: float = 10.0) -> None:
        self._open_timeout = open_timeout
        self._connections: dict[str, ClientConnection] = {}
        self._tasks: list[asyncio.Task[str]] = []

    def publish(
        self, relays: Sequence[str], event: dict[str, Any]
    ) -> list[Awaitable[str]]:
        message = json.dumps(["EVENT", event])
        tasks = [
            asyncio.create_task(
                self._publish_one(relay, message, event["id"]),
                name=f"publish:{relay}",
            )
            for relay in dict.fromkeys(relays)
        ]
        self._tasks.extend(tasks)
        return list(tasks)

    async def _connection(self, relay: str) -> ClientConnection:
        conn = self._connections.get(relay)
        if conn is None:
            conn = await connect(relay, open_timeout=self._open_timeout)
            self._connections[relay] = conn
        return conn

    async def _publish_one(self, relay: str, message: str, event_id: str) -> str:
        conn = await self._connection(relay)
        await conn.send(message)
        async for raw in conn:
            reply = _parse(raw)
            if not reply or reply[0] != "OK" or len(reply) < 3 or reply[1] != event_id:
                continue
            if reply[2] is True:
                logger.debug("Relay %s accepted event %s", relay, event_id)
                return relay
            reason = reply[3] if len(reply) > 3 else ""
            raise RelayRejected(f"{relay} rejected event: {reason}")
        raise ConnectionError(f"{relay} closed the connection before acknowledging")

    async def close(self) -> None:
        for task in self._tasks:
            if not task.done():
                task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        for relay, conn in list(self._connections.items()):
            try:
                await conn.close()
            except WebSocketException as e:
                logger.debug("Error closing connection to %s: %s", relay, e)
        self._connections.clear()


def _parse(raw: str | bytes) -> Optional[list]:
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    return data if isinstance(data, list) else None
