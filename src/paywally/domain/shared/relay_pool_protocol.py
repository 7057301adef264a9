"""Protocol interface for Nostr relay pools."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol, Sequence


class RelayPoolProtocol(Protocol):
    """A transient set of relay connections.

    A pool is created for one publish and closed right after it, whatever the
    outcome.
    """

    def publish(
        self, relays: Sequence[str], event: dict[str, Any]
    ) -> list[Awaitable[str]]:
        """Start publishing ``event`` to every relay.

        Returns one awaitable per relay. Each resolves to the relay URL once the
        relay acknowledged the event, or raises if the relay rejected it or
        could not be reached.
        """
        ...

    async def close(self) -> None:
        """Abandon pending publishes and close all connections."""
        ...


RelayPoolFactory = Callable[[], RelayPoolProtocol]
