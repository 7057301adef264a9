"""Deliver the change token to the recipient as a NIP-04 direct message."""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from typing import Any, Awaitable, Callable, Iterable, Sequence

from ...crypto import nip04
from ...crypto.nostr import (
    ENCRYPTED_DIRECT_MESSAGE,
    finalize_event,
    generate_secret_key,
)
from ...domain.entities import Proof
from ...domain.errors import (
    NotificationError,
    NotificationFailed,
    NotificationTimeout,
)
from ...domain.shared import RelayPoolFactory
from ..shared.token import encode_token

logger = logging.getLogger(__name__)


async def first_success(awaitables: Iterable[Awaitable[str]]) -> str:
    """Return the first successful result; the rest are left running.

    Raises:
        NotificationFailed: Every awaitable failed.
    """
    pending = {asyncio.ensure_future(a) for a in awaitables}
    errors: list[BaseException] = []
    while pending:
        done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if task.cancelled():
                continue
            exc = task.exception()
            if exc is None:
                return task.result()
            errors.append(exc)
    reasons = "; ".join(str(e) for e in errors) or "no relays"
    raise NotificationFailed(f"Failed to publish to Nostr: {reasons}")


class ChangeNotifier:
    """Encrypts a change token for one recipient and publishes it to relays.

    A fresh ephemeral key signs every message. ``rng`` and ``clock`` are the
    only sources of randomness and time, so a seeded ``rng`` makes the event
    fully reproducible.
    """

    def __init__(
        self,
        recipient: str,
        relays: Sequence[str],
        relay_pool_factory: RelayPoolFactory,
        *,
        timeout: float = 10.0,
        rng: Callable[[int], bytes] = secrets.token_bytes,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._recipient = recipient
        self._relays = list(relays)
        self._relay_pool_factory = relay_pool_factory
        self._timeout = timeout
        self._rng = rng
        self._clock = clock

    def build_event(self, message: str) -> dict[str, Any]:
        sk = generate_secret_key(self._rng)
        template = {
            "kind": ENCRYPTED_DIRECT_MESSAGE,
            "tags": [["p", self._recipient]],
            "content": nip04.encrypt(sk, self._recipient, message, iv=self._rng(16)),
            "created_at": int(self._clock()),
        }
        return finalize_event(template, sk, aux_rand=self._rng(32))

    async def publish(self, message: str) -> str:
        """Publish ``message`` and return the first relay that accepted it.

        On timeout some relays may still have received the event.
        """
        event = self.build_event(message)
        pool = self._relay_pool_factory()
        try:
            relay = await asyncio.wait_for(
                first_success(pool.publish(self._relays, event)),
                timeout=self._timeout,
            )
            logger.debug("Message published to Nostr via %s", relay)
            return relay
        except asyncio.TimeoutError as e:
            logger.debug("Failed to publish to Nostr: timeout")
            raise NotificationTimeout(
                f"Publish timeout after {self._timeout}s"
            ) from e
        except NotificationFailed as e:
            logger.debug("Failed to publish to Nostr: %s", e)
            raise
        finally:
            await pool.close()

    async def notify(
        self,
        proofs: Sequence[Proof],
        mint_url: str,
        *,
        memo: str = "paywally",
        unit: str = "sat",
    ) -> str:
        """Encode ``proofs`` into a token, deliver it, and return the token."""
        token = encode_token(proofs, mint_url, memo=memo, unit=unit)
        try:
            await self.publish(token)
        except NotificationError as e:
            e.token = token
            raise
        return token
