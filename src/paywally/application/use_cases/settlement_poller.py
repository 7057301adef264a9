"""Poll a mint quote until it is paid or the attempt budget runs out."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from ...domain.entities import MintQuote, MintQuoteState
from ...domain.errors import PaymentTimeout
from ...domain.shared import MintWalletProtocol

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class PollState(str, Enum):
    WAITING = "WAITING"
    PAID = "PAID"
    DONE = "DONE"
    TIMEOUT = "TIMEOUT"


class SettlementPoller:
    """WAITING -> PAID -> DONE, or WAITING -> TIMEOUT.

    Each tick is one status check. Between unsuccessful checks the poller
    sleeps ``interval`` seconds; there is no sleep after the last check.
    """

    def __init__(
        self,
        wallet: MintWalletProtocol,
        *,
        interval: float = 5.0,
        max_attempts: int = 60,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._wallet = wallet
        self._interval = interval
        self._max_attempts = max_attempts
        self._sleep = sleep
        self.state = PollState.WAITING
        self.attempts = 0

    def _timeout(self, message: str) -> PaymentTimeout:
        self.state = PollState.TIMEOUT
        return PaymentTimeout(message, attempts=self.attempts)

    async def wait_until_paid(self, quote_id: str) -> MintQuote:
        """Return the paid quote. Raises :class:`PaymentTimeout` otherwise."""
        self.state = PollState.WAITING
        self.attempts = 0
        while True:
            if self.attempts >= self._max_attempts:
                raise self._timeout(
                    f"Payment timeout after {self.attempts} status checks"
                )
            self.attempts += 1
            logger.debug("checking quote's state (attempt %d)", self.attempts)
            quote = await self._wallet.check_mint_quote(quote_id)
            if quote.is_paid:
                self.state = PollState.PAID
                return quote
            if quote.state == MintQuoteState.EXPIRED:
                raise self._timeout(f"Mint quote {quote_id} expired before payment")
            if self.attempts < self._max_attempts:
                await self._sleep(self._interval)

    def mark_done(self) -> None:
        if self.state == PollState.PAID:
            self.state = PollState.DONE
