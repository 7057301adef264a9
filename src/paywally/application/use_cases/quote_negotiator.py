"""Negotiate the melt and mint quotes for one payment attempt."""

from __future__ import annotations

import logging
from typing import NamedTuple

from ...domain.entities import MeltQuote, MintQuote
from ...domain.errors import (
    InsufficientFeeReserve,
    MeltQuoteFailed,
    MintError,
    MintQuoteFailed,
)
from ...domain.shared import MintWalletProtocol

logger = logging.getLogger(__name__)


class QuotePair(NamedTuple):
    melt: MeltQuote
    mint: MintQuote


def validate_fee_reserve(melt_quote: MeltQuote, pay_sats: int, fee_sats: int) -> None:
    """Refuse quotes that the configured amounts cannot complete.

    Raises:
        InsufficientFeeReserve: ``fee_sats`` does not exceed the mint's fee
            reserve, or ``amount + fee_reserve`` does not fit in ``pay_sats``.
    """
    if fee_sats <= melt_quote.fee_reserve:
        raise InsufficientFeeReserve(
            f"feeSats ({fee_sats}) must exceed the mint fee reserve "
            f"({melt_quote.fee_reserve})"
        )
    if melt_quote.amount_to_send > pay_sats:
        raise InsufficientFeeReserve(
            f"melt needs {melt_quote.amount_to_send} sats but only {pay_sats} "
            "will be minted"
        )


class QuoteNegotiator:
    def __init__(self, wallet: MintWalletProtocol) -> None:
        self._wallet = wallet

    async def negotiate(self, invoice: str, pay_sats: int, fee_sats: int) -> QuotePair:
        try:
            melt_quote = await self._wallet.create_melt_quote(invoice)
        except MintError as e:
            raise MeltQuoteFailed(f"unable to create melt quote: {e}") from e
        if melt_quote is None:
            raise MeltQuoteFailed("mint returned no melt quote")
        logger.debug("meltQuote %s", melt_quote)

        validate_fee_reserve(melt_quote, pay_sats, fee_sats)

        # The payer funds the full configured amount; the surplus comes back
        # as change.
        try:
            mint_quote = await self._wallet.create_mint_quote(pay_sats)
        except MintError as e:
            raise MintQuoteFailed(f"unable to create mint quote: {e}") from e
        logger.debug("mintQuote %s", mint_quote)
        return QuotePair(melt=melt_quote, mint=mint_quote)
