"""Mint, split and melt once the mint quote is paid."""

from __future__ import annotations

import logging

from ...domain.entities import MeltQuote, MintQuote, TransferResult
from ...domain.errors import MintError, ValueTransferError
from ...domain.shared import MintWalletProtocol

logger = logging.getLogger(__name__)


class ValueTransfer:
    """Single-shot value movement. Failures are surfaced, never retried.

    Every error raised here is a :class:`ValueTransferError`: the mint may
    already have consumed value, so callers must reconcile by hand using the
    proofs attached to the error.
    """

    def __init__(self, wallet: MintWalletProtocol) -> None:
        self._wallet = wallet

    async def execute(
        self, mint_quote: MintQuote, melt_quote: MeltQuote, pay_sats: int
    ) -> TransferResult:
        try:
            proofs = await self._wallet.mint_proofs(pay_sats, mint_quote.quote)
        except MintError as e:
            raise ValueTransferError(
                f"minting {pay_sats} sats failed: {e}", step="mint"
            ) from e
        logger.debug("minted %d proofs", len(proofs))

        try:
            split = await self._wallet.send(melt_quote.amount_to_send, proofs)
        except MintError as e:
            raise ValueTransferError(
                f"splitting proofs failed: {e}", step="split", proofs=proofs
            ) from e

        try:
            melted = await self._wallet.melt_proofs(melt_quote, split.send)
        except MintError as e:
            raise ValueTransferError(
                f"melting proofs failed: {e}",
                step="melt",
                proofs=[*split.keep, *split.send],
            ) from e
        logger.debug("melt returned %d change proofs", len(melted.change))

        return TransferResult(minted=proofs, keep=split.keep, melt_change=melted.change)
