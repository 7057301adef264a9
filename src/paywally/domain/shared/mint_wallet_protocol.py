"""Protocol interface for ecash wallet implementations.

The orchestrator consumes the mint only through this contract, so the blind
signature machinery stays behind it and use cases can be tested against an
in-memory wallet.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, Type, TYPE_CHECKING
from types import TracebackType

if TYPE_CHECKING:
    from ..entities import MeltQuote, MeltResult, MintQuote, Proof, SendSplit


class MintWalletProtocol(Protocol):
    """Wallet bound to a single mint and unit.

    Implementations raise :class:`paywally.domain.errors.MintError` for any
    failed mint request.
    """

    mint_url: str

    async def load_mint(self) -> None:
        """Fetch the mint's active keysets. Must succeed before any other call."""
        ...

    async def create_melt_quote(self, invoice: str) -> "MeltQuote":
        """Ask the mint what it costs to pay ``invoice``."""
        ...

    async def create_mint_quote(self, amount: int) -> "MintQuote":
        """Ask the mint for an invoice that, once paid, funds ``amount``."""
        ...

    async def check_mint_quote(self, quote_id: str) -> "MintQuote":
        """Return the current state of a mint quote."""
        ...

    async def mint_proofs(self, amount: int, quote_id: str) -> list["Proof"]:
        """Mint proofs worth ``amount`` against a paid mint quote."""
        ...

    async def send(self, amount: int, proofs: Sequence["Proof"]) -> "SendSplit":
        """Split ``proofs`` so that ``send`` totals exactly ``amount``."""
        ...

    async def melt_proofs(
        self, quote: "MeltQuote", proofs: Sequence["Proof"]
    ) -> "MeltResult":
        """Pay the quoted invoice with ``proofs`` and return any change."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...

    async def __aenter__(self: "MintWalletProtocol") -> "MintWalletProtocol": ...

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None: ...
