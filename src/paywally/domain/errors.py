"""Domain-specific exceptions.

Errors are grouped by how far a payment attempt got before failing, so callers
can tell a safe retry apart from a case that needs manual reconciliation.
"""

from __future__ import annotations

from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .entities import Proof


class PaywallyError(Exception):
    """Base class for every error raised by paywally."""


# ============================================================================
# Configuration (fail fast, no side effects)
# ============================================================================


class ConfigurationError(PaywallyError):
    """Raised when the supplied options are invalid."""


class InvalidRecipientKey(ConfigurationError):
    """Recipient public key is not a 64 character hex string."""


class InvalidTransportList(ConfigurationError):
    """Relay list is missing, empty or holds empty entries."""


class MissingMintEndpoint(ConfigurationError):
    """Mint URL is missing or empty."""


class InvalidReceiverAddress(ConfigurationError):
    """Receiver address is not in the form user@host."""


class InvalidPayAmount(ConfigurationError):
    """Pay amount is not a positive integer."""


class InvalidFeeReserve(ConfigurationError):
    """Fee reserve is negative, not an integer, or not below the pay amount."""


# ============================================================================
# Pre-settlement (safe to retry get_invoice)
# ============================================================================


class ResolutionError(PaywallyError):
    """Raised when the receiver's invoice cannot be obtained."""


class InvalidAddress(ResolutionError):
    """Lightning address cannot be split into user and host."""


class UnsupportedReceiver(ResolutionError):
    """Receiver does not expose a usable payRequest endpoint."""


class AmountOutOfRange(ResolutionError):
    """Requested amount falls outside the receiver's sendable range."""


class InvoiceUnavailable(ResolutionError):
    """Receiver callback did not return a usable invoice."""


class UnreachableHost(ResolutionError):
    """An LNURL request failed at the transport or HTTP level."""


class MintError(PaywallyError):
    """Raised by the mint client when a mint request fails."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MintUnavailable(PaywallyError):
    """Mint handshake (keyset loading) failed during construction."""


class QuoteError(PaywallyError):
    """Raised when quotes cannot be negotiated with the mint."""


class MeltQuoteFailed(QuoteError):
    """Mint refused or failed to quote paying the receiver's invoice."""


class InsufficientFeeReserve(QuoteError):
    """Configured fee reserve does not cover the mint's melt fee."""


class MintQuoteFailed(QuoteError):
    """Mint refused or failed to issue a mint quote."""


class NoActiveQuote(PaywallyError):
    """wait_for_payment was called before get_invoice populated the quotes."""


# ============================================================================
# Settlement
# ============================================================================


class PaymentTimeout(PaywallyError):
    """Mint quote was not paid within the polling window."""

    def __init__(self, message: str, *, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class ValueTransferError(PaywallyError):
    """A mint, split or melt step failed after the mint quote was paid.

    Value may already be consumed by the mint at this point. ``proofs`` holds
    whatever proofs were in hand when the step failed so they can be recovered
    manually.
    """

    def __init__(
        self,
        message: str,
        *,
        step: str,
        proofs: Optional[Sequence["Proof"]] = None,
    ) -> None:
        super().__init__(message)
        self.step = step
        self.proofs = list(proofs or [])


# ============================================================================
# Notification (settlement already final)
# ============================================================================


class NotificationError(PaywallyError):
    """Change token could not be delivered to the recipient.

    ``token`` carries the undelivered change token when it is known.
    """

    def __init__(self, message: str, *, token: Optional[str] = None) -> None:
        super().__init__(message)
        self.token = token


class NotificationTimeout(NotificationError):
    """No relay acknowledged the change message before the timeout."""


class NotificationFailed(NotificationError):
    """Every relay rejected the change message or was unreachable."""
