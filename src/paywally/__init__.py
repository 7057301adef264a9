"""Pay a Lightning address through a Cashu mint and return change over Nostr."""

from .application.options import PaywallyOptions, validate_options
from .application.paywally import Paywally
from .application.shared.token import decode_token, encode_token
from .domain.entities import PaymentResult
from .domain.errors import (
    ConfigurationError,
    MintUnavailable,
    NoActiveQuote,
    NotificationError,
    PaymentTimeout,
    PaywallyError,
    QuoteError,
    ResolutionError,
    ValueTransferError,
)
from .env import get_settings
from .infrastructure.mint.wallet import CashuWallet
from .infrastructure.nostr.relay_pool import RelayPool

__all__ = [
    "CashuWallet",
    "ConfigurationError",
    "MintUnavailable",
    "NoActiveQuote",
    "NotificationError",
    "PaymentResult",
    "PaymentTimeout",
    "Paywally",
    "PaywallyError",
    "PaywallyOptions",
    "QuoteError",
    "RelayPool",
    "ResolutionError",
    "ValueTransferError",
    "decode_token",
    "encode_token",
    "get_settings",
    "validate_options",
]
