"""Shared domain utilities.

This package is domain-accessible and should not depend on application code.
"""

from .mint_wallet_protocol import MintWalletProtocol
from .relay_pool_protocol import RelayPoolFactory, RelayPoolProtocol

__all__ = [
    "MintWalletProtocol",
    "RelayPoolFactory",
    "RelayPoolProtocol",
]
