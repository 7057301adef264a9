"""Test fixtures: in-memory wallet, scripted relays, mock mint and LNURL host."""

from .fake_lnurl_server import CALLBACK_URL, FakeLnurlServer
from .fake_mint import FakeMint
from .invoices import MINT_INVOICE, RECEIVER_INVOICE, make_invoice
from .constants import LNURL, MINT_URL, RELAYS
from .doubles import CountingRng, RecordingSleep
from .fake_relay_pool import (
    ACCEPT,
    HANG,
    FakeRelayPool,
    FakeRelayPoolFactory,
)
from .test_mint_wallet import TestMintWallet, make_proofs

__all__ = [
    "LNURL",
    "MINT_URL",
    "RELAYS",
    "ACCEPT",
    "CALLBACK_URL",
    "CountingRng",
    "FakeLnurlServer",
    "FakeMint",
    "FakeRelayPool",
    "FakeRelayPoolFactory",
    "HANG",
    "MINT_INVOICE",
    "RECEIVER_INVOICE",
    "RecordingSleep",
    "TestMintWallet",
    "make_invoice",
    "make_proofs",
]
