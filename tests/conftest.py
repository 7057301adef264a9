"""Shared pytest fixtures for paywally tests."""

from __future__ import annotations

from typing import Any

import pytest

from paywally.crypto.nostr import get_public_key
from tests.fixtures import LNURL, MINT_URL, RELAYS, CountingRng, RecordingSleep


@pytest.fixture
def recipient_secret_key() -> bytes:
    """Secret key of the change recipient."""
    return bytes.fromhex("7f" * 32)


@pytest.fixture
def recipient_pubkey(recipient_secret_key: bytes) -> str:
    """x-only public key (hex) of the change recipient."""
    return get_public_key(recipient_secret_key)


@pytest.fixture
def options_data(recipient_pubkey: str) -> dict[str, Any]:
    """Valid options in the camelCase form callers pass in."""
    return {
        "npubkey": recipient_pubkey,
        "nrelays": list(RELAYS),
        "mintUrl": MINT_URL,
        "myLnurl": LNURL,
        "paySats": 21,
        "feeSats": 3,
        "withLog": True,
        "pollIntervalSeconds": 1.0,
        "maxPollAttempts": 60,
        "notifyTimeoutSeconds": 0.5,
    }


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def rng() -> CountingRng:
    return CountingRng()
