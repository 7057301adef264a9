"""Story: Payer funds the mint invoice, receiver is paid, recipient gets change."""

from __future__ import annotations

from typing import Awaitable, Callable

import pytest

from paywally.application.paywally import Paywally
from paywally.application.shared.token import decode_token
from paywally.application.use_cases.settlement_poller import PollState
from paywally.crypto import nip04
from paywally.domain.entities import MintQuoteState
from tests.fixtures import (
    MINT_INVOICE,
    RECEIVER_INVOICE,
    FakeLnurlServer,
    FakeRelayPoolFactory,
    RecordingSleep,
    TestMintWallet,
)


@pytest.mark.asyncio
async def test_complete_payment_flow(
    make_paywally: Callable[..., Awaitable[Paywally]],
    wallet: TestMintWallet,
    lnurl_server: FakeLnurlServer,
    relay_factory: FakeRelayPoolFactory,
    sleep: RecordingSleep,
    recipient_secret_key: bytes,
) -> None:
    """
    Story: 21 sats paid with a 3 sat fee reserve; the mint charges 1 of its
    2 sat reserve, so 2 sats come back as change.
    """
    # Given: A receiver and a mint that marks the quote paid on the second check
    wallet.set_quote_states(MintQuoteState.UNPAID, MintQuoteState.PAID)
    paywally = await make_paywally()

    # When: The payer asks for an invoice
    invoice = await paywally.get_invoice()

    # Then: The invoice shown is the mint's, for the full amount
    assert invoice == MINT_INVOICE
    assert str(lnurl_server.requests[-1].url).endswith("?amount=18000")
    assert paywally.melt_quote is not None and paywally.mint_quote is not None

    # When: The payer pays and we wait
    result = await paywally.wait_for_payment()

    # Then: The receiver was paid and the change was delivered
    assert result.settled and result.notified and bool(result)
    assert result.change_amount == 2
    assert result.notification_error is None
    assert [name for name, _ in wallet.calls] == [
        "load_mint",
        "create_melt_quote",
        "create_mint_quote",
        "check_mint_quote",
        "check_mint_quote",
        "mint_proofs",
        "send",
        "melt_proofs",
    ]
    assert wallet.calls[1][1] == {"invoice": RECEIVER_INVOICE}
    assert wallet.calls[2][1] == {"amount": 21}
    assert sleep.calls == [1.0]

    token = decode_token(result.change_token)
    assert token.amount == 2
    assert token.mint == "https://mint.example"
    assert token.memo == "paywally"

    event = relay_factory.events[0]
    assert event["kind"] == 4
    assert nip04.decrypt(recipient_secret_key, event["pubkey"], event["content"]) == (
        result.change_token
    )

    # And: The quotes are consumed
    assert paywally.melt_quote is None and paywally.mint_quote is None
    assert paywally.payment_state == PollState.DONE
