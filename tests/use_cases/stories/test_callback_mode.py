"""Story: The integrator uses callbacks instead of awaiting each phase."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

import pytest

from paywally.application.paywally import Paywally
from paywally.domain.entities import MintQuoteState, PaymentResult
from paywally.domain.errors import PaymentTimeout, UnsupportedReceiver
from tests.fixtures import MINT_INVOICE, FakeLnurlServer, TestMintWallet


@pytest.mark.asyncio
async def test_callbacks_receive_invoice_then_result(
    make_paywally: Callable[..., Awaitable[Paywally]],
) -> None:
    """
    Story: on_invoice gets the invoice, then an async on_payment gets the result.
    """
    invoices: list[str] = []
    results: list[PaymentResult] = []
    errors: list[Exception] = []

    async def on_payment(result: PaymentResult) -> None:
        results.append(result)

    # Given/When: An instance created with callbacks
    paywally = await make_paywally(callbacks=(invoices.append, on_payment, errors.append))
    assert paywally.driver is not None
    await paywally.driver

    # Then: Both callbacks fired once, in order, and no error was reported
    assert invoices == [MINT_INVOICE]
    assert len(results) == 1 and results[0]
    assert errors == []


@pytest.mark.asyncio
async def test_invoice_only_callback(
    make_paywally: Callable[..., Awaitable[Paywally]],
    wallet: TestMintWallet,
) -> None:
    """
    Story: Without on_payment the driver stops after handing out the invoice.
    """
    invoices: list[str] = []

    paywally = await make_paywally(callbacks=(invoices.append,))
    await paywally.driver

    assert invoices == [MINT_INVOICE]
    assert wallet.call_count("check_mint_quote") == 0
    assert paywally.mint_quote is not None


@pytest.mark.asyncio
async def test_errors_go_to_on_error(
    make_paywally: Callable[..., Awaitable[Paywally]],
    lnurl_server: FakeLnurlServer,
) -> None:
    """
    Story: A resolution error is delivered to on_error instead of raised.
    """
    lnurl_server.pay_request["tag"] = "withdrawRequest"
    invoices: list[str] = []
    errors: list[Any] = []

    paywally = await make_paywally(callbacks=(invoices.append, None, errors.append))
    await paywally.driver

    assert invoices == []
    assert len(errors) == 1
    assert isinstance(errors[0], UnsupportedReceiver)


@pytest.mark.asyncio
async def test_timeout_goes_to_on_error(
    make_paywally: Callable[..., Awaitable[Paywally]],
    wallet: TestMintWallet,
) -> None:
    """
    Story: The invoice is shown, the payer walks away, on_error gets the timeout.
    """
    wallet.set_quote_states(MintQuoteState.UNPAID)
    invoices: list[str] = []
    results: list[PaymentResult] = []
    errors: list[Any] = []

    paywally = await make_paywally(
        callbacks=(invoices.append, results.append, errors.append),
        options={"maxPollAttempts": 2},
    )
    await paywally.driver

    assert invoices == [MINT_INVOICE]
    assert results == []
    assert isinstance(errors[0], PaymentTimeout)


@pytest.mark.asyncio
async def test_without_on_error_the_driver_fails(
    make_paywally: Callable[..., Awaitable[Paywally]],
    lnurl_server: FakeLnurlServer,
) -> None:
    """
    Story: With no on_error the failure surfaces on the driver task.
    """
    lnurl_server.pay_request["tag"] = "withdrawRequest"

    paywally = await make_paywally(callbacks=(lambda invoice: None,))

    with pytest.raises(UnsupportedReceiver):
        await paywally.driver


@pytest.mark.asyncio
async def test_failing_on_error_is_logged_and_raised(
    make_paywally: Callable[..., Awaitable[Paywally]],
    lnurl_server: FakeLnurlServer,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """
    Story: An on_error that itself fails is logged and surfaces on the driver.
    """
    lnurl_server.pay_request["tag"] = "withdrawRequest"

    def on_error(error: Exception) -> None:
        raise RuntimeError("error sink is down")

    paywally = await make_paywally(callbacks=(lambda invoice: None, None, on_error))

    with caplog.at_level(logging.ERROR, logger="paywally.application.paywally"):
        with pytest.raises(RuntimeError, match="error sink is down"):
            await paywally.driver

    (record,) = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert record.getMessage() == "on_error callback failed"
    assert record.exc_info is not None
