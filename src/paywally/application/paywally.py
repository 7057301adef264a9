"""Payment orchestrator: receiver invoice -> quotes -> settlement -> change."""

from __future__ import annotations

import asyncio
import inspect
import logging
import secrets
from typing import Any, Awaitable, Callable, Optional, Type, Union
from types import TracebackType

from ..domain.entities import MeltQuote, MintQuote, PaymentResult
from ..domain.errors import (
    MintError,
    MintUnavailable,
    NoActiveQuote,
    NotificationError,
)
from ..domain.shared import MintWalletProtocol, RelayPoolFactory
from ..infrastructure.http.http_client import AsyncHttpClient
from ..infrastructure.mint.wallet import CashuWallet
from ..infrastructure.nostr.relay_pool import RelayPool
from .options import OptionsInput, PaywallyOptions, validate_options
from .use_cases.change_notifier import ChangeNotifier
from .use_cases.invoice_resolver import InvoiceResolver
from .use_cases.quote_negotiator import QuoteNegotiator
from .use_cases.settlement_poller import PollState, SettlementPoller, Sleep
from .use_cases.value_transfer import ValueTransfer

logger = logging.getLogger(__name__)

Callback = Callable[[Any], Union[None, Awaitable[None]]]


async def _invoke(callback: Callback, value: Any) -> None:
    result = callback(value)
    if inspect.isawaitable(result):
        await result


class Paywally:
    """Pay a receiver through a Cashu mint and send the change over Nostr.

    Build instances with :meth:`create`, which validates the options and
    loads the mint before returning.

    Example::

        # using callbacks
        await Paywally.create(options, on_invoice, on_payment, on_error)

        # using async/await
        async with await Paywally.create(options) as paywally:
            show(await paywally.get_invoice())
            result = await paywally.wait_for_payment()
            if result.settled:
                unlock()
    """

    def __init__(
        self,
        options: PaywallyOptions,
        wallet: MintWalletProtocol,
        http_client: AsyncHttpClient,
        relay_pool_factory: RelayPoolFactory,
        *,
        sleep: Sleep = asyncio.sleep,
        rng: Callable[[int], bytes] = secrets.token_bytes,
        owns_wallet: bool = True,
        owns_http: bool = True,
    ) -> None:
        self.options = options
        self.wallet = wallet
        self._http = http_client
        self._owns_wallet = owns_wallet
        self._owns_http = owns_http

        self._resolver = InvoiceResolver(http_client)
        self._negotiator = QuoteNegotiator(wallet)
        self._poller = SettlementPoller(
            wallet,
            interval=options.poll_interval_seconds,
            max_attempts=options.max_poll_attempts,
            sleep=sleep,
        )
        self._transfer = ValueTransfer(wallet)
        self._notifier = ChangeNotifier(
            options.npubkey,
            options.nrelays,
            relay_pool_factory,
            timeout=options.notify_timeout_seconds,
            rng=rng,
        )

        self.melt_quote: Optional[MeltQuote] = None
        self.mint_quote: Optional[MintQuote] = None
        self.driver: Optional[asyncio.Task[None]] = None

    @classmethod
    async def create(
        cls,
        options: OptionsInput,
        on_invoice: Optional[Callback] = None,
        on_payment: Optional[Callback] = None,
        on_error: Optional[Callback] = None,
        *,
        wallet: Optional[MintWalletProtocol] = None,
        http_client: Optional[AsyncHttpClient] = None,
        relay_pool_factory: Optional[RelayPoolFactory] = None,
        sleep: Sleep = asyncio.sleep,
        rng: Callable[[int], bytes] = secrets.token_bytes,
    ) -> "Paywally":
        """Validate ``options``, load the mint and return a ready instance.

        When ``on_invoice`` is given the instance drives itself: the invoice is
        passed to ``on_invoice``, then (if given) the :class:`PaymentResult`
        to ``on_payment``. Errors go to ``on_error``. The running task is
        available as ``instance.driver``.

        Raises:
            ConfigurationError: Invalid options.
            MintUnavailable: The mint could not be loaded.
        """
        opts = validate_options(options)

        owns_wallet = wallet is None
        if wallet is None:
            wallet = CashuWallet(
                opts.mint_url, unit=opts.unit, timeout=opts.http_timeout_seconds
            )
        try:
            await wallet.load_mint()
        except MintError as e:
            if owns_wallet:
                await wallet.aclose()
            raise MintUnavailable(f"unable to load mint {opts.mint_url}: {e}") from e

        owns_http = http_client is None
        if http_client is None:
            http_client = AsyncHttpClient(timeout=opts.http_timeout_seconds)
        if relay_pool_factory is None:
            open_timeout = opts.notify_timeout_seconds

            def relay_pool_factory() -> RelayPool:
                return RelayPool(open_timeout=open_timeout)

        instance = cls(
            opts,
            wallet,
            http_client,
            relay_pool_factory,
            sleep=sleep,
            rng=rng,
            owns_wallet=owns_wallet,
            owns_http=owns_http,
        )
        if on_invoice is not None:
            instance.driver = asyncio.create_task(
                instance._drive(on_invoice, on_payment, on_error)
            )
        return instance

    @property
    def payment_state(self) -> PollState:
        return self._poller.state

    def _debug(self, msg: str, *args: Any) -> None:
        if self.options.with_log:
            logger.info("Debug info: " + msg, *args)

    async def get_invoice(self) -> str:
        """Fetch the receiver's invoice and create the melt and mint quotes.

        Returns:
            The mint invoice the payer has to pay.
        """
        self.melt_quote = None
        self.mint_quote = None

        invoice = await self._resolver.resolve(
            self.options.my_lnurl, self.options.receiver_amount
        )
        self._debug("receiver invoice %s", invoice)

        quotes = await self._negotiator.negotiate(
            invoice, self.options.pay_sats, self.options.fee_sats
        )
        self.melt_quote, self.mint_quote = quotes.melt, quotes.mint
        self._debug("meltQuote %s", quotes.melt)
        self._debug("amount to send %d", quotes.melt.amount_to_send)
        self._debug("invoice to pay %s", quotes.mint.request)
        return quotes.mint.request

    async def wait_for_payment(self) -> PaymentResult:
        """Wait for the mint invoice to be paid, pay the receiver, send change.

        The quote pair is consumed whatever the outcome; a new attempt needs a
        new :meth:`get_invoice`.

        Raises:
            NoActiveQuote: :meth:`get_invoice` has not run.
            PaymentTimeout: The mint invoice was not paid in time.
            ValueTransferError: Minting, splitting or melting failed after
                payment; needs manual reconciliation.
        """
        melt_quote, mint_quote = self.melt_quote, self.mint_quote
        if melt_quote is None or mint_quote is None:
            raise NoActiveQuote("meltQuote and mintQuote not present; call get_invoice()")

        try:
            await self._poller.wait_until_paid(mint_quote.quote)
            transfer = await self._transfer.execute(
                mint_quote, melt_quote, self.options.pay_sats
            )
        finally:
            self.melt_quote = None
            self.mint_quote = None
        self._debug("change amount %d", transfer.change_amount)

        try:
            token = await self._notifier.notify(
                transfer.change,
                self.options.mint_url,
                memo=self.options.memo,
                unit=self.options.unit,
            )
        except NotificationError as e:
            logger.warning("Payment settled but change delivery failed: %s", e)
            return PaymentResult(
                settled=True,
                notified=False,
                change_token=e.token,
                change_amount=transfer.change_amount,
                notification_error=e,
            )
        finally:
            self._poller.mark_done()

        self._debug("payment successful, change sent via Nostr")
        return PaymentResult(
            settled=True,
            notified=True,
            change_token=token,
            change_amount=transfer.change_amount,
        )

    async def _drive(
        self,
        on_invoice: Callback,
        on_payment: Optional[Callback],
        on_error: Optional[Callback],
    ) -> None:
        try:
            invoice = await self.get_invoice()
            await _invoke(on_invoice, invoice)
            if on_payment is not None:
                await _invoke(on_payment, await self.wait_for_payment())
        except Exception as e:
            if on_error is None:
                logger.exception("Paywally run failed")
                raise
            logger.debug("Forwarding error to on_error: %r", e)
            try:
                await _invoke(on_error, e)
            except Exception:
                logger.exception("on_error callback failed")
                raise

    async def aclose(self) -> None:
        if self.driver is not None and not self.driver.done():
            self.driver.cancel()
            await asyncio.gather(self.driver, return_exceptions=True)
        if self._owns_http:
            await self._http.aclose()
        if self._owns_wallet:
            await self.wallet.aclose()

    async def __aenter__(self) -> "Paywally":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
