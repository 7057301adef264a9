"""Resolve a Lightning address into a one-time invoice (LUD-06 / LUD-16)."""

from __future__ import annotations

import logging
from typing import Any, Optional

from ...domain.errors import AmountOutOfRange, InvalidAddress, UnreachableHost
from ...infrastructure.http.http_client import AsyncHttpClient, HttpClientError
from ..options import split_address
from .lnurl_validators import validate_invoice_response, validate_pay_request

logger = logging.getLogger(__name__)


def well_known_url(user: str, host: str) -> str:
    scheme = "http" if host.endswith(".onion") else "https"
    return f"{scheme}://{host}/.well-known/lnurlp/{user}"


class InvoiceResolver:
    """Two-step LNURL-pay handshake. No retries: any failure aborts."""

    def __init__(self, http: AsyncHttpClient) -> None:
        self._http = http

    async def _fetch_json(
        self, url: str, params: Optional[dict[str, Any]] = None
    ) -> Any:
        try:
            return await self._http.get_json(url, params=params)
        except HttpClientError as e:
            raise UnreachableHost(f"Unable to reach {url}: {e}") from e

    async def resolve(self, address: str, amount: int) -> str:
        """Return an invoice from ``address`` for ``amount`` sats."""
        try:
            user, host = split_address(address)
        except ValueError as e:
            raise InvalidAddress(str(e)) from e
        if amount <= 0:
            raise AmountOutOfRange("amount must be greater than 0")

        amount_msat = amount * 1000
        pay_request = await self._fetch_json(well_known_url(user, host))
        callback = validate_pay_request(pay_request, amount_msat)

        response = await self._fetch_json(callback, params={"amount": amount_msat})
        invoice = validate_invoice_response(response, amount_msat)
        logger.debug("Resolved invoice for %s (%d msat)", address, amount_msat)
        return invoice
