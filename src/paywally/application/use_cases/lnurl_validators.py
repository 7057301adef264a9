"""Pure validation functions for LNURL-pay responses.

These functions contain no I/O and raise the resolution errors directly, which
makes them easy to test in isolation.
"""

from __future__ import annotations

from typing import Any, Optional

import bolt11
from bolt11.exceptions import Bolt11Exception

from ...domain.errors import AmountOutOfRange, InvoiceUnavailable, UnsupportedReceiver

_LIGHTNING_SCHEME = "lightning:"


def _error_reason(data: Any) -> Optional[str]:
    if isinstance(data, dict) and str(data.get("status", "")).upper() == "ERROR":
        return str(data.get("reason") or "unknown error")
    return None


def validate_pay_request(data: Any, amount_msat: int) -> str:
    """Check a LUD-06 payRequest document and return its callback URL.

    Raises:
        UnsupportedReceiver: Not a payRequest, or no callback.
        AmountOutOfRange: ``amount_msat`` outside ``[minSendable, maxSendable]``.
    """
    reason = _error_reason(data)
    if reason is not None:
        raise UnsupportedReceiver(f"host unable to make lightning invoice: {reason}")
    if not isinstance(data, dict) or data.get("tag") != "payRequest":
        raise UnsupportedReceiver("host unable to make lightning invoice")
    callback = data.get("callback")
    if not callback or not isinstance(callback, str):
        raise UnsupportedReceiver("callback url not present in response")

    try:
        min_sendable = int(data.get("minSendable", 0))
        max_sendable = int(data.get("maxSendable", 0))
    except (TypeError, ValueError) as e:
        raise UnsupportedReceiver("invalid sendable range in response") from e
    if min_sendable > amount_msat:
        raise AmountOutOfRange(f"amount too low (min {min_sendable} msat)")
    if max_sendable < amount_msat:
        raise AmountOutOfRange(f"amount too high (max {max_sendable} msat)")
    return callback


def invoice_amount_msat(invoice: str) -> Optional[int]:
    """Decode a BOLT11 invoice and return its amount in msat.

    Returns None for an invoice without an amount.

    Raises:
        InvoiceUnavailable: The invoice does not decode or its signature is
            invalid.
    """
    payment_request = invoice.strip()
    if payment_request.lower().startswith(_LIGHTNING_SCHEME):
        payment_request = payment_request[len(_LIGHTNING_SCHEME) :]
    try:
        decoded = bolt11.decode(payment_request)
    except (Bolt11Exception, ValueError, IndexError) as e:
        raise InvoiceUnavailable(f"invalid lightning invoice: {e}") from e
    if decoded.amount_msat is None:
        return None
    return int(decoded.amount_msat)


def validate_invoice_response(data: Any, amount_msat: int) -> str:
    """Check the callback response and return the invoice.

    Raises:
        InvoiceUnavailable: No invoice, an error envelope, an invoice that
            does not decode, or one whose amount differs from the one requested.
    """
    reason = _error_reason(data)
    if reason is not None:
        raise InvoiceUnavailable(f"unable to get invoice: {reason}")
    invoice = data.get("pr") if isinstance(data, dict) else None
    if not invoice or not isinstance(invoice, str):
        raise InvoiceUnavailable("unable to get invoice")

    encoded = invoice_amount_msat(invoice)
    if encoded is not None and encoded != amount_msat:
        raise InvoiceUnavailable(
            f"invoice amount {encoded} msat does not match requested {amount_msat} msat"
        )
    return invoice
