"""Domain entities: mint quotes, proofs and payment results."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import NotificationError

HEX_PATTERN = r"^(?:[0-9a-fA-F]{2})+$"


class MintQuoteState(str, Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"
    ISSUED = "ISSUED"
    EXPIRED = "EXPIRED"


class MeltQuoteState(str, Enum):
    UNPAID = "UNPAID"
    PENDING = "PENDING"
    PAID = "PAID"


class MeltQuote(BaseModel):
    """Mint's commitment to pay a specific invoice for ``amount + fee_reserve``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    quote: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0)
    fee_reserve: int = Field(..., ge=0)
    state: Optional[MeltQuoteState] = None
    expiry: Optional[int] = None
    request: Optional[str] = None

    @property
    def amount_to_send(self) -> int:
        return self.amount + self.fee_reserve


class MintQuote(BaseModel):
    """Mint's invoice that, once paid, allows minting new proofs."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    quote: str = Field(..., min_length=1)
    request: str = Field(..., min_length=1)
    state: MintQuoteState = MintQuoteState.UNPAID
    expiry: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy_paid_flag(cls, data: Any) -> Any:
        # Older mints report `paid: bool` instead of `state`.
        if isinstance(data, dict) and not data.get("state") and "paid" in data:
            data = dict(data)
            data["state"] = (
                MintQuoteState.PAID if data.get("paid") else MintQuoteState.UNPAID
            )
        return data

    @property
    def is_paid(self) -> bool:
        return self.state in (MintQuoteState.PAID, MintQuoteState.ISSUED)


class Proof(BaseModel):
    """A bearer token issued by the mint.

    ``id`` and ``C`` travel as raw bytes in V4 tokens, so both must be hex.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(..., pattern=HEX_PATTERN)
    amount: int = Field(..., gt=0)
    secret: str
    C: str = Field(..., pattern=HEX_PATTERN)


class BlindedMessage(BaseModel):
    """Output sent to the mint for blind signing."""

    amount: int
    id: str
    B_: str


class BlindSignature(BaseModel):
    """Mint's blind signature on a :class:`BlindedMessage`."""

    model_config = ConfigDict(extra="ignore")

    amount: int
    id: str
    C_: str


class Keyset(BaseModel):
    """One keyset of the mint: amount -> compressed public key (hex)."""

    id: str
    unit: str = "sat"
    active: bool = True
    input_fee_ppk: int = 0
    keys: dict[int, str] = Field(default_factory=dict)

    @property
    def has_hex_id(self) -> bool:
        return re.fullmatch(HEX_PATTERN, self.id) is not None


class SendSplit(BaseModel):
    """Result of splitting proofs into a portion to keep and one to send."""

    keep: List[Proof] = Field(default_factory=list)
    send: List[Proof] = Field(default_factory=list)


class MeltResult(BaseModel):
    """Outcome of melting proofs against a melt quote."""

    quote: MeltQuote
    paid: bool = True
    payment_preimage: Optional[str] = None
    change: List[Proof] = Field(default_factory=list)


class TransferResult(BaseModel):
    """Outcome of the post-settlement value transfer."""

    minted: List[Proof]
    keep: List[Proof]
    melt_change: List[Proof]

    @property
    def change(self) -> List[Proof]:
        return [*self.melt_change, *self.keep]

    @property
    def change_amount(self) -> int:
        return sum(p.amount for p in self.change)


class PaymentResult(BaseModel):
    """What ``wait_for_payment`` reports back.

    ``settled`` means the receiver's invoice was paid. ``notified`` means the
    change token reached at least one relay. ``bool(result)`` holds only when
    both are true.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    settled: bool
    notified: bool
    change_token: Optional[str] = None
    change_amount: int = 0
    notification_error: Optional[NotificationError] = None

    def __bool__(self) -> bool:
        return self.settled and self.notified
