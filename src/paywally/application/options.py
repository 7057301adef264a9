"""Validated configuration for a :class:`~paywally.application.paywally.Paywally`."""

from __future__ import annotations

import string
from typing import Any, List, Mapping, Union
from urllib.parse import urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..crypto.secp256k1 import lift_x
from ..domain.errors import (
    ConfigurationError,
    InvalidFeeReserve,
    InvalidPayAmount,
    InvalidReceiverAddress,
    InvalidRecipientKey,
    InvalidTransportList,
    MissingMintEndpoint,
)

DEFAULT_POLL_INTERVAL_SECONDS = 5.0
DEFAULT_MAX_POLL_ATTEMPTS = 60
DEFAULT_NOTIFY_TIMEOUT_SECONDS = 10.0
DEFAULT_MEMO = "paywally"


def split_address(address: str) -> tuple[str, str]:
    """Split ``user@host`` into its two non-empty parts, else raise ValueError."""
    parts = address.split("@")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError("address must be in the format user@host")
    return parts[0], parts[1]


def _is_strict_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class PaywallyOptions(BaseModel):
    """Immutable options, validated all-or-nothing.

    The six payment fields raise a dedicated :class:`ConfigurationError`
    subclass each. Field names also accept their camelCase form
    (``mintUrl``, ``paySats``...).
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    npubkey: str = Field(default=None, validate_default=True)  # type: ignore[assignment]
    nrelays: List[str] = Field(default=None, validate_default=True)  # type: ignore[assignment]
    mint_url: str = Field(default=None, validate_default=True)  # type: ignore[assignment]
    my_lnurl: str = Field(default=None, validate_default=True)  # type: ignore[assignment]
    pay_sats: int = Field(default=None, validate_default=True)  # type: ignore[assignment]
    fee_sats: int = Field(default=None, validate_default=True)  # type: ignore[assignment]
    with_log: bool = False

    poll_interval_seconds: float = Field(DEFAULT_POLL_INTERVAL_SECONDS, ge=0)
    max_poll_attempts: int = Field(DEFAULT_MAX_POLL_ATTEMPTS, gt=0)
    notify_timeout_seconds: float = Field(DEFAULT_NOTIFY_TIMEOUT_SECONDS, gt=0)
    http_timeout_seconds: float = Field(10.0, gt=0)
    memo: str = DEFAULT_MEMO
    unit: str = "sat"

    @field_validator("npubkey", mode="before")
    @classmethod
    def validate_npubkey(cls, v: Any) -> str:
        if not isinstance(v, str) or len(v) != 64:
            raise InvalidRecipientKey("npubkey must be a 64 character hex public key")
        if any(c not in string.hexdigits for c in v):
            raise InvalidRecipientKey("npubkey must be hex encoded")
        try:
            lift_x(int(v, 16))
        except ValueError as e:
            raise InvalidRecipientKey("npubkey is not a valid public key") from e
        return v.lower()

    @field_validator("nrelays", mode="before")
    @classmethod
    def validate_nrelays(cls, v: Any) -> List[str]:
        if not isinstance(v, (list, tuple)) or len(v) == 0:
            raise InvalidTransportList("nrelays must be a non-empty array of relay URLs")
        for relay in v:
            if not isinstance(relay, str) or not relay:
                raise InvalidTransportList("relay URLs cannot be empty")
            parsed = urlparse(relay)
            if parsed.scheme not in {"ws", "wss"} or not parsed.netloc:
                raise InvalidTransportList(
                    f"relay URL must start with ws:// or wss://, got '{relay}'"
                )
        return list(v)

    @field_validator("mint_url", mode="before")
    @classmethod
    def validate_mint_url(cls, v: Any) -> str:
        if not isinstance(v, str) or not v:
            raise MissingMintEndpoint("mintUrl is required")
        parsed = urlparse(v)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise MissingMintEndpoint("mintUrl must start with http:// or https://")
        return v

    @field_validator("my_lnurl", mode="before")
    @classmethod
    def validate_my_lnurl(cls, v: Any) -> str:
        if not isinstance(v, str):
            raise InvalidReceiverAddress("myLnurl is required")
        try:
            split_address(v)
        except ValueError as e:
            raise InvalidReceiverAddress("myLnurl must be in the format user@host") from e
        return v

    @field_validator("pay_sats", mode="before")
    @classmethod
    def validate_pay_sats(cls, v: Any) -> int:
        if not _is_strict_int(v):
            raise InvalidPayAmount("paySats must be an integer")
        if v <= 0:
            raise InvalidPayAmount("paySats must be greater than 0")
        return v

    @field_validator("fee_sats", mode="before")
    @classmethod
    def validate_fee_sats(cls, v: Any) -> int:
        if not _is_strict_int(v):
            raise InvalidFeeReserve("feeSats must be an integer")
        if v < 0:
            raise InvalidFeeReserve("feeSats must be 0 or greater")
        return v

    @model_validator(mode="after")
    def validate_fee_below_pay(self) -> "PaywallyOptions":
        if self.fee_sats >= self.pay_sats:
            raise InvalidFeeReserve("feeSats must be less than paySats")
        return self

    @property
    def receiver_amount(self) -> int:
        """Amount requested from the receiver, the fee reserve deducted."""
        return self.pay_sats - self.fee_sats


OptionsInput = Union[PaywallyOptions, Mapping[str, Any]]


def validate_options(options: OptionsInput) -> PaywallyOptions:
    """Return validated options, raising a :class:`ConfigurationError` on failure."""
    if isinstance(options, PaywallyOptions):
        return options
    try:
        return PaywallyOptions.model_validate(dict(options))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid options: {e}") from e
