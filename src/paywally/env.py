from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel

from .application.options import (
    DEFAULT_MAX_POLL_ATTEMPTS,
    DEFAULT_NOTIFY_TIMEOUT_SECONDS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    PaywallyOptions,
    validate_options,
)
from .domain.errors import ConfigurationError


class Settings(BaseModel):
    """Typed settings built from ``PAYWALLY_*`` environment variables."""

    npubkey: str
    nrelays: list[str]
    mint_url: str
    my_lnurl: str
    pay_sats: int
    fee_sats: int
    with_log: bool = False
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    max_poll_attempts: int = DEFAULT_MAX_POLL_ATTEMPTS
    notify_timeout_seconds: float = DEFAULT_NOTIFY_TIMEOUT_SECONDS

    def to_options(self) -> PaywallyOptions:
        return validate_options(self.model_dump())


def _int(environ: Mapping[str, str], key: str, default: Optional[str] = None) -> int:
    raw = environ.get(key, default)
    if raw is None:
        raise ConfigurationError(f"{key} is required")
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be an integer, got '{raw}'") from e


def _float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be a number, got '{raw}'") from e


def get_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Return typed settings sourced from env vars."""
    env = os.environ if environ is None else environ
    required = ("PAYWALLY_NPUBKEY", "PAYWALLY_NRELAYS", "PAYWALLY_MINT_URL", "PAYWALLY_LNURL")
    missing = [key for key in required if not env.get(key)]
    if missing:
        raise ConfigurationError(f"{', '.join(missing)} required")

    return Settings(
        npubkey=env["PAYWALLY_NPUBKEY"],
        nrelays=[r.strip() for r in env["PAYWALLY_NRELAYS"].split(",") if r.strip()],
        mint_url=env["PAYWALLY_MINT_URL"],
        my_lnurl=env["PAYWALLY_LNURL"],
        pay_sats=_int(env, "PAYWALLY_PAY_SATS"),
        fee_sats=_int(env, "PAYWALLY_FEE_SATS", "0"),
        with_log=env.get("PAYWALLY_WITH_LOG", "false").lower() == "true",
        poll_interval_seconds=_float(
            env, "PAYWALLY_POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL_SECONDS
        ),
        max_poll_attempts=_int(
            env, "PAYWALLY_MAX_POLL_ATTEMPTS", str(DEFAULT_MAX_POLL_ATTEMPTS)
        ),
        notify_timeout_seconds=_float(
            env, "PAYWALLY_NOTIFY_TIMEOUT_SECONDS", DEFAULT_NOTIFY_TIMEOUT_SECONDS
        ),
    )
