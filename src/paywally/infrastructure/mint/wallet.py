"""Cashu wallet over the mint HTTP API.

Implements :class:`paywally.domain.shared.MintWalletProtocol`. Proofs live in
memory only and are handed back to the caller; nothing is persisted.
"""

from __future__ import annotations

import logging
import math
import secrets
from typing import Callable, List, Optional, Sequence, Type
from types import TracebackType

import httpx

from ...application.mint_dtos import (
    PostMeltQuoteRequestDTO,
    PostMeltRequestDTO,
    PostMintQuoteRequestDTO,
    PostMintRequestDTO,
    PostSwapRequestDTO,
)
from ...crypto.bdhke import blind_message, random_blinding_factor, unblind_signature
from ...crypto.secp256k1 import Point, decode_point, encode_point
from ...domain.entities import (
    BlindSignature,
    BlindedMessage,
    Keyset,
    MeltQuote,
    MeltResult,
    MintQuote,
    Proof,
    SendSplit,
)
from ...domain.errors import MintError
from .mint_client import AsyncMintClient

logger = logging.getLogger(__name__)


def split_amount(amount: int) -> list[int]:
    """Decompose ``amount`` into ascending powers of two."""
    return [1 << i for i in range(amount.bit_length()) if amount >> i & 1]


def blank_output_count(fee_reserve: int) -> int:
    """Number of blank outputs needed to receive fee change (NUT-08)."""
    if fee_reserve <= 0:
        return 0
    return max(math.ceil(math.log2(fee_reserve)), 1)


def select_exact(proofs: Sequence[Proof], amount: int) -> Optional[list[Proof]]:
    """Greedily pick proofs summing to exactly ``amount``, or None."""
    selected: list[Proof] = []
    remaining = amount
    for proof in sorted(proofs, key=lambda p: p.amount, reverse=True):
        if proof.amount <= remaining:
            selected.append(proof)
            remaining -= proof.amount
        if remaining == 0:
            return selected
    return None


class _PendingOutputs:
    """Blinded outputs together with the secrets needed to unblind them."""

    def __init__(self) -> None:
        self.messages: List[BlindedMessage] = []
        self.secrets: List[str] = []
        self.factors: List[int] = []


class CashuWallet:
    """Wallet bound to one mint and one unit."""

    def __init__(
        self,
        mint_url: str,
        *,
        unit: str = "sat",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rng: Callable[[int], bytes] = secrets.token_bytes,
    ) -> None:
        self.mint_url = mint_url
        self.unit = unit
        self._client = AsyncMintClient(mint_url, timeout=timeout, transport=transport)
        self._rng = rng
        self._keysets: dict[str, Keyset] = {}
        self._active_id: Optional[str] = None

    # Keysets

    async def load_mint(self) -> None:
        infos = await self._client.get_keysets()
        for info in infos.keysets:
            self._keysets[info.id] = Keyset(
                id=info.id,
                unit=info.unit,
                active=info.active,
                input_fee_ppk=info.input_fee_ppk,
            )
        # Tokens carry keyset ids as bytes; ids that are not hex cannot be sent.
        active = [
            k
            for k in self._keysets.values()
            if k.active and k.unit == self.unit and k.has_hex_id
        ]
        if not active:
            raise MintError(f"Mint has no active keyset for unit '{self.unit}'")
        # Prefer the cheapest active keyset.
        keyset = min(active, key=lambda k: k.input_fee_ppk)
        await self._load_keys(keyset.id)
        self._active_id = keyset.id
        logger.debug("Loaded keyset %s from %s", keyset.id, self.mint_url)

    async def _load_keys(self, keyset_id: str) -> Keyset:
        resp = await self._client.get_keys(keyset_id)
        for entry in resp.keysets:
            known = self._keysets.get(entry.id)
            self._keysets[entry.id] = Keyset(
                id=entry.id,
                unit=entry.unit,
                active=known.active if known else False,
                input_fee_ppk=known.input_fee_ppk if known else 0,
                keys=entry.keys,
            )
        if keyset_id not in self._keysets or not self._keysets[keyset_id].keys:
            raise MintError(f"Mint did not return keys for keyset {keyset_id}")
        return self._keysets[keyset_id]

    def _active_keyset(self) -> Keyset:
        if self._active_id is None:
            raise MintError("Mint not loaded; call load_mint() first")
        return self._keysets[self._active_id]

    async def _mint_key(self, keyset_id: str, amount: int) -> Point:
        keyset = self._keysets.get(keyset_id)
        if keyset is None or not keyset.keys:
            keyset = await self._load_keys(keyset_id)
        try:
            return decode_point(bytes.fromhex(keyset.keys[amount]))
        except KeyError as e:
            raise MintError(
                f"Keyset {keyset_id} has no key for amount {amount}"
            ) from e
        except ValueError as e:
            raise MintError(
                f"Invalid key from mint for keyset {keyset_id}, amount {amount}: {e}"
            ) from e

    def input_fee(self, proofs: Sequence[Proof]) -> int:
        ppk = sum(
            self._keysets[p.id].input_fee_ppk if p.id in self._keysets else 0
            for p in proofs
        )
        return (ppk + 999) // 1000

    # Outputs

    def _blind_outputs(self, amounts: Sequence[int]) -> _PendingOutputs:
        keyset = self._active_keyset()
        pending = _PendingOutputs()
        for amount in amounts:
            secret = self._rng(32).hex()
            r = random_blinding_factor(self._rng)
            B_ = blind_message(secret, r)
            pending.messages.append(
                BlindedMessage(amount=amount, id=keyset.id, B_=encode_point(B_).hex())
            )
            pending.secrets.append(secret)
            pending.factors.append(r)
        return pending

    async def _construct_proofs(
        self, signatures: Sequence[BlindSignature], pending: _PendingOutputs
    ) -> list[Proof]:
        if len(signatures) > len(pending.secrets):
            raise MintError("Mint returned more signatures than outputs")
        proofs: list[Proof] = []
        for sig, secret, r in zip(signatures, pending.secrets, pending.factors):
            K = await self._mint_key(sig.id, sig.amount)
            try:
                C = unblind_signature(decode_point(bytes.fromhex(sig.C_)), r, K)
                proof = Proof(
                    id=sig.id, amount=sig.amount, secret=secret, C=encode_point(C).hex()
                )
            except ValueError as e:
                raise MintError(f"Invalid signature from mint for amount {sig.amount}: {e}") from e
            proofs.append(proof)
        return proofs

    # Quotes

    async def create_melt_quote(self, invoice: str) -> MeltQuote:
        return await self._client.post_melt_quote(
            PostMeltQuoteRequestDTO(request=invoice, unit=self.unit)
        )

    async def create_mint_quote(self, amount: int) -> MintQuote:
        return await self._client.post_mint_quote(
            PostMintQuoteRequestDTO(amount=amount, unit=self.unit)
        )

    async def check_mint_quote(self, quote_id: str) -> MintQuote:
        return await self._client.get_mint_quote(quote_id)

    # Value movement

    async def mint_proofs(self, amount: int, quote_id: str) -> list[Proof]:
        pending = self._blind_outputs(split_amount(amount))
        resp = await self._client.post_mint(
            PostMintRequestDTO(quote=quote_id, outputs=pending.messages)
        )
        if len(resp.signatures) != len(pending.messages):
            raise MintError("Mint returned a different number of signatures")
        return await self._construct_proofs(resp.signatures, pending)

    async def send(self, amount: int, proofs: Sequence[Proof]) -> SendSplit:
        total = sum(p.amount for p in proofs)
        if amount > total:
            raise MintError(f"Not enough funds: need {amount}, have {total}")

        exact = select_exact(proofs, amount)
        if exact is not None:
            chosen = {id(p) for p in exact}
            return SendSplit(
                keep=[p for p in proofs if id(p) not in chosen], send=exact
            )

        fee = self.input_fee(proofs)
        keep_amount = total - amount - fee
        if keep_amount < 0:
            raise MintError(
                f"Not enough funds to cover swap fee: need {amount + fee}, have {total}"
            )
        keep_amounts = split_amount(keep_amount)
        pending = self._blind_outputs([*keep_amounts, *split_amount(amount)])
        resp = await self._client.post_swap(
            PostSwapRequestDTO(inputs=list(proofs), outputs=pending.messages)
        )
        if len(resp.signatures) != len(pending.messages):
            raise MintError("Mint returned a different number of signatures")
        swapped = await self._construct_proofs(resp.signatures, pending)
        return SendSplit(
            keep=swapped[: len(keep_amounts)], send=swapped[len(keep_amounts) :]
        )

    async def melt_proofs(
        self, quote: MeltQuote, proofs: Sequence[Proof]
    ) -> MeltResult:
        pending = self._blind_outputs([1] * blank_output_count(quote.fee_reserve))
        resp = await self._client.post_melt(
            PostMeltRequestDTO(
                quote=quote.quote, inputs=list(proofs), outputs=pending.messages
            )
        )
        if not resp.is_paid:
            raise MintError(
                f"Melt quote {quote.quote} was not paid (state={resp.state})"
            )
        change = await self._construct_proofs(resp.change or [], pending)
        return MeltResult(
            quote=quote,
            paid=True,
            payment_preimage=resp.payment_preimage,
            change=change,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "CashuWallet":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
