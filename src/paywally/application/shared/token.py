"""Portable Cashu token codec (V4, ``cashuB`` prefix).

The token body is CBOR, base64url encoded without padding:

    {"m": mint_url, "u": unit, "d": memo, "t": [{"i": keyset_id, "p": [proof]}]}

where keyset ids and proof signatures travel as raw bytes.
"""

from __future__ import annotations

import base64
from typing import Iterable, List, Optional

import cbor2
from pydantic import BaseModel, Field

from ...domain.entities import Proof

TOKEN_V4_PREFIX = "cashuB"


class Token(BaseModel):
    mint: str
    unit: str = "sat"
    memo: Optional[str] = None
    proofs: List[Proof] = Field(default_factory=list)

    @property
    def amount(self) -> int:
        return sum(p.amount for p in self.proofs)


def _group_by_keyset(proofs: Iterable[Proof]) -> list[dict]:
    groups: dict[str, list[dict]] = {}
    for proof in proofs:
        groups.setdefault(proof.id, []).append(
            {"a": proof.amount, "s": proof.secret, "c": bytes.fromhex(proof.C)}
        )
    return [{"i": bytes.fromhex(keyset_id), "p": ps} for keyset_id, ps in groups.items()]


def encode_token(
    proofs: Iterable[Proof],
    mint_url: str,
    *,
    memo: Optional[str] = None,
    unit: str = "sat",
) -> str:
    """Serialize proofs into a single V4 token string.

    Encoding is deterministic: identical proofs, mint and memo always give the
    same token.
    """
    body: dict = {"m": mint_url, "u": unit}
    if memo:
        body["d"] = memo
    body["t"] = _group_by_keyset(proofs)
    encoded = base64.urlsafe_b64encode(cbor2.dumps(body)).decode("ascii")
    return TOKEN_V4_PREFIX + encoded.rstrip("=")


def decode_token(token: str) -> Token:
    if not token.startswith(TOKEN_V4_PREFIX):
        raise ValueError("unsupported token version")
    raw = token[len(TOKEN_V4_PREFIX) :]
    raw += "=" * (-len(raw) % 4)
    body = cbor2.loads(base64.urlsafe_b64decode(raw))

    proofs = [
        Proof(id=entry["i"].hex(), amount=p["a"], secret=p["s"], C=p["c"].hex())
        for entry in body.get("t", [])
        for p in entry["p"]
    ]
    return Token(
        mint=body["m"],
        unit=body.get("u", "sat"),
        memo=body.get("d"),
        proofs=proofs,
    )
