"""Nostr keys, BIP340 Schnorr signatures and NIP-01 events."""

from __future__ import annotations

import hashlib
import json
import secrets
from typing import Any, Callable, Optional

from .secp256k1 import N, lift_x, multiply_generator, scalar_from_bytes

ENCRYPTED_DIRECT_MESSAGE = 4


def _tagged_hash(tag: str, data: bytes) -> bytes:
    th = hashlib.sha256(tag.encode("ascii")).digest()
    return hashlib.sha256(th + th + data).digest()


def generate_secret_key(rng: Callable[[int], bytes] = secrets.token_bytes) -> bytes:
    """Return a fresh 32 byte secret key drawn from ``rng``."""
    while True:
        candidate = rng(32)
        if 1 <= int.from_bytes(candidate, "big") < N:
            return candidate


def get_public_key(secret_key: bytes) -> str:
    """x-only public key, hex encoded."""
    point = multiply_generator(scalar_from_bytes(secret_key))
    return int(point.x()).to_bytes(32, "big").hex()


def schnorr_sign(
    message: bytes, secret_key: bytes, aux_rand: Optional[bytes] = None
) -> bytes:
    if len(message) != 32:
        raise ValueError("message must be 32 bytes")
    d0 = scalar_from_bytes(secret_key)
    aux = aux_rand if aux_rand is not None else secrets.token_bytes(32)

    # Enforce even Y on the public key by negating the secret if needed.
    P0 = multiply_generator(d0)
    d = N - d0 if P0.y() & 1 else d0
    px = int(P0.x()).to_bytes(32, "big")

    t = bytes(a ^ b for a, b in zip(d.to_bytes(32, "big"), _tagged_hash("BIP0340/aux", aux)))
    k0 = int.from_bytes(_tagged_hash("BIP0340/nonce", t + px + message), "big") % N
    if k0 == 0:
        raise RuntimeError("Nonce generation failed")

    R = multiply_generator(k0)
    k = N - k0 if R.y() & 1 else k0
    rx = int(R.x()).to_bytes(32, "big")

    e = int.from_bytes(_tagged_hash("BIP0340/challenge", rx + px + message), "big") % N
    s = (k + e * d) % N
    return rx + s.to_bytes(32, "big")


def schnorr_verify(message: bytes, public_key: bytes, signature: bytes) -> bool:
    if len(message) != 32 or len(public_key) != 32 or len(signature) != 64:
        return False
    try:
        P = lift_x(int.from_bytes(public_key, "big"))
    except ValueError:
        return False
    r = int.from_bytes(signature[:32], "big")
    s = int.from_bytes(signature[32:], "big")
    if s >= N:
        return False
    e = int.from_bytes(
        _tagged_hash("BIP0340/challenge", signature[:32] + public_key + message), "big"
    ) % N
    R = multiply_generator(s) + (-(e * P))
    if R.x() is None or R.y() & 1:
        return False
    return R.x() == r


def serialize_event(event: dict[str, Any]) -> bytes:
    payload = [
        0,
        event["pubkey"],
        event["created_at"],
        event["kind"],
        event["tags"],
        event["content"],
    ]
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def get_event_hash(event: dict[str, Any]) -> str:
    return hashlib.sha256(serialize_event(event)).hexdigest()


def finalize_event(
    template: dict[str, Any],
    secret_key: bytes,
    *,
    aux_rand: Optional[bytes] = None,
) -> dict[str, Any]:
    """Return a copy of ``template`` with ``pubkey``, ``id`` and ``sig`` filled in."""
    event = dict(template)
    event["pubkey"] = get_public_key(secret_key)
    event["id"] = get_event_hash(event)
    event["sig"] = schnorr_sign(bytes.fromhex(event["id"]), secret_key, aux_rand).hex()
    return event


def verify_event(event: dict[str, Any]) -> bool:
    if get_event_hash(event) != event.get("id"):
        return False
    return schnorr_verify(
        bytes.fromhex(event["id"]),
        bytes.fromhex(event["pubkey"]),
        bytes.fromhex(event["sig"]),
    )
