"""Blind Diffie-Hellman key exchange, wallet side.

The wallet blinds ``Y = hash_to_curve(secret)`` as ``B_ = Y + rG``, the mint
answers ``C_ = kB_`` and the wallet unblinds ``C = C_ - rK`` where ``K = kG`` is
the mint's public key for that amount.
"""

from __future__ import annotations

import hashlib
import secrets
from typing import Callable

from .secp256k1 import N, Point, decode_point, multiply_generator

DOMAIN_SEPARATOR = b"Secp256k1_HashToCurve_Cashu_"


def hash_to_curve(message: bytes) -> Point:
    msg_hash = hashlib.sha256(DOMAIN_SEPARATOR + message).digest()
    for counter in range(2**16):
        digest = hashlib.sha256(msg_hash + counter.to_bytes(4, "little")).digest()
        try:
            return decode_point(b"\x02" + digest)
        except ValueError:
            continue
    raise ValueError("No valid point found")


def random_blinding_factor(rng: Callable[[int], bytes] = secrets.token_bytes) -> int:
    while True:
        r = int.from_bytes(rng(32), "big")
        if 1 <= r < N:
            return r


def blind_message(secret: str, r: int) -> Point:
    Y = hash_to_curve(secret.encode("utf-8"))
    return Y + multiply_generator(r)


def unblind_signature(C_: Point, r: int, K: Point) -> Point:
    return C_ + (-(r * K))
