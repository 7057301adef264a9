from __future__ import annotations

from ecdsa import SECP256k1, ellipticcurve

CURVE = SECP256k1.curve
G = SECP256k1.generator
N = SECP256k1.order
P = CURVE.p()

Point = ellipticcurve.Point
INFINITY = ellipticcurve.INFINITY


def lift_x(x: int, *, odd: bool = False) -> Point:
    """Return the curve point with x-coordinate ``x`` and the requested parity."""
    if not 0 <= x < P:
        raise ValueError("x-coordinate out of range")
    alpha = (pow(x, 3, P) + 7) % P
    y = pow(alpha, (P + 1) // 4, P)
    if (y * y) % P != alpha:
        raise ValueError("x-coordinate is not on the curve")
    if (y & 1) != int(odd):
        y = P - y
    return Point(CURVE, x, y)


def decode_point(data: bytes) -> Point:
    if len(data) != 33 or data[0] not in (2, 3):
        raise ValueError("invalid compressed public key")
    return lift_x(int.from_bytes(data[1:], "big"), odd=data[0] == 3)


def encode_point(point: Point) -> bytes:
    if point == INFINITY:
        raise ValueError("cannot encode the point at infinity")
    prefix = b"\x03" if point.y() & 1 else b"\x02"
    return prefix + int(point.x()).to_bytes(32, "big")


def scalar_from_bytes(secret: bytes) -> int:
    d = int.from_bytes(secret, "big")
    if not 1 <= d < N:
        raise ValueError("secret key out of range")
    return d


def multiply_generator(k: int) -> Point:
    if k % N == 0:
        return INFINITY
    return (k * G).to_affine()
