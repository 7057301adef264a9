"""NIP-04 encrypted direct message payloads.

The shared key is the x-coordinate of the ECDH point between the sender's
secret key and the recipient's x-only public key. Content is AES-256-CBC with
PKCS7 padding, serialized as ``base64(ciphertext)?iv=base64(iv)``.
"""

from __future__ import annotations

import base64
import secrets
from typing import Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .secp256k1 import lift_x, scalar_from_bytes


def get_shared_secret(secret_key: bytes, public_key_hex: str) -> bytes:
    if len(public_key_hex) != 64:
        raise ValueError("public key must be 32 bytes hex encoded")
    point = lift_x(int(public_key_hex, 16))
    shared = scalar_from_bytes(secret_key) * point
    return int(shared.x()).to_bytes(32, "big")


def encrypt(
    secret_key: bytes,
    public_key_hex: str,
    text: str,
    *,
    iv: Optional[bytes] = None,
) -> str:
    key = get_shared_secret(secret_key, public_key_hex)
    iv = iv if iv is not None else secrets.token_bytes(16)
    if len(iv) != 16:
        raise ValueError("iv must be 16 bytes")

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(text.encode("utf-8")) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    ct_b64 = base64.b64encode(ciphertext).decode("ascii")
    iv_b64 = base64.b64encode(iv).decode("ascii")
    return f"{ct_b64}?iv={iv_b64}"


def decrypt(secret_key: bytes, public_key_hex: str, payload: str) -> str:
    ct_b64, sep, iv_b64 = payload.partition("?iv=")
    if not sep:
        raise ValueError("payload is missing the iv")
    key = get_shared_secret(secret_key, public_key_hex)

    decryptor = Cipher(
        algorithms.AES(key), modes.CBC(base64.b64decode(iv_b64))
    ).decryptor()
    padded = decryptor.update(base64.b64decode(ct_b64)) + decryptor.finalize()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
