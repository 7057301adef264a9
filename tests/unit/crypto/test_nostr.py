"""Unit tests for Nostr keys, Schnorr signatures and events."""

import hashlib
import json

import pytest

from paywally.crypto.nostr import (
    ENCRYPTED_DIRECT_MESSAGE,
    finalize_event,
    generate_secret_key,
    get_event_hash,
    get_public_key,
    schnorr_sign,
    schnorr_verify,
    verify_event,
)

SECRET_KEY = bytes.fromhex("7f" * 32)


class TestSchnorr:
    def test_bip340_vector_0(self) -> None:
        secret_key = (3).to_bytes(32, "big")
        signature = schnorr_sign(b"\x00" * 32, secret_key, aux_rand=b"\x00" * 32)

        assert (
            get_public_key(secret_key)
            == "f9308a019258c31049344f85f89d5229b531c845836f99b08601f113bce036f9"
        )
        assert signature.hex() == (
            "e907831f80848d1069a5371b402410364bdf1c5f8307b0084c55f1ce2dca8215"
            "25f66a4a85ea8b71e482a74f382d2ce5ebeee8fdb2172f477df4900d310536c0"
        )

    def test_sign_then_verify(self) -> None:
        message = hashlib.sha256(b"paywally").digest()
        signature = schnorr_sign(message, SECRET_KEY, aux_rand=b"\x01" * 32)
        public_key = bytes.fromhex(get_public_key(SECRET_KEY))

        assert schnorr_verify(message, public_key, signature)
        assert not schnorr_verify(hashlib.sha256(b"other").digest(), public_key, signature)
        tampered = signature[:-1] + bytes([signature[-1] ^ 1])
        assert not schnorr_verify(message, public_key, tampered)

    def test_verify_rejects_malformed_inputs(self) -> None:
        assert not schnorr_verify(b"\x00" * 31, b"\x00" * 32, b"\x00" * 64)
        assert not schnorr_verify(b"\x00" * 32, b"\x00" * 32, b"\x00" * 63)

    def test_sign_requires_32_byte_message(self) -> None:
        with pytest.raises(ValueError):
            schnorr_sign(b"short", SECRET_KEY)


class TestKeys:
    def test_generate_secret_key_uses_rng(self) -> None:
        draws = iter([b"\x00" * 32, b"\x42" * 32])
        assert generate_secret_key(lambda n: next(draws)) == b"\x42" * 32

    def test_public_key_is_x_only_hex(self) -> None:
        public_key = get_public_key(SECRET_KEY)
        assert len(public_key) == 64
        int(public_key, 16)


class TestEvents:
    def _template(self) -> dict:
        return {
            "kind": ENCRYPTED_DIRECT_MESSAGE,
            "tags": [["p", "ab" * 32]],
            "content": "ciphertext?iv=aXY=",
            "created_at": 1700000000,
        }

    def test_event_id_is_hash_of_canonical_serialization(self) -> None:
        event = finalize_event(self._template(), SECRET_KEY, aux_rand=b"\x00" * 32)

        serialized = json.dumps(
            [0, event["pubkey"], 1700000000, 4, [["p", "ab" * 32]], "ciphertext?iv=aXY="],
            separators=(",", ":"),
        )
        assert event["id"] == hashlib.sha256(serialized.encode()).hexdigest()
        assert event["id"] == get_event_hash(event)
        assert event["pubkey"] == get_public_key(SECRET_KEY)

    def test_finalized_event_verifies(self) -> None:
        event = finalize_event(self._template(), SECRET_KEY)
        assert verify_event(event)

    def test_template_is_not_mutated(self) -> None:
        template = self._template()
        finalize_event(template, SECRET_KEY)
        assert "id" not in template and "sig" not in template

    def test_tampered_content_fails_verification(self) -> None:
        event = finalize_event(self._template(), SECRET_KEY)
        event["content"] = "other"
        assert not verify_event(event)

    def test_same_inputs_give_same_event(self) -> None:
        first = finalize_event(self._template(), SECRET_KEY, aux_rand=b"\x07" * 32)
        second = finalize_event(self._template(), SECRET_KEY, aux_rand=b"\x07" * 32)
        assert first == second
