"""
Tests for session key generation and envelope encryption
"""
import base64

import pytest

from idkit.crypto import (
    KEY_SIZE,
    NONCE_SIZE,
    EncryptionError,
    PayloadError,
    generate_key,
    seal,
    unseal,
)
from idkit.types import Envelope


def counting_random(n: int) -> bytes:
    return bytes(range(n))


class TestGenerateKey:
    """Tests for key material generation"""

    def test_sizes(self):
        key = generate_key()
        assert len(key.key_bytes) == KEY_SIZE
        assert len(key.nonce) == NONCE_SIZE

    def test_fresh_each_time(self):
        assert generate_key().key_bytes != generate_key().key_bytes

    def test_injected_random_source(self):
        key = generate_key(counting_random)
        assert key.nonce == bytes(range(NONCE_SIZE))
        assert key.key_bytes == bytes(range(KEY_SIZE))

    def test_random_source_unavailable(self):
        def broken(n: int) -> bytes:
            raise OSError("no entropy")

        with pytest.raises(EncryptionError) as exc_info:
            generate_key(broken)
        assert exc_info.value.reason == "Failed to generate IV"

    def test_random_source_short_read(self):
        calls = []

        def short_key(n: int) -> bytes:
            calls.append(n)
            return bytes(n if n == NONCE_SIZE else n - 1)

        with pytest.raises(EncryptionError) as exc_info:
            generate_key(short_key)
        assert exc_info.value.reason == "Failed to generate key"
        assert calls == [NONCE_SIZE, KEY_SIZE]

    def test_repr_hides_key_material(self):
        key = generate_key(counting_random)
        assert bytes(range(KEY_SIZE)).hex() not in repr(key)
        assert "key_bytes" not in repr(key)


class TestSealUnseal:
    """Tests for the {iv, payload} envelope"""

    def test_round_trip(self):
        key = generate_key()
        plaintext = {"app_id": "app_123", "nested": {"list": [1, 2, 3]}, "none": None}

        envelope = seal(key.cipher, key.nonce, plaintext)

        assert unseal(key.cipher, envelope) == plaintext

    def test_envelope_shape(self):
        key = generate_key(counting_random)
        envelope = seal(key.cipher, key.nonce, {"a": 1})

        assert base64.b64decode(envelope.iv) == key.nonce
        # ciphertext carries the 16 byte GCM tag
        assert len(base64.b64decode(envelope.payload)) == len(b'{"a":1}') + 16

    def test_ciphertext_does_not_leak_plaintext(self):
        key = generate_key()
        envelope = seal(key.cipher, key.nonce, {"secret": "value"})
        assert b"value" not in base64.b64decode(envelope.payload)

    def test_wrong_key_fails(self):
        key = generate_key()
        other = generate_key()
        envelope = seal(key.cipher, key.nonce, {"a": 1})

        with pytest.raises(EncryptionError) as exc_info:
            unseal(other.cipher, envelope)
        assert exc_info.value.reason == "Failed to decrypt bridge response"

    def test_tampered_ciphertext_fails(self):
        key = generate_key()
        envelope = seal(key.cipher, key.nonce, {"a": 1})
        raw = bytearray(base64.b64decode(envelope.payload))
        raw[0] ^= 0x01
        tampered = Envelope(iv=envelope.iv, payload=base64.b64encode(bytes(raw)).decode())

        with pytest.raises(EncryptionError):
            unseal(key.cipher, tampered)

    def test_invalid_iv_length(self):
        key = generate_key()
        envelope = seal(key.cipher, key.nonce, {"a": 1})
        short_iv = Envelope(iv=base64.b64encode(b"\x00" * 8).decode(), payload=envelope.payload)

        with pytest.raises(EncryptionError) as exc_info:
            unseal(key.cipher, short_iv)
        assert exc_info.value.reason == "Invalid IV"

    def test_malformed_base64(self):
        key = generate_key()
        with pytest.raises(PayloadError):
            unseal(key.cipher, Envelope(iv="%%%", payload="%%%"))

    def test_non_json_plaintext(self):
        key = generate_key()
        envelope = Envelope(
            iv=base64.b64encode(key.nonce).decode(),
            payload=base64.b64encode(key.cipher.encrypt(key.nonce, b"not json", None)).decode(),
        )
        with pytest.raises(PayloadError):
            unseal(key.cipher, envelope)

    def test_unserializable_plaintext(self):
        key = generate_key()
        with pytest.raises(PayloadError):
            seal(key.cipher, key.nonce, {"a": object()})
