"""
Session crypto for the Wallet Bridge

Every session gets a fresh AES-256-GCM key and nonce. The request is sealed
with them before it reaches the bridge, and the World App seals its response
with the same key, so the bridge only ever relays ciphertext. The key reaches
the World App through the connect URL and nowhere else.
"""
import binascii
import json
import secrets
from dataclasses import dataclass, field
from typing import Any, Callable

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .hashing import b64decode, b64encode
from .logging_config import crypto_logger as logger
from .types import Envelope


KEY_SIZE = 32
NONCE_SIZE = 12

RandomSource = Callable[[int], bytes]


class EncryptionError(Exception):
    """Key generation, encryption or decryption failed"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            f"An error occurred when generating a key, encrypting or decrypting a request or response: {reason}"
        )


class PayloadError(Exception):
    """A request or response could not be encoded or decoded (JSON or base64)"""

    def __init__(self, message: str):
        super().__init__(
            f"An error occurred when encoding or decoding a request or response: {message}"
        )


@dataclass(frozen=True)
class SessionKey:
    """Raw key bytes, the ready-to-use cipher and the nonce for the request."""
    key_bytes: bytes = field(repr=False)
    nonce: bytes = field(repr=False)
    cipher: AESGCM = field(repr=False, compare=False)


def _draw(random_bytes: RandomSource, size: int, what: str) -> bytes:
    try:
        data = random_bytes(size)
    except (OSError, NotImplementedError) as e:
        logger.error(f"Random source unavailable: {e}")
        raise EncryptionError(f"Failed to generate {what}") from e

    if not isinstance(data, (bytes, bytearray)) or len(data) != size:
        raise EncryptionError(f"Failed to generate {what}")
    return bytes(data)


def generate_key(random_bytes: RandomSource = secrets.token_bytes) -> SessionKey:
    """
    Generate a fresh key and nonce for one session.

    Args:
        random_bytes: Source of randomness, called as random_bytes(n).
            Defaults to the OS CSPRNG; tests can pass a deterministic one.
    """
    nonce = _draw(random_bytes, NONCE_SIZE, "IV")
    key_bytes = _draw(random_bytes, KEY_SIZE, "key")

    return SessionKey(key_bytes=key_bytes, nonce=nonce, cipher=AESGCM(key_bytes))


def seal(cipher: AESGCM, nonce: bytes, plaintext: Any) -> Envelope:
    """
    Encrypt a JSON-serializable value into a bridge envelope.

    The tag is appended to the ciphertext and no associated data is used.
    """
    try:
        data = json.dumps(plaintext, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise PayloadError(str(e)) from e

    try:
        ciphertext = cipher.encrypt(nonce, data, None)
    except (ValueError, OverflowError) as e:
        raise EncryptionError("Failed to encrypt bridge request") from e

    return Envelope(iv=b64encode(nonce), payload=b64encode(ciphertext))


def unseal(cipher: AESGCM, envelope: Envelope) -> Any:
    """
    Decrypt a bridge envelope and parse the JSON inside.

    Raises:
        PayloadError: base64 or JSON is malformed
        EncryptionError: the IV has the wrong length or the tag does not verify
    """
    try:
        nonce = b64decode(envelope.iv)
        ciphertext = b64decode(envelope.payload)
    except binascii.Error as e:
        raise PayloadError(f"invalid base64: {e}") from e

    if len(nonce) != NONCE_SIZE:
        raise EncryptionError("Invalid IV")

    try:
        data = cipher.decrypt(nonce, ciphertext, None)
    except InvalidTag as e:
        raise EncryptionError("Failed to decrypt bridge response") from e

    try:
        return json.loads(data)
    except ValueError as e:
        raise PayloadError(str(e)) from e
