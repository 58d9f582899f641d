"""
Signal hashing for the World ID protocol

Signals are packed with Solidity's abi.encodePacked rules and hashed with
keccak256, then shifted right one byte so the result fits in the scalar field
of the proof system. The encoding must stay byte-for-byte identical to the
other World ID SDKs or proofs will not verify on-chain.
"""
import base64
import binascii
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from eth_abi.packed import encode_packed
from web3 import Web3


FIELD_BITS = 248


@runtime_checkable
class PackedEncodable(Protocol):
    """Anything that knows its own abi.encodePacked representation."""

    def abi_encode_packed(self) -> bytes:
        ...


@dataclass(frozen=True)
class SolValue:
    """
    An explicitly typed Solidity value.

    Plain Python values map to a default ABI type (int -> uint256,
    str -> string, ...). Use this wrapper when the signal is meant to be
    packed as something else, e.g. SolValue("address", "0x...") or
    SolValue("uint8", 3).
    """
    abi_type: str
    value: Any

    def abi_encode_packed(self) -> bytes:
        return encode_packed([self.abi_type], [self.value])


def abi_encode_packed(value: Any) -> bytes:
    """
    Pack a signal value the way Solidity's abi.encodePacked does.

    Supported values: None and () (empty), bool, int, str, bytes, tuples of
    supported values, SolValue, and any PackedEncodable.
    """
    if value is None:
        return b""
    if isinstance(value, PackedEncodable):
        return value.abi_encode_packed()
    if isinstance(value, tuple):
        return b"".join(abi_encode_packed(item) for item in value)
    # bool is an int subclass, check it first
    if isinstance(value, bool):
        return encode_packed(["bool"], [value])
    if isinstance(value, int):
        return encode_packed(["uint256" if value >= 0 else "int256"], [value])
    if isinstance(value, str):
        return encode_packed(["string"], [value])
    if isinstance(value, (bytes, bytearray)):
        return encode_packed(["bytes"], [bytes(value)])

    raise TypeError(f"Cannot abi-encode signal of type {type(value).__name__}")


def hash_to_field(data: bytes) -> int:
    """Hash bytes with keccak256 and reduce the digest into the proof field."""
    digest = Web3.keccak(primitive=bytes(data))
    # Shift right one byte to make it fit in the field
    return int.from_bytes(digest, "big") >> 8


def encode_signal(value: Any) -> int:
    return hash_to_field(abi_encode_packed(value))


def field_to_hex(n: int) -> str:
    """Format a field element as a 0x-prefixed, 32-byte, zero-padded hex string."""
    return f"0x{n:064x}"


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(data: str) -> bytes:
    """Strict standard-alphabet base64 decode. Raises binascii.Error on bad input."""
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error:
        raise
    except ValueError as e:
        # non-ASCII input surfaces as ValueError instead of binascii.Error
        raise binascii.Error(str(e)) from e
