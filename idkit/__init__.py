"""
Python toolkit for requesting and verifying World ID proofs through the
Wallet Bridge
"""
__version__ = "0.1.0"

from .config import config, Config
from .types import (
    AppError, CredentialType, VerificationLevel,
    Proof, BridgeProof, Envelope,
    ErrorResponse,
)
from .identifiers import (
    AppId, AppIdError,
    BridgeUrl, BridgeUrlError,
    NotHttpsError, NotDefaultPortError,
    ContainsPathError, ContainsQueryError, ContainsFragmentError,
)
from .hashing import (
    PackedEncodable, SolValue,
    abi_encode_packed, encode_signal, hash_to_field, field_to_hex,
)
from .crypto import EncryptionError, PayloadError, SessionKey, generate_key, seal, unseal
from .status import SessionState, SessionStateError, Status
from .session import (
    Session, SessionError, BridgeRequestError, BridgeProtocolError,
    poll_until_complete,
)
from .verify import (
    verify_proof,
    VerifyError, VerificationFailed, VerifyRequestError, VerifyPayloadError,
    InvalidResponse,
)

__all__ = [
    '__version__',

    # Config
    'config',
    'Config',

    # Types
    'AppError',
    'CredentialType',
    'VerificationLevel',
    'Proof',
    'BridgeProof',
    'Envelope',
    'ErrorResponse',

    # Identifiers
    'AppId',
    'AppIdError',
    'BridgeUrl',
    'BridgeUrlError',
    'NotHttpsError',
    'NotDefaultPortError',
    'ContainsPathError',
    'ContainsQueryError',
    'ContainsFragmentError',

    # Hashing
    'PackedEncodable',
    'SolValue',
    'abi_encode_packed',
    'encode_signal',
    'hash_to_field',
    'field_to_hex',

    # Crypto
    'EncryptionError',
    'PayloadError',
    'SessionKey',
    'generate_key',
    'seal',
    'unseal',

    # Session
    'Session',
    'SessionError',
    'SessionState',
    'SessionStateError',
    'Status',
    'BridgeRequestError',
    'BridgeProtocolError',
    'poll_until_complete',

    # Verification
    'verify_proof',
    'VerifyError',
    'VerificationFailed',
    'VerifyRequestError',
    'VerifyPayloadError',
    'InvalidResponse',
]
