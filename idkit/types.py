"""
Shared types for the World ID bridge protocol
"""
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict


class CredentialType(str, Enum):
    """The credential a user actually presented."""
    ORB = "orb"
    DEVICE = "device"

    def to_verification_level(self) -> "VerificationLevel":
        return VerificationLevel(self.value)


class VerificationLevel(str, Enum):
    """
    The minimum verification level accepted.

    DEVICE is the weaker level and accepts either credential; ORB only
    accepts the Orb credential.
    """
    ORB = "orb"
    DEVICE = "device"

    def __str__(self) -> str:
        return self.value

    def credential_types(self) -> List[CredentialType]:
        if self is VerificationLevel.ORB:
            return [CredentialType.ORB]
        return [CredentialType.ORB, CredentialType.DEVICE]


class AppError(str, Enum):
    """Reasons the World App (or the bridge) can end a request with."""
    CONNECTION_FAILED = "connection_failed"
    VERIFICATION_REJECTED = "verification_rejected"
    MAX_VERIFICATIONS_REACHED = "max_verifications_reached"
    CREDENTIAL_UNAVAILABLE = "credential_unavailable"
    MALFORMED_REQUEST = "malformed_request"
    INVALID_NETWORK = "invalid_network"
    INCLUSION_PROOF_FAILED = "inclusion_proof_failed"
    INCLUSION_PROOF_PENDING = "inclusion_proof_pending"
    UNEXPECTED_RESPONSE = "unexpected_response"
    FAILED_BY_HOST_APP = "failed_by_host_app"
    GENERIC_ERROR = "generic_error"

    @property
    def message(self) -> str:
        return _APP_ERROR_MESSAGES[self]

    def __str__(self) -> str:
        return self.message


_APP_ERROR_MESSAGES = {
    AppError.CONNECTION_FAILED: "Failed to connect to the World App. Please create a new session and try again.",
    AppError.VERIFICATION_REJECTED: "The user rejected the verification request in the World App.",
    AppError.MAX_VERIFICATIONS_REACHED: "The user already verified the maximum number of times for this action.",
    AppError.CREDENTIAL_UNAVAILABLE: "The user does not have the verification level required by this app.",
    AppError.MALFORMED_REQUEST: "There was a problem with this request. Please try again or contact the app owner.",
    AppError.INVALID_NETWORK: "Invalid network. If you are the app owner, visit docs.worldcoin.org/test for details.",
    AppError.INCLUSION_PROOF_FAILED: "There was an issue fetching the user's credential. Please try again.",
    AppError.INCLUSION_PROOF_PENDING: "The user's identity is still being registered. Please wait a few minutes and try again.",
    AppError.UNEXPECTED_RESPONSE: "Unexpected response from the user's World App. Please try again.",
    AppError.FAILED_BY_HOST_APP: "Verification failed by the app. Please contact the app owner for details.",
    AppError.GENERIC_ERROR: "Something unexpected went wrong. Please try again.",
}


# ============ Proof Types ============

class Proof(BaseModel):
    """The proof of verification returned by the World ID protocol."""
    model_config = ConfigDict(frozen=True)

    # Zero-knowledge proof, ABI encoded hex string
    proof: str
    # Root of the identity Merkle tree the proof was made against
    merkle_root: str
    # The user's unique identifier for this app and action
    nullifier_hash: str
    verification_level: VerificationLevel


class BridgeProof(BaseModel):
    """The proof as the World App hands it to the bridge."""
    proof: str
    merkle_root: str
    nullifier_hash: str
    credential_type: CredentialType

    def to_proof(self) -> Proof:
        return Proof(
            proof=self.proof,
            merkle_root=self.merkle_root,
            nullifier_hash=self.nullifier_hash,
            verification_level=self.credential_type.to_verification_level(),
        )


class BridgeErrorResponse(BaseModel):
    error_code: AppError


BridgeResponse = Union[BridgeErrorResponse, BridgeProof]


def parse_bridge_response(data: Any) -> BridgeResponse:
    """
    Resolve a decrypted bridge response into its error or proof shape.

    The two shapes carry no tag; a body with an error_code is an error,
    anything else has to be a full proof.
    """
    if isinstance(data, dict) and "error_code" in data:
        return BridgeErrorResponse.model_validate(data)
    return BridgeProof.model_validate(data)


# ============ Bridge Wire Types ============

class Envelope(BaseModel):
    """Encrypted body exchanged with the bridge. Both fields are base64."""
    iv: str
    payload: str


class BridgeRequest(BaseModel):
    """Plaintext of the request sealed into the envelope sent to the bridge."""
    app_id: str
    action: str
    action_description: Optional[str] = None
    signal: str
    verification_level: VerificationLevel
    credential_types: List[CredentialType]


class BridgeCreateResponse(BaseModel):
    request_id: uuid.UUID


class BridgePollResponse(BaseModel):
    status: str
    response: Optional[Envelope] = None


# ============ Developer Portal Types ============

class VerificationRequest(BaseModel):
    action: str
    proof: str
    merkle_root: str
    nullifier_hash: str
    verification_level: VerificationLevel
    signal_hash: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ErrorResponse(BaseModel):
    """Rejection body returned by the Developer Portal on HTTP 400."""
    code: str
    detail: str
    attribute: Optional[str] = None
