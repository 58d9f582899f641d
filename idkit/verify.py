"""
Proof verification through the Developer Portal API

Stateless and independent of any bridge session: takes a proof the app
received and asks the Developer Portal whether it is valid for the app,
action and signal.
"""
from typing import Any, Union

import httpx

from .config import config
from .hashing import abi_encode_packed, field_to_hex, hash_to_field
from .identifiers import AppId
from .logging_config import verify_logger as logger
from .types import ErrorResponse, Proof, VerificationRequest


class VerifyError(Exception):
    """Base class for proof verification errors"""


class VerificationFailed(VerifyError):
    """The Developer Portal rejected the proof (HTTP 400)"""

    def __init__(self, error: ErrorResponse):
        self.error = error
        super().__init__(f"verification failed: {error.code}: {error.detail}")

    @property
    def code(self) -> str:
        return self.error.code

    @property
    def detail(self) -> str:
        return self.error.detail

    @property
    def attribute(self):
        return self.error.attribute


class VerifyRequestError(VerifyError):
    """The verification request could not be sent"""

    def __init__(self, message: str):
        super().__init__(f"fail to send request: {message}")


class VerifyPayloadError(VerifyError):
    """The rejection body could not be decoded"""

    def __init__(self, message: str):
        super().__init__(f"failed to decode response: {message}")


class InvalidResponse(VerifyError):
    """Raised for any status other than 200 and 400; carries the raw response"""

    def __init__(self, response: httpx.Response):
        self.response = response
        super().__init__(f"unexpected response: HTTP {response.status_code}")


def signal_hash(signal: Any):
    """Hex signal hash for the verify request, or None for an empty signal."""
    packed = abi_encode_packed(signal)
    if not packed:
        return None
    return field_to_hex(hash_to_field(packed))


def verify_url(app_id: AppId) -> str:
    return f"{config.developer_portal_url}/api/v2/verify/{app_id}"


async def verify_proof(
    proof: Proof,
    app_id: Union[AppId, str],
    action: str,
    signal: Any = (),
) -> None:
    """
    Verify a World ID proof using the Developer Portal API.

    Returns None when the proof is valid. No retries are performed.

    Raises:
        VerificationFailed: The proof was rejected (code/detail/attribute from the portal)
        InvalidResponse: The portal answered with an unexpected status
        VerifyRequestError: The request could not be sent
        VerifyPayloadError: The rejection body was malformed
    """
    if not isinstance(app_id, AppId):
        app_id = AppId(app_id)

    request = VerificationRequest(
        action=action,
        proof=proof.proof,
        merkle_root=proof.merkle_root,
        nullifier_hash=proof.nullifier_hash,
        verification_level=proof.verification_level,
        signal_hash=signal_hash(signal),
    )

    try:
        async with httpx.AsyncClient(
            timeout=config.http_timeout,
            headers={"User-Agent": config.user_agent}
        ) as client:
            response = await client.post(verify_url(app_id), json=request.to_payload())
    except httpx.HTTPError as e:
        logger.error(f"Verification request for {app_id} failed: {e}")
        raise VerifyRequestError(str(e)) from e

    if response.status_code == 200:
        logger.info(f"Proof verified for {app_id} action {action!r}")
        return None

    if response.status_code == 400:
        try:
            error = ErrorResponse.model_validate(response.json())
        except ValueError as e:
            raise VerifyPayloadError(str(e)) from e
        logger.info(f"Proof rejected for {app_id}: {error.code}")
        raise VerificationFailed(error)

    logger.warning(f"Unexpected response from Developer Portal: HTTP {response.status_code}")
    raise InvalidResponse(response)
