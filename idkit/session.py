"""
Wallet Bridge session

Implements the client side of the World ID bridge protocol:
- create: seal the proof request and hand it to the bridge
- connect_url: the URL (usually shown as a QR code) that carries the
  request id and the session key to the user's World App
- poll_for_status: fetch and decrypt the World App's answer

The bridge is a blind relay; it only ever sees {iv, payload} envelopes.
"""
import asyncio
import secrets
import uuid
from typing import Any, Callable, Optional, Type, TypeVar, Union
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from .config import config
from .crypto import PayloadError, RandomSource, SessionKey, generate_key, seal, unseal
from .hashing import b64encode, encode_signal, field_to_hex
from .identifiers import AppId, BridgeUrl
from .logging_config import session_logger as logger
from .status import (
    SessionState, SessionStateError, Status, TERMINAL_STATES, check_transition
)
from .types import (
    AppError, BridgeCreateResponse, BridgeErrorResponse, BridgePollResponse,
    BridgeRequest, VerificationLevel, parse_bridge_response
)


ModelT = TypeVar("ModelT", bound=BaseModel)


class SessionError(Exception):
    """Base class for errors talking to the Wallet Bridge"""


class BridgeRequestError(SessionError):
    """The bridge could not be reached or refused the request"""

    def __init__(self, message: str, response: Optional[httpx.Response] = None):
        self.response = response
        super().__init__(f"An error occurred when communicating with the Wallet Bridge: {message}")


class BridgeProtocolError(SessionError):
    """The bridge answered with something a conforming bridge never sends"""


def _parse_model(response: httpx.Response, model: Type[ModelT]) -> ModelT:
    try:
        return model.model_validate(response.json())
    except ValueError as e:
        # covers json.JSONDecodeError and pydantic.ValidationError
        raise PayloadError(str(e)) from e


def build_request(
    app_id: AppId,
    action: str,
    verification_level: VerificationLevel,
    signal: Any,
    action_description: Optional[str] = None,
) -> BridgeRequest:
    """Build the plaintext proof request that gets sealed for the bridge."""
    return BridgeRequest(
        app_id=app_id,
        action=action,
        action_description=action_description,
        signal=field_to_hex(encode_signal(signal)),
        verification_level=verification_level,
        credential_types=verification_level.credential_types(),
    )


class Session:
    """
    A session with the Wallet Bridge.

    Create one with Session.create for every verification attempt; a
    session that reached a terminal status cannot be polled again.
    """

    def __init__(self, key: SessionKey, request_id: uuid.UUID, bridge_url: BridgeUrl):
        """
        Internal. Use Session.create, which only returns a session once the
        bridge has accepted the sealed request.
        """
        self._key = key
        self._request_id = request_id
        self._bridge_url = bridge_url
        self._state = SessionState.WAITING_FOR_CONNECTION

    @classmethod
    async def create(
        cls,
        app_id: Union[AppId, str],
        action: str,
        verification_level: VerificationLevel = VerificationLevel.ORB,
        bridge_url: Optional[BridgeUrl] = None,
        signal: Any = (),
        action_description: Optional[str] = None,
        *,
        random_bytes: RandomSource = secrets.token_bytes,
    ) -> "Session":
        """
        Create a new session with the Wallet Bridge.

        Args:
            app_id: App ID from the Developer Portal
            action: Action identifier the proof is scoped to
            verification_level: Minimum credential accepted
            bridge_url: Bridge to use (default from IDKIT_BRIDGE_URL)
            signal: Value bound into the proof (see hashing.abi_encode_packed)
            action_description: Human readable description shown in the World App
            random_bytes: Randomness source for the session key

        Raises:
            BridgeRequestError: The bridge could not be reached or rejected the request
            PayloadError: The bridge response was malformed
            EncryptionError: Key generation or encryption failed
        """
        if not isinstance(app_id, AppId):
            app_id = AppId(app_id)
        if bridge_url is None:
            bridge_url = config.default_bridge_url()

        key = generate_key(random_bytes)
        request = build_request(app_id, action, verification_level, signal, action_description)
        envelope = seal(key.cipher, key.nonce, request.model_dump(mode="json"))

        try:
            async with httpx.AsyncClient(
                timeout=config.http_timeout,
                headers={"User-Agent": config.user_agent}
            ) as client:
                response = await client.post(
                    str(bridge_url.join("/request")),
                    json=envelope.model_dump()
                )
        except httpx.HTTPError as e:
            logger.error(f"Bridge request to {bridge_url.host} failed: {e}")
            raise BridgeRequestError(str(e)) from e

        if not response.is_success:
            logger.error(f"Bridge {bridge_url.host} rejected request with HTTP {response.status_code}")
            raise BridgeRequestError(f"bridge returned HTTP {response.status_code}", response=response)

        created = _parse_model(response, BridgeCreateResponse)
        logger.info(f"Bridge request {created.request_id} created via {bridge_url.host}")

        return cls(key=key, request_id=created.request_id, bridge_url=bridge_url)

    @property
    def request_id(self) -> uuid.UUID:
        """Opaque identifier the bridge assigned to this request."""
        return self._request_id

    @property
    def bridge_url(self) -> BridgeUrl:
        return self._bridge_url

    @property
    def state(self) -> SessionState:
        """The state seen on the last poll."""
        return self._state

    def connect_url(self) -> str:
        """
        Returns the URL the user should open with their World App.

        The URL carries the session key. Do not log it or send it anywhere
        except to the user's device.
        """
        url = (
            f"{config.connect_base_url}?t=wld"
            f"&i={self.request_id}"
            f"&k={quote(b64encode(self._key.key_bytes), safe='')}"
        )
        if not self.bridge_url.is_default:
            url += f"&b={quote(str(self.bridge_url), safe='')}"
        return url

    async def poll_for_status(self) -> Status:
        """
        Poll the bridge once and return the current status.

        Call repeatedly until the status is confirmed or failed. Polling a
        session that already reached one of those raises SessionStateError.

        Raises:
            SessionStateError: The session already reached a terminal status
            BridgeRequestError: The bridge could not be reached
            BridgeProtocolError: The bridge sent an unknown or regressing status
            PayloadError: A response body or decrypted payload was malformed
            EncryptionError: The response could not be decrypted
        """
        if self._state in TERMINAL_STATES:
            raise SessionStateError(self._state)

        try:
            async with httpx.AsyncClient(
                timeout=config.http_timeout,
                headers={"User-Agent": config.user_agent}
            ) as client:
                response = await client.get(
                    str(self.bridge_url.join(f"/response/{self.request_id}"))
                )
        except httpx.HTTPError as e:
            logger.warning(f"Polling bridge request {self.request_id} failed: {e}")
            raise BridgeRequestError(str(e)) from e

        if not response.is_success:
            logger.warning(
                f"Bridge returned HTTP {response.status_code} for request {self.request_id}"
            )
            status = Status.failed(AppError.CONNECTION_FAILED)
        else:
            status = self._interpret(_parse_model(response, BridgePollResponse))

        self._advance(status)
        return status

    def _interpret(self, body: BridgePollResponse) -> Status:
        if body.status == "initialized":
            return Status.waiting_for_connection()
        if body.status == "retrieved":
            return Status.awaiting_confirmation()
        if body.status != "completed":
            raise BridgeProtocolError(f"Invalid status returned from bridge: {body.status!r}")

        if body.response is None:
            raise BridgeProtocolError("Bridge reported a completed request without a response")

        try:
            result = parse_bridge_response(unseal(self._key.cipher, body.response))
        except ValueError as e:
            raise PayloadError(str(e)) from e

        if isinstance(result, BridgeErrorResponse):
            return Status.failed(result.error_code)
        return Status.confirmed(result.to_proof())

    def _advance(self, status: Status) -> None:
        try:
            check_transition(self._state, status.state)
        except SessionStateError as e:
            raise BridgeProtocolError(
                f"Bridge moved request {self.request_id} from "
                f"{self._state.value} back to {status.state.value}"
            ) from e

        if status.state is not self._state:
            if status.state is SessionState.FAILED:
                logger.info(f"Bridge request {self.request_id} failed: {status.error.value}")
            else:
                logger.info(f"Bridge request {self.request_id} is now {status.state.value}")
        self._state = status.state

    def __repr__(self) -> str:
        return (
            f"Session(request_id={self.request_id}, bridge_url={str(self.bridge_url)!r}, "
            f"state={self._state.value})"
        )


async def poll_until_complete(
    session: Session,
    interval: Optional[float] = None,
    on_status: Optional[Callable[[Status], None]] = None,
) -> Status:
    """
    Sleep-then-poll until the session reaches a terminal status.

    There is no timeout; wrap the call in asyncio.wait_for or cancel the
    task to give up.

    Args:
        session: The session to poll
        interval: Seconds to sleep before each poll (default IDKIT_POLL_INTERVAL)
        on_status: Called whenever the status changes
    """
    if interval is None:
        interval = config.poll_interval

    last_state: Optional[SessionState] = None
    while True:
        await asyncio.sleep(interval)
        status = await session.poll_for_status()

        if on_status is not None and status.state is not last_state:
            on_status(status)
        last_state = status.state

        if status.is_terminal:
            return status
