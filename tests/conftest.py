"""
Pytest fixtures for the World ID bridge toolkit tests
"""
import pytest
import sys
import uuid
from pathlib import Path
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock, patch

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from idkit.crypto import generate_key, seal
from idkit.identifiers import AppId, BridgeUrl
from idkit.session import Session


REQUEST_ID = uuid.UUID("6f1c7e0e-2c8a-4f57-9a3e-3c1bd8f1a0b2")


def counting_random(n: int) -> bytes:
    """Deterministic stand-in for secrets.token_bytes"""
    return bytes(range(n))


@pytest.fixture
def app_id() -> AppId:
    return AppId("app_123")


@pytest.fixture
def request_id() -> uuid.UUID:
    return REQUEST_ID


@pytest.fixture
def bridge_proof() -> Dict[str, Any]:
    """Decrypted proof body as sent by the World App"""
    return {
        "proof": "0x" + "ab" * 256,
        "merkle_root": "0x" + "12" * 32,
        "nullifier_hash": "0x" + "34" * 32,
        "credential_type": "device",
    }


@pytest.fixture
def session(request_id) -> Session:
    """A session as if freshly created against the default bridge"""
    return Session(
        key=generate_key(counting_random),
        request_id=request_id,
        bridge_url=BridgeUrl.default(),
    )


@pytest.fixture
def sealed_for():
    """Seal a body the way the World App would for the given session"""
    def _seal(session: Session, body: Dict[str, Any]) -> Dict[str, str]:
        return seal(session._key.cipher, b"\x07" * 12, body).model_dump()

    return _seal


@pytest.fixture
def mock_http_response():
    """Factory fixture for creating mock httpx responses"""
    def _create_response(status_code: int = 200, json_data: Any = None):
        response = MagicMock()
        response.status_code = status_code
        response.is_success = 200 <= status_code < 300
        if isinstance(json_data, Exception):
            response.json = MagicMock(side_effect=json_data)
        else:
            response.json = MagicMock(return_value=json_data)
        return response

    return _create_response


@pytest.fixture
def mock_client():
    """
    Patch httpx.AsyncClient and return the client instance.

    Configure instance.get / instance.post (AsyncMock) per test.
    """
    with patch("httpx.AsyncClient") as mock_client_cls:
        mock_client_instance = AsyncMock()
        mock_client_instance.__aenter__ = AsyncMock(return_value=mock_client_instance)
        mock_client_instance.__aexit__ = AsyncMock(return_value=None)
        mock_client_cls.return_value = mock_client_instance
        yield mock_client_instance
