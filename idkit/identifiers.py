"""
App ID and bridge URL validation

Both identifiers are checked when they are constructed, so any AppId or
BridgeUrl that reaches a session is already known to be well formed.
"""
from typing import Tuple, Union

import httpx

from .config import DEFAULT_BRIDGE_URL


# ============ App ID ============

class AppIdError(ValueError):
    """Raised when an app id does not start with app_"""

    def __init__(self, app_id: str):
        self.app_id = app_id
        super().__init__(f"Invalid app id provided, expected app_*, got {app_id}")


class AppId(str):
    """
    Unique identifier for the app verifying the action, as issued by the
    Developer Portal (https://developer.worldcoin.org).

    AppId("app_123") validates its input and raises AppIdError otherwise.
    """

    PREFIX = "app_"

    def __new__(cls, app_id: str) -> "AppId":
        if not isinstance(app_id, str) or not app_id.startswith(cls.PREFIX):
            raise AppIdError(app_id)
        return super().__new__(cls, app_id)

    @classmethod
    def unchecked(cls, app_id: str) -> "AppId":
        """
        Build an AppId without validating it.

        Only for callers that already hold a validated app id (for example
        one read back from their own storage). Passing anything that does
        not start with app_ produces requests the bridge will reject.
        """
        return str.__new__(cls, app_id)

    @property
    def is_staging(self) -> bool:
        """Whether this app id belongs to a staging app."""
        return "staging" in self

    def __repr__(self) -> str:
        return f"AppId({str.__repr__(self)})"


# ============ Bridge URL ============

LOOPBACK_HOSTS = ("localhost", "127.0.0.1")


class BridgeUrlError(ValueError):
    """Base class for rejected bridge URLs"""
    message = "Invalid bridge URL."

    def __init__(self, url: str, message: str = None):
        self.url = url
        super().__init__(message or self.message)


class NotHttpsError(BridgeUrlError):
    message = "Bridge URL must use HTTPS."


class NotDefaultPortError(BridgeUrlError):
    message = "Bridge URL must use the default port."


class ContainsPathError(BridgeUrlError):
    message = "Bridge URL must not contain a path."


class ContainsQueryError(BridgeUrlError):
    message = "Bridge URL must not contain a query."


class ContainsFragmentError(BridgeUrlError):
    message = "Bridge URL must not contain a fragment."


class BridgeUrl:
    """
    The URL of the Wallet Bridge used to reach the user's World App.

    Defaults to the bridge hosted by Worldcoin. Only change this if you run
    your own bridge. A loopback host (localhost or 127.0.0.1) is accepted
    as-is for local development; any other bridge must be a bare https
    origin: default port, root path, no query and no fragment.
    """

    __slots__ = ("_url",)

    def __init__(self, url: Union[str, httpx.URL]):
        self._url = self._validate(url)

    @classmethod
    def default(cls) -> "BridgeUrl":
        return cls(DEFAULT_BRIDGE_URL)

    @classmethod
    def parse(cls, url: Union[str, httpx.URL]) -> "BridgeUrl":
        return cls(url)

    @staticmethod
    def _validate(url: Union[str, httpx.URL]) -> httpx.URL:
        raw = str(url)
        try:
            parsed = url if isinstance(url, httpx.URL) else httpx.URL(url)
        except httpx.InvalidURL as e:
            raise BridgeUrlError(raw, f"Bridge URL could not be parsed: {e}") from e

        if not parsed.scheme or not parsed.host:
            raise BridgeUrlError(raw, "Bridge URL must be an absolute URL.")

        if parsed.host in LOOPBACK_HOSTS:
            return parsed

        if parsed.scheme != "https":
            raise NotHttpsError(raw)

        # httpx normalizes the scheme's default port to None
        if parsed.port is not None:
            raise NotDefaultPortError(raw)

        if parsed.path != "/":
            raise ContainsPathError(raw)

        # query and fragment are empty strings both when absent and when the
        # delimiter is present with nothing after it
        if parsed.query or b"?" in parsed.raw_path:
            raise ContainsQueryError(raw)

        if parsed.fragment or "#" in raw:
            raise ContainsFragmentError(raw)

        return parsed

    @property
    def url(self) -> httpx.URL:
        return self._url

    @property
    def host(self) -> str:
        return self._url.host

    @property
    def is_default(self) -> bool:
        return self == BridgeUrl.default()

    def join(self, path: str) -> httpx.URL:
        return self._url.join(path)

    def _key(self) -> Tuple:
        u = self._url
        return (u.scheme, u.host, u.port, u.path, u.query, u.fragment)

    def __eq__(self, other) -> bool:
        if not isinstance(other, BridgeUrl):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        if self._url.host in LOOPBACK_HOSTS:
            return str(self._url)
        # equal origins serialize identically, with or without the trailing slash
        return str(self._url.copy_with(path="/"))

    def __repr__(self) -> str:
        return f"BridgeUrl({str(self)!r})"
