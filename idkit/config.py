"""
Configuration for the World ID bridge toolkit

Environment Variables:
======================

OPTIONAL:
- IDKIT_BRIDGE_URL: Wallet Bridge used when no bridge URL is passed (default: https://bridge.worldcoin.org)
- IDKIT_CONNECT_BASE_URL: Base of the connect URL shown to the user (default: https://worldcoin.org/verify)
- IDKIT_DEVELOPER_PORTAL_URL: Developer Portal used for proof verification (default: https://developer.worldcoin.org)
- IDKIT_HTTP_TIMEOUT: Timeout in seconds for every HTTP round trip (default: 30)
- IDKIT_POLL_INTERVAL: Seconds between polls in poll_until_complete (default: 0.5)
- IDKIT_LOG_LEVEL: Log level for the idkit loggers (default: INFO)
"""
import logging
import os
from dataclasses import dataclass, field
from typing import List

from . import __version__


DEFAULT_BRIDGE_URL = "https://bridge.worldcoin.org"


def _env(name: str, default: str):
    return field(default_factory=lambda: os.getenv(name, default))


def _env_float(name: str, default: str):
    return field(default_factory=lambda: float(os.getenv(name, default)))


@dataclass
class Config:
    # ==========================================================================
    # Endpoints
    # ==========================================================================
    bridge_url: str = _env("IDKIT_BRIDGE_URL", DEFAULT_BRIDGE_URL)
    connect_base_url: str = _env("IDKIT_CONNECT_BASE_URL", "https://worldcoin.org/verify")
    developer_portal_url: str = _env("IDKIT_DEVELOPER_PORTAL_URL", "https://developer.worldcoin.org")

    # ==========================================================================
    # HTTP
    # ==========================================================================
    http_timeout: float = _env_float("IDKIT_HTTP_TIMEOUT", "30")
    user_agent: str = f"idkit-py/{__version__}"

    # ==========================================================================
    # Polling
    # ==========================================================================
    # Only used by poll_until_complete; callers running their own loop pick
    # their own cadence.
    poll_interval: float = _env_float("IDKIT_POLL_INTERVAL", "0.5")

    # ==========================================================================
    # Logging
    # ==========================================================================
    log_level: str = field(default_factory=lambda: os.getenv("IDKIT_LOG_LEVEL", "INFO").upper())

    def validate(self) -> List[str]:
        """
        Validate the configuration.
        Returns a list of error messages (empty if valid).
        """
        errors = []

        if self.http_timeout <= 0:
            errors.append(f"IDKIT_HTTP_TIMEOUT must be positive, got {self.http_timeout}")

        if self.poll_interval <= 0:
            errors.append(f"IDKIT_POLL_INTERVAL must be positive, got {self.poll_interval}")

        if not isinstance(getattr(logging, self.log_level, None), int):
            errors.append(f"IDKIT_LOG_LEVEL must be a valid Python log level, got '{self.log_level}'")

        return errors

    @property
    def log_level_number(self) -> int:
        level = getattr(logging, self.log_level, None)
        return level if isinstance(level, int) else logging.INFO

    def default_bridge_url(self):
        """The bridge used when a session is created without an explicit one."""
        from .identifiers import BridgeUrl
        return BridgeUrl(self.bridge_url)


config = Config()
