"""
Configuration models for the DEX client.

Immutable configuration structures following state-first design.
"""

from dataclasses import dataclass
from typing import Optional

from ..constants import DEFAULT_API_KEY_HEADER, DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY, DEFAULT_TIMEOUT
from ..utils import validate_url


@dataclass(frozen=True)
class ConnectionConfig:
    """Configuration for a collaborator HTTP connection."""
    base_url: str
    api_key: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    api_key_header: str = DEFAULT_API_KEY_HEADER

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_base_url()
        self._validate_timeout()

    def _validate_base_url(self):
        """Validate base URL format."""
        if not validate_url(self.base_url):
            raise ValueError(f"Base URL must be a valid HTTP/HTTPS URL, got {self.base_url!r}")

    def _validate_timeout(self):
        """Validate request timeout."""
        if self.timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {self.timeout}")

    @property
    def normalized_url(self) -> str:
        return self.base_url.rstrip("/")


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for request retry behavior."""
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    backoff_factor: float = 2.0
    retry_on_status: tuple[int, ...] = (500, 502, 503, 504)
