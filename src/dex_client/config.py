"""
Runtime settings for the DEX client.

Settings are read once from the environment (and a local .env file) and
decide which collaborator variant each factory builds: a real HTTP client
when a service URL is configured, a fallback client otherwise.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .constants import DEFAULT_CHAIN_ID, DEFAULT_PAYMENT_CHAIN_ID, DEFAULT_TIMEOUT
from .models.config import ConnectionConfig

load_dotenv()
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Collaborator endpoints and chain settings."""
    router_url: Optional[str] = None
    router_api_key: Optional[str] = None
    perps_url: Optional[str] = None
    perps_api_key: Optional[str] = None
    assistant_url: Optional[str] = None
    assistant_api_key: Optional[str] = None
    chain_id: int = DEFAULT_CHAIN_ID
    payment_chain_id: int = DEFAULT_PAYMENT_CHAIN_ID
    timeout: float = DEFAULT_TIMEOUT
    database_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        return cls(
            router_url=os.getenv("DEX_ROUTER_URL") or None,
            router_api_key=os.getenv("DEX_ROUTER_API_KEY") or None,
            perps_url=os.getenv("DEX_PERPS_URL") or None,
            perps_api_key=os.getenv("DEX_PERPS_API_KEY") or None,
            assistant_url=os.getenv("DEX_ASSISTANT_URL") or None,
            assistant_api_key=os.getenv("DEX_ASSISTANT_API_KEY") or None,
            chain_id=int(os.getenv("DEX_CHAIN_ID", str(DEFAULT_CHAIN_ID))),
            payment_chain_id=int(os.getenv("DEX_PAYMENT_CHAIN_ID", str(DEFAULT_PAYMENT_CHAIN_ID))),
            timeout=float(os.getenv("DEX_TIMEOUT", str(DEFAULT_TIMEOUT))),
            database_url=os.getenv("DEX_DATABASE_URL") or None,
        )

    def router_connection(self) -> Optional[ConnectionConfig]:
        """Connection config for the routing service, None when not configured."""
        if not self.router_url:
            return None
        return ConnectionConfig(base_url=self.router_url, api_key=self.router_api_key, timeout=self.timeout)

    def perps_connection(self) -> Optional[ConnectionConfig]:
        """Connection config for the perpetuals gateway, None when not configured."""
        if not self.perps_url:
            return None
        return ConnectionConfig(base_url=self.perps_url, api_key=self.perps_api_key, timeout=self.timeout)

    def assistant_connection(self) -> Optional[ConnectionConfig]:
        """Connection config for the assistant service, None when not configured."""
        if not self.assistant_url:
            return None
        return ConnectionConfig(
            base_url=self.assistant_url,
            api_key=self.assistant_api_key,
            timeout=self.timeout,
        )
