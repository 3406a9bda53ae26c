# -*- coding: utf-8 -*-
"""
Shared fixtures and utilities for testing the DEX client.
"""

import json
from decimal import Decimal
from typing import Any, Dict, List

import pytest

from dex_client.config import Settings
from dex_client.models.config import ConnectionConfig, RetryConfig
from dex_client.models.market import RouteResult, SwapTransaction
from dex_client.monitoring import PerformanceMonitor


WALLET = "0x1111111111111111111111111111111111111111"


class FakeResponse:
    """Minimal stand-in for aiohttp.ClientResponse used as an async context manager."""

    def __init__(self, status: int, body: Any = None):
        self.status = status
        self._text = "" if body is None else (body if isinstance(body, str) else json.dumps(body))

    async def text(self) -> str:
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeSession:
    """Session returning queued responses (or raising queued exceptions) per request."""

    def __init__(self, responses: List[Any]):
        self._responses = list(responses)
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def request(self, **kwargs):
        self.calls.append(kwargs)
        item = self._responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


@pytest.fixture
def wallet_address() -> str:
    return WALLET


@pytest.fixture
def empty_settings() -> Settings:
    """Settings with no collaborators configured."""
    return Settings()


@pytest.fixture
def configured_settings() -> Settings:
    """Settings with every collaborator configured."""
    return Settings(
        router_url="https://router.example.com",
        router_api_key="router-key",
        perps_url="https://perps.example.com",
        assistant_url="https://assistant.example.com",
        assistant_api_key="assistant-key",
    )


@pytest.fixture
def connection_config() -> ConnectionConfig:
    return ConnectionConfig(base_url="https://service.example.com", api_key="test-key", timeout=5.0)


@pytest.fixture
def fast_retry_config() -> RetryConfig:
    """Retry policy without sleeping between attempts."""
    return RetryConfig(max_retries=2, retry_delay=0.0, backoff_factor=1.0)


@pytest.fixture
def monitor() -> PerformanceMonitor:
    return PerformanceMonitor()


@pytest.fixture
def router_quote_response() -> Dict[str, Any]:
    """Routing API answer for 100 USDC -> ETH."""
    return {
        "quote": "39800000000000000",
        "quoteDecimals": "0.0398",
        "methodParameters": {
            "to": "0x3fC91A3afd70395Cd496C647d5a6CC9D4B2b7FAD",
            "calldata": "0x3593564c000000",
            "value": "0x00",
        },
    }


@pytest.fixture
def route_result() -> RouteResult:
    return RouteResult(
        amount_out=Decimal("0.0398"),
        transaction=SwapTransaction(
            to="0x3fC91A3afd70395Cd496C647d5a6CC9D4B2b7FAD",
            calldata="0x3593564c000000",
            value="0x00",
        ),
    )

