"""
Swap routing clients.

A `RouterClient` prices exact-input swaps. Two variants exist and one is
chosen at startup by `create_router_client`:

- `HttpRouterClient` calls a Uniswap-style routing API.
- `FallbackRouterClient` is used when no router is configured and raises
  `RouterNotConfiguredError` so callers can switch to the static rate table.

Failure kinds map onto distinct errors:
    RouterNotConfiguredError - no routing service configured
    RouterUnavailableError   - network failure, 5xx, timeout, malformed
                               answer, or token metadata missing
    NoRouteError             - the service found no route for the pair
    RouterError              - any other rejection (4xx)
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, Optional

import aiohttp

from .catalog import get_token
from .config import Settings
from .errors import NoRouteError, RouterError, RouterNotConfiguredError, RouterUnavailableError
from .http_client import HttpClientClientError, HttpClientError, HttpServiceClient
from .models.config import ConnectionConfig, RetryConfig
from .models.market import RouteResult, SwapTransaction, Token
from .utils import from_raw_amount, parse_decimal, to_raw_amount

logger = logging.getLogger(__name__)

NO_ROUTE_ERROR_CODES = {"NO_ROUTE", "NO_ROUTE_FOUND"}


class RouterClient(ABC):
    """Capability interface for swap routing."""

    @abstractmethod
    async def route(
        self,
        token_in: str,
        token_out: str,
        amount_in: Decimal,
        recipient: Optional[str] = None,
    ) -> RouteResult:
        """Price an exact-input swap; include a transaction when recipient is given."""

    async def close(self) -> None:
        """Release any held resources."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class FallbackRouterClient(RouterClient):
    """Router stand-in used when no routing service is configured."""

    async def route(
        self,
        token_in: str,
        token_out: str,
        amount_in: Decimal,
        recipient: Optional[str] = None,
    ) -> RouteResult:
        raise RouterNotConfiguredError("No swap router configured (set DEX_ROUTER_URL)")


class HttpRouterClient(HttpServiceClient, RouterClient):
    """Client for a Uniswap-style `/quote` routing API."""

    def __init__(
        self,
        config: ConnectionConfig,
        retry_config: Optional[RetryConfig] = None,
        chain_id: Optional[int] = None,
    ):
        super().__init__(config, retry_config)
        self._chain_id = chain_id

    async def route(
        self,
        token_in: str,
        token_out: str,
        amount_in: Decimal,
        recipient: Optional[str] = None,
    ) -> RouteResult:
        in_token = get_token(token_in)
        out_token = get_token(token_out)
        if in_token is None or out_token is None:
            raise RouterUnavailableError(f"Token not supported: {token_in}-{token_out}")

        params = self._build_params(in_token, out_token, amount_in, recipient)

        try:
            response = await self._request("GET", "/quote", params=params)
        except HttpClientClientError as e:
            if self._is_no_route(e):
                raise NoRouteError(f"No route found for {in_token.symbol}-{out_token.symbol}") from e
            raise RouterError(f"Router rejected quote request: {e}") from e
        except (HttpClientError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RouterUnavailableError(f"Router unavailable: {e}") from e

        return self._parse_route(response, out_token)

    def _build_params(
        self,
        in_token: Token,
        out_token: Token,
        amount_in: Decimal,
        recipient: Optional[str],
    ) -> Dict[str, Any]:
        chain_id = self._chain_id or in_token.chain_id
        params = {
            "tokenInAddress": in_token.address,
            "tokenInChainId": chain_id,
            "tokenOutAddress": out_token.address,
            "tokenOutChainId": chain_id,
            "amount": to_raw_amount(amount_in, in_token.decimals),
            "type": "exactIn",
        }
        if recipient:
            params["recipient"] = recipient
        return params

    @staticmethod
    def _is_no_route(error: HttpClientClientError) -> bool:
        if error.status_code == 404:
            return True
        data = error.response_data
        return isinstance(data, dict) and data.get("errorCode") in NO_ROUTE_ERROR_CODES

    @staticmethod
    def _parse_route(response: Any, out_token: Token) -> RouteResult:
        if not isinstance(response, dict):
            raise RouterUnavailableError(f"Unexpected router response: {response!r}")

        if response.get("errorCode") in NO_ROUTE_ERROR_CODES:
            raise NoRouteError(response.get("detail") or "No route found")

        amount_out = parse_decimal(response.get("quoteDecimals"))
        if amount_out is None and response.get("quote") is not None:
            raw = parse_decimal(response.get("quote"))
            amount_out = from_raw_amount(raw, out_token.decimals) if raw is not None else None
        if amount_out is None:
            raise RouterUnavailableError(f"Router response missing quote: {response!r}")

        transaction = None
        method_parameters = response.get("methodParameters")
        if isinstance(method_parameters, dict) and method_parameters.get("calldata"):
            transaction = SwapTransaction(
                to=method_parameters.get("to", ""),
                calldata=method_parameters["calldata"],
                value=method_parameters.get("value") or "0x0",
            )

        return RouteResult(amount_out=amount_out, transaction=transaction)


def create_router_client(settings: Optional[Settings] = None) -> RouterClient:
    """Pick the router variant once, from configuration."""
    settings = settings or Settings.from_env()
    connection = settings.router_connection()
    if connection is None:
        logger.warning("DEX_ROUTER_URL not set; swap quotes will use the fallback rate table")
        return FallbackRouterClient()

    logger.info(f"Using swap router at {connection.normalized_url}")
    return HttpRouterClient(connection, chain_id=settings.chain_id)
