"""
Perpetuals protocol clients.

A `PerpsClient` opens, closes and amends leveraged positions. One variant is
chosen at startup by `create_perps_client`:

- `HttpPerpsClient` talks to a perpetuals gateway over HTTP.
- `FallbackPerpsClient` is a simulated no-op: confirmations are flagged
  `simulated=True` and carry no protocol ids or transaction hashes.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, List, Optional

import aiohttp

from .catalog import get_asset
from .config import Settings
from .errors import PerpsError
from .http_client import HttpClientError, HttpServiceClient
from .models.config import ConnectionConfig, RetryConfig
from .models.positions import (
    CloseConfirmation,
    OrderUpdateConfirmation,
    Position,
    PositionConfirmation,
    PositionType,
)
from .risk import position_size, unrealized_pnl
from .utils import parse_decimal, sanitize_dict

logger = logging.getLogger(__name__)


class PerpsClient(ABC):
    """Capability interface for a perpetuals protocol."""

    @abstractmethod
    async def open_position(self, position: Position, wallet_address: str) -> PositionConfirmation:
        """Submit a validated position."""

    @abstractmethod
    async def close_position(
        self,
        position: Position,
        wallet_address: str,
        mark_price: Optional[Decimal] = None,
    ) -> CloseConfirmation:
        """Close an open position."""

    @abstractmethod
    async def update_orders(
        self,
        position: Position,
        take_profit_price: Optional[Decimal],
        stop_loss_price: Optional[Decimal],
    ) -> OrderUpdateConfirmation:
        """Replace a position's take profit / stop loss."""

    @abstractmethod
    async def get_positions(self, wallet_address: str) -> List[Position]:
        """Positions the protocol holds for a wallet."""

    async def close(self) -> None:
        """Release any held resources."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class FallbackPerpsClient(PerpsClient):
    """Simulated protocol used when no perpetuals gateway is configured."""

    async def open_position(self, position: Position, wallet_address: str) -> PositionConfirmation:
        logger.info(f"[simulated] open {position.position_type.value} {position.asset} size={position.size}")
        return PositionConfirmation(
            entry_price=position.entry_price,
            size=position.size,
            simulated=True,
        )

    async def close_position(
        self,
        position: Position,
        wallet_address: str,
        mark_price: Optional[Decimal] = None,
    ) -> CloseConfirmation:
        if mark_price is None:
            asset = get_asset(position.asset)
            mark_price = asset.price if asset else position.entry_price
        pnl = unrealized_pnl(position.entry_price, mark_price, position.size, position.is_long)
        logger.info(f"[simulated] close {position.asset} position {position.position_id} pnl={pnl}")
        return CloseConfirmation(position_id=position.position_id, pnl=pnl, simulated=True)

    async def update_orders(
        self,
        position: Position,
        take_profit_price: Optional[Decimal],
        stop_loss_price: Optional[Decimal],
    ) -> OrderUpdateConfirmation:
        return OrderUpdateConfirmation(
            position_id=position.position_id,
            take_profit_price=take_profit_price,
            stop_loss_price=stop_loss_price,
            simulated=True,
        )

    async def get_positions(self, wallet_address: str) -> List[Position]:
        return []


class HttpPerpsClient(HttpServiceClient, PerpsClient):
    """Client for a perpetuals gateway REST API."""

    def __init__(self, config: ConnectionConfig, retry_config: Optional[RetryConfig] = None):
        super().__init__(config, retry_config)

    async def open_position(self, position: Position, wallet_address: str) -> PositionConfirmation:
        payload = sanitize_dict({
            "account": wallet_address,
            "market": position.asset,
            "isLong": position.is_long,
            "collateral": str(position.collateral),
            "leverage": position.leverage,
            "size": str(position.size),
            "takeProfitPrice": str(position.take_profit_price) if position.take_profit_price else None,
            "stopLossPrice": str(position.stop_loss_price) if position.stop_loss_price else None,
        })
        response = await self._call("POST", "/positions", data=payload)

        entry_price = parse_decimal(response.get("entryPrice"))
        if entry_price is None:
            raise PerpsError(f"Gateway response missing entryPrice: {response!r}")

        return PositionConfirmation(
            entry_price=entry_price,
            size=parse_decimal(response.get("size")) or position.size,
            protocol_position_id=response.get("positionId"),
            transaction_hash=response.get("transactionHash"),
        )

    async def close_position(
        self,
        position: Position,
        wallet_address: str,
        mark_price: Optional[Decimal] = None,
    ) -> CloseConfirmation:
        protocol_id = self._require_protocol_id(position)
        response = await self._call(
            "POST", f"/positions/{protocol_id}/close", data={"account": wallet_address}
        )

        pnl = parse_decimal(response.get("pnl"))
        if pnl is None:
            raise PerpsError(f"Gateway response missing pnl: {response!r}")

        return CloseConfirmation(
            position_id=position.position_id,
            pnl=pnl,
            transaction_hash=response.get("transactionHash"),
        )

    async def update_orders(
        self,
        position: Position,
        take_profit_price: Optional[Decimal],
        stop_loss_price: Optional[Decimal],
    ) -> OrderUpdateConfirmation:
        protocol_id = self._require_protocol_id(position)
        payload = {
            "takeProfitPrice": str(take_profit_price) if take_profit_price is not None else None,
            "stopLossPrice": str(stop_loss_price) if stop_loss_price is not None else None,
        }
        response = await self._call("PUT", f"/positions/{protocol_id}/orders", data=payload)

        return OrderUpdateConfirmation(
            position_id=position.position_id,
            take_profit_price=take_profit_price,
            stop_loss_price=stop_loss_price,
            transaction_hash=response.get("transactionHash"),
        )

    async def get_positions(self, wallet_address: str) -> List[Position]:
        response = await self._call("GET", "/positions", params={"account": wallet_address})
        items = response.get("positions", []) if isinstance(response, dict) else response

        positions = []
        for item in items or []:
            position = self._parse_position(item)
            if position is not None:
                positions.append(position)
        return positions

    async def _call(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            return await self._request(method, endpoint, params=params, data=data)
        except (HttpClientError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise PerpsError(f"Perpetuals gateway {method} {endpoint} failed: {e}") from e

    @staticmethod
    def _require_protocol_id(position: Position) -> str:
        if not position.protocol_position_id:
            raise PerpsError(f"Position {position.position_id} has no protocol id")
        return position.protocol_position_id

    @staticmethod
    def _parse_position(data: Dict[str, Any]) -> Optional[Position]:
        """Parse a gateway position record, skipping malformed entries."""
        try:
            collateral = parse_decimal(data.get("collateral"))
            leverage = int(data.get("leverage", 0))
            entry_price = parse_decimal(data.get("entryPrice"))
            if collateral is None or entry_price is None or leverage < 1:
                raise ValueError("missing collateral, leverage or entryPrice")

            return Position(
                position_id=str(data["positionId"]),
                asset=str(data["market"]).upper(),
                position_type=PositionType.LONG if data.get("isLong") else PositionType.SHORT,
                collateral=collateral,
                leverage=leverage,
                entry_price=entry_price,
                size=position_size(collateral, leverage),
                take_profit_price=parse_decimal(data.get("takeProfitPrice")),
                stop_loss_price=parse_decimal(data.get("stopLossPrice")),
                protocol_position_id=str(data["positionId"]),
                transaction_hash=data.get("transactionHash"),
                simulated=False,
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed gateway position {data!r}: {e}")
            return None


def create_perps_client(settings: Optional[Settings] = None) -> PerpsClient:
    """Pick the perpetuals variant once, from configuration."""
    settings = settings or Settings.from_env()
    connection = settings.perps_connection()
    if connection is None:
        logger.warning("DEX_PERPS_URL not set; positions will be simulated")
        return FallbackPerpsClient()

    logger.info(f"Using perpetuals gateway at {connection.normalized_url}")
    return HttpPerpsClient(connection)
