"""
Position management.

`PositionManager` validates, submits and tracks leveraged positions for one
front-end session. The book lives on the instance: positions are added on
open, replaced on TP/SL updates and removed on close, with no persistence.

Example usage:
    from decimal import Decimal
    from dex_client import PositionManager, create_perps_client

    async with create_perps_client() as perps:
        manager = PositionManager(perps)
        position = await manager.open_position(
            wallet_address="0xabc...",
            asset="ETH",
            position_type="long",
            collateral=Decimal("100"),
            leverage=10,
        )
        metrics = manager.position_metrics(position.position_id, Decimal("2600"))
        result = await manager.close_position(position.position_id, "0xabc...")
"""

import dataclasses
import logging
import time
from typing import Dict, List, Optional, Union

from .catalog import get_asset
from .errors import PerpsError, PositionNotFoundError, PositionValidationError
from .models.positions import (
    CloseConfirmation,
    OrderUpdateConfirmation,
    Position,
    PositionMetrics,
    PositionType,
)
from .monitoring import CallOutcome, PerformanceMonitor, elapsed_ms
from .perps_client import PerpsClient
from .risk import build_position, liquidation_price, unrealized_pnl, validate_exit_prices
from .utils import Numeric, to_decimal

logger = logging.getLogger(__name__)


class PositionManager:
    """Opens, amends and closes positions against a perpetuals client."""

    SERVICE = "perps"

    def __init__(self, client: PerpsClient, monitor: Optional[PerformanceMonitor] = None):
        self._client = client
        self._monitor = monitor
        self._positions: Dict[str, Position] = {}

    @property
    def positions(self) -> List[Position]:
        """Open positions in opening order."""
        return list(self._positions.values())

    def get_position(self, position_id: str) -> Position:
        """Look up an open position by its local id."""
        try:
            return self._positions[position_id]
        except KeyError:
            raise PositionNotFoundError(f"Position {position_id} not found") from None

    async def open_position(
        self,
        wallet_address: str,
        asset: str,
        position_type: Union[PositionType, str],
        collateral: Numeric,
        leverage: int,
        take_profit_price: Optional[Numeric] = None,
        stop_loss_price: Optional[Numeric] = None,
    ) -> Position:
        """
        Validate and open a position.

        Raises:
            PositionValidationError: If asset, collateral, leverage or exits are invalid
            ValueError: If wallet address is empty or position type is unknown
            PerpsError: If the protocol rejects the position

        TP/SL the confirmed entry price invalidates are dropped from the book.
        """
        if not wallet_address:
            raise ValueError("Wallet address is required")

        position = build_position(
            asset,
            position_type,
            collateral,
            leverage,
            take_profit_price=take_profit_price,
            stop_loss_price=stop_loss_price,
        )

        started = time.perf_counter()
        try:
            confirmation = await self._client.open_position(position, wallet_address)
        except PerpsError:
            self._record("open_position", CallOutcome.ERROR, started)
            logger.error(f"Failed to open {position.asset} position for {wallet_address}")
            raise
        self._record(
            "open_position",
            CallOutcome.FALLBACK if confirmation.simulated else CallOutcome.OK,
            started,
        )

        position = dataclasses.replace(
            position,
            entry_price=confirmation.entry_price,
            protocol_position_id=confirmation.protocol_position_id,
            transaction_hash=confirmation.transaction_hash,
            simulated=confirmation.simulated,
        )
        position = self._recheck_exits(position)
        self._positions[position.position_id] = position

        logger.info(
            f"Opened {position.position_type.value.upper()} {position.asset}: "
            f"size={position.size} @ {position.entry_price} ({position.leverage}x)"
            f"{' [simulated]' if position.simulated else ''}"
        )
        return position

    async def close_position(
        self,
        position_id: str,
        wallet_address: str,
        mark_price: Optional[Numeric] = None,
    ) -> CloseConfirmation:
        """
        Close a position and drop it from the book.

        Raises:
            PositionNotFoundError: If the id is not in the book
            PerpsError: If the protocol fails to close it (position stays in the book)
        """
        position = self.get_position(position_id)
        mark = to_decimal(mark_price) if mark_price is not None else None

        started = time.perf_counter()
        try:
            confirmation = await self._client.close_position(position, wallet_address, mark)
        except PerpsError:
            self._record("close_position", CallOutcome.ERROR, started)
            raise
        self._record(
            "close_position",
            CallOutcome.FALLBACK if confirmation.simulated else CallOutcome.OK,
            started,
        )

        del self._positions[position_id]
        logger.info(f"Closed {position.asset} position {position_id}: pnl={confirmation.pnl}")
        return confirmation

    async def update_orders(
        self,
        position_id: str,
        take_profit_price: Optional[Numeric] = None,
        stop_loss_price: Optional[Numeric] = None,
    ) -> OrderUpdateConfirmation:
        """
        Replace a position's take profit and stop loss.

        Raises:
            PositionNotFoundError: If the id is not in the book
            PositionValidationError: If the prices sit on the wrong side of entry
        """
        position = self.get_position(position_id)

        result = validate_exit_prices(
            position.entry_price, position.is_long, take_profit_price, stop_loss_price
        )
        if not result.valid:
            raise PositionValidationError(result)

        tp = to_decimal(take_profit_price) if take_profit_price is not None else None
        sl = to_decimal(stop_loss_price) if stop_loss_price is not None else None

        started = time.perf_counter()
        try:
            confirmation = await self._client.update_orders(position, tp, sl)
        except PerpsError:
            self._record("update_orders", CallOutcome.ERROR, started)
            raise
        self._record(
            "update_orders",
            CallOutcome.FALLBACK if confirmation.simulated else CallOutcome.OK,
            started,
        )

        self._positions[position_id] = dataclasses.replace(
            position, take_profit_price=tp, stop_loss_price=sl
        )
        return confirmation

    def position_metrics(self, position_id: str, mark_price: Optional[Numeric] = None) -> PositionMetrics:
        """Liquidation price and unrealized PnL at a mark price (catalog price by default)."""
        position = self.get_position(position_id)
        if mark_price is None:
            asset = get_asset(position.asset)
            mark = asset.price if asset else position.entry_price
        else:
            mark = to_decimal(mark_price)

        return PositionMetrics(
            position_id=position_id,
            mark_price=mark,
            liquidation_price=liquidation_price(position.entry_price, position.leverage, position.is_long),
            unrealized_pnl=unrealized_pnl(position.entry_price, mark, position.size, position.is_long),
        )

    async def sync_positions(self, wallet_address: str) -> List[Position]:
        """Merge positions the protocol reports for a wallet into the book."""
        remote = await self._client.get_positions(wallet_address)
        known = {p.protocol_position_id for p in self._positions.values() if p.protocol_position_id}
        added = [p for p in remote if p.protocol_position_id not in known]
        for position in added:
            self._positions[position.position_id] = position
        if added:
            logger.info(f"Synced {len(added)} position(s) for {wallet_address}")
        return self.positions

    @staticmethod
    def _recheck_exits(position: Position) -> Position:
        """Drop TP/SL that the confirmed entry price puts on the wrong side."""
        tp, sl = position.take_profit_price, position.stop_loss_price
        result = validate_exit_prices(position.entry_price, position.is_long, tp, None)
        if not result.valid:
            logger.warning(f"Dropping take profit for {position.position_id}: {result.error}")
            tp = None
        result = validate_exit_prices(position.entry_price, position.is_long, None, sl)
        if not result.valid:
            logger.warning(f"Dropping stop loss for {position.position_id}: {result.error}")
            sl = None

        if (tp, sl) == (position.take_profit_price, position.stop_loss_price):
            return position
        return dataclasses.replace(position, take_profit_price=tp, stop_loss_price=sl)

    def _record(self, operation: str, outcome: CallOutcome, started: float) -> None:
        if self._monitor is not None:
            self._monitor.record_call(self.SERVICE, operation, outcome, elapsed_ms(started))
