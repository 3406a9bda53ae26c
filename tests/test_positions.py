"""
Tests for position management and the perpetuals clients.
"""

import dataclasses
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, patch

from dex_client.errors import PerpsError, PositionNotFoundError, PositionValidationError
from dex_client.http_client import HttpClientClientError, HttpServerError
from dex_client.models.positions import PositionConfirmation, PositionType
from dex_client.monitoring import CallOutcome
from dex_client.perps_client import (
    FallbackPerpsClient,
    HttpPerpsClient,
    PerpsClient,
    create_perps_client,
)
from dex_client.positions import PositionManager
from dex_client.risk import build_position


@pytest.fixture
def manager(monitor):
    return PositionManager(FallbackPerpsClient(), monitor=monitor)


@pytest.fixture
def gateway(connection_config):
    return HttpPerpsClient(connection_config)


class TestCreatePerpsClient:

    def test_fallback_when_not_configured(self, empty_settings):
        assert isinstance(create_perps_client(empty_settings), FallbackPerpsClient)

    def test_http_when_configured(self, configured_settings):
        assert isinstance(create_perps_client(configured_settings), HttpPerpsClient)


class TestPositionManagerSimulated:

    @pytest.mark.asyncio
    async def test_open_long(self, manager, wallet_address, monitor):
        position = await manager.open_position(wallet_address, "eth", "long", 100, 10)

        assert position.asset == "ETH"
        assert position.position_type is PositionType.LONG
        assert position.size == Decimal("1000")
        assert position.entry_price == Decimal("2500")
        assert position.simulated is True
        assert position.protocol_position_id is None
        assert position.transaction_hash is None
        assert manager.positions == [position]
        assert monitor.get_recent_calls(1)[0].outcome is CallOutcome.FALLBACK

    @pytest.mark.asyncio
    async def test_open_rejects_invalid_leverage(self, manager, wallet_address):
        with pytest.raises(PositionValidationError) as exc_info:
            await manager.open_position(wallet_address, "SOL", "short", 100, 25)

        assert exc_info.value.result.error == "Invalid leverage. Max for SOL is 20x"
        assert manager.positions == []

    @pytest.mark.asyncio
    async def test_open_requires_wallet(self, manager):
        with pytest.raises(ValueError, match="Wallet address"):
            await manager.open_position("", "ETH", "long", 100, 10)

    @pytest.mark.asyncio
    async def test_open_rejects_unknown_side(self, manager, wallet_address):
        with pytest.raises(ValueError, match="long' or 'short"):
            await manager.open_position(wallet_address, "ETH", "sideways", 100, 10)

    @pytest.mark.asyncio
    async def test_close_removes_position(self, manager, wallet_address):
        position = await manager.open_position(wallet_address, "ETH", PositionType.LONG, 100, 10)

        result = await manager.close_position(position.position_id, wallet_address, mark_price=2750)

        assert result.simulated is True
        assert result.transaction_hash is None
        assert result.pnl == Decimal("100")
        assert manager.positions == []

    @pytest.mark.asyncio
    async def test_close_at_catalog_price_is_flat(self, manager, wallet_address):
        position = await manager.open_position(wallet_address, "BTC", "short", 50, 5)

        result = await manager.close_position(position.position_id, wallet_address)

        assert result.pnl == Decimal("0")

    @pytest.mark.asyncio
    async def test_close_unknown_position(self, manager, wallet_address):
        with pytest.raises(PositionNotFoundError):
            await manager.close_position("missing", wallet_address)

    @pytest.mark.asyncio
    async def test_update_orders(self, manager, wallet_address):
        position = await manager.open_position(wallet_address, "ETH", "long", 100, 10)

        result = await manager.update_orders(position.position_id, take_profit_price=3000, stop_loss_price=2300)

        assert result.simulated is True
        updated = manager.get_position(position.position_id)
        assert updated.take_profit_price == Decimal("3000")
        assert updated.stop_loss_price == Decimal("2300")

    @pytest.mark.asyncio
    async def test_update_orders_wrong_side(self, manager, wallet_address):
        position = await manager.open_position(wallet_address, "ETH", "short", 100, 10)

        with pytest.raises(PositionValidationError):
            await manager.update_orders(position.position_id, take_profit_price=2600)
        assert manager.get_position(position.position_id).take_profit_price is None

    @pytest.mark.asyncio
    async def test_position_metrics(self, manager, wallet_address):
        position = await manager.open_position(wallet_address, "ETH", "long", 100, 10)

        metrics = manager.position_metrics(position.position_id, mark_price="2400")

        assert metrics.liquidation_price == Decimal("2250")
        assert metrics.unrealized_pnl == Decimal("-40")
        assert metrics.mark_price == Decimal("2400")

    @pytest.mark.asyncio
    async def test_sync_positions_is_empty_when_simulated(self, manager, wallet_address):
        assert await manager.sync_positions(wallet_address) == []


class TestPositionManagerWithProtocol:

    @pytest.mark.asyncio
    async def test_open_uses_protocol_confirmation(self, wallet_address, monitor):
        client = AsyncMock(spec=PerpsClient)
        client.open_position.return_value = PositionConfirmation(
            entry_price=Decimal("2510"),
            size=Decimal("1000"),
            protocol_position_id="gw-1",
            transaction_hash="0xabc",
        )
        manager = PositionManager(client, monitor=monitor)

        position = await manager.open_position(wallet_address, "ETH", "long", 100, 10)

        assert position.entry_price == Decimal("2510")
        assert position.protocol_position_id == "gw-1"
        assert position.transaction_hash == "0xabc"
        assert position.simulated is False
        assert monitor.get_recent_calls(1)[0].outcome is CallOutcome.OK

    @pytest.mark.asyncio
    async def test_exits_rechecked_against_confirmed_entry(self, wallet_address):
        client = AsyncMock(spec=PerpsClient)
        client.open_position.return_value = PositionConfirmation(
            entry_price=Decimal("3050"), size=Decimal("1000"), protocol_position_id="gw-1"
        )
        manager = PositionManager(client)

        position = await manager.open_position(
            wallet_address, "ETH", "long", 100, 10, take_profit_price=3000, stop_loss_price=2300
        )

        assert position.entry_price == Decimal("3050")
        assert position.take_profit_price is None
        assert position.stop_loss_price == Decimal("2300")
        assert manager.get_position(position.position_id) == position

    @pytest.mark.asyncio
    async def test_valid_exits_survive_confirmation(self, wallet_address):
        client = AsyncMock(spec=PerpsClient)
        client.open_position.return_value = PositionConfirmation(
            entry_price=Decimal("2490"), size=Decimal("100"), protocol_position_id="gw-2"
        )
        manager = PositionManager(client)

        position = await manager.open_position(
            wallet_address, "ETH", "short", 50, 2, take_profit_price=2200, stop_loss_price=2700
        )

        assert position.take_profit_price == Decimal("2200")
        assert position.stop_loss_price == Decimal("2700")

    @pytest.mark.asyncio
    async def test_open_failure_leaves_book_empty(self, wallet_address, monitor):
        client = AsyncMock(spec=PerpsClient)
        client.open_position.side_effect = PerpsError("rejected")
        manager = PositionManager(client, monitor=monitor)

        with pytest.raises(PerpsError):
            await manager.open_position(wallet_address, "ETH", "long", 100, 10)

        assert manager.positions == []
        assert monitor.statistics.failed_calls == 1

    @pytest.mark.asyncio
    async def test_close_failure_keeps_position(self, wallet_address):
        client = AsyncMock(spec=PerpsClient)
        client.open_position.return_value = PositionConfirmation(
            entry_price=Decimal("2500"), size=Decimal("1000"), protocol_position_id="gw-1"
        )
        client.close_position.side_effect = PerpsError("gateway down")
        manager = PositionManager(client)
        position = await manager.open_position(wallet_address, "ETH", "long", 100, 10)

        with pytest.raises(PerpsError):
            await manager.close_position(position.position_id, wallet_address)

        assert manager.positions == [position]

    @pytest.mark.asyncio
    async def test_sync_adds_only_unknown_positions(self, wallet_address, gateway):
        records = [
            {"positionId": "gw-1", "market": "eth", "isLong": True, "collateral": "100",
             "leverage": 10, "entryPrice": "2500"},
            {"positionId": "gw-2", "market": "BTC", "isLong": False, "collateral": "50",
             "leverage": 5, "entryPrice": "42000"},
        ]
        with patch.object(gateway, "_request", new=AsyncMock(return_value={"positions": records})):
            remote = await gateway.get_positions(wallet_address)

        client = AsyncMock(spec=PerpsClient)
        client.open_position.return_value = PositionConfirmation(
            entry_price=Decimal("2500"), size=Decimal("1000"), protocol_position_id="gw-1"
        )
        client.get_positions.return_value = remote
        manager = PositionManager(client)
        await manager.open_position(wallet_address, "ETH", "long", 100, 10)

        synced = await manager.sync_positions(wallet_address)

        assert [p.protocol_position_id for p in synced] == ["gw-1", "gw-2"]


class TestHttpPerpsClient:

    @pytest.fixture
    def position(self):
        return build_position("ETH", "long", 100, 10, take_profit_price=3000)

    @pytest.mark.asyncio
    async def test_open_position_payload(self, gateway, position, wallet_address):
        response = {"positionId": "gw-9", "entryPrice": "2501.5", "size": "1000", "transactionHash": "0xfeed"}
        with patch.object(gateway, "_request", new=AsyncMock(return_value=response)) as request:
            confirmation = await gateway.open_position(position, wallet_address)

        request.assert_awaited_once()
        method, endpoint = request.await_args.args
        payload = request.await_args.kwargs["data"]
        assert (method, endpoint) == ("POST", "/positions")
        assert payload["market"] == "ETH"
        assert payload["isLong"] is True
        assert payload["collateral"] == "100"
        assert payload["takeProfitPrice"] == "3000"
        assert "stopLossPrice" not in payload
        assert confirmation.entry_price == Decimal("2501.5")
        assert confirmation.protocol_position_id == "gw-9"
        assert confirmation.simulated is False

    @pytest.mark.asyncio
    async def test_open_missing_entry_price(self, gateway, position, wallet_address):
        with patch.object(gateway, "_request", new=AsyncMock(return_value={"positionId": "x"})):
            with pytest.raises(PerpsError, match="entryPrice"):
                await gateway.open_position(position, wallet_address)

    @pytest.mark.asyncio
    async def test_transport_errors_become_perps_errors(self, gateway, position, wallet_address):
        failure = HttpServerError("Server error 503", status_code=503)
        with patch.object(gateway, "_request", new=AsyncMock(side_effect=failure)):
            with pytest.raises(PerpsError) as exc_info:
                await gateway.open_position(position, wallet_address)
        assert exc_info.value.__cause__ is failure

    @pytest.mark.asyncio
    async def test_close_requires_protocol_id(self, gateway, position, wallet_address):
        with pytest.raises(PerpsError, match="no protocol id"):
            await gateway.close_position(position, wallet_address)

    @pytest.mark.asyncio
    async def test_close_position(self, gateway, position, wallet_address):
        opened = dataclasses.replace(position, protocol_position_id="gw-9")
        response = {"pnl": "-12.5", "transactionHash": "0xdead"}
        with patch.object(gateway, "_request", new=AsyncMock(return_value=response)) as request:
            result = await gateway.close_position(opened, wallet_address)

        assert request.await_args.args == ("POST", "/positions/gw-9/close")
        assert result.pnl == Decimal("-12.5")
        assert result.transaction_hash == "0xdead"
        assert result.position_id == position.position_id

    @pytest.mark.asyncio
    async def test_update_orders(self, gateway, position):
        opened = dataclasses.replace(position, protocol_position_id="gw-9")
        with patch.object(gateway, "_request", new=AsyncMock(return_value={})) as request:
            result = await gateway.update_orders(opened, Decimal("3100"), None)

        assert request.await_args.args == ("PUT", "/positions/gw-9/orders")
        assert request.await_args.kwargs["data"] == {"takeProfitPrice": "3100", "stopLossPrice": None}
        assert result.take_profit_price == Decimal("3100")

    @pytest.mark.asyncio
    async def test_get_positions_skips_malformed(self, gateway, wallet_address):
        records = [
            {"positionId": "gw-1", "market": "SOL", "isLong": False, "collateral": "20",
             "leverage": "4", "entryPrice": "85", "stopLossPrice": "90"},
            {"positionId": "gw-2", "market": "ETH", "leverage": 0, "entryPrice": "2500", "collateral": "1"},
            {"market": "ETH", "leverage": 2, "entryPrice": "2500", "collateral": "1"},
        ]
        with patch.object(gateway, "_request", new=AsyncMock(return_value=records)) as request:
            positions = await gateway.get_positions(wallet_address)

        assert request.await_args.kwargs["params"] == {"account": wallet_address}
        assert len(positions) == 1
        assert positions[0].position_type is PositionType.SHORT
        assert positions[0].size == Decimal("80")
        assert positions[0].stop_loss_price == Decimal("90")

    @pytest.mark.asyncio
    async def test_client_error_wrapped(self, gateway, wallet_address):
        failure = HttpClientClientError("Client error 400", status_code=400)
        with patch.object(gateway, "_request", new=AsyncMock(side_effect=failure)):
            with pytest.raises(PerpsError):
                await gateway.get_positions(wallet_address)
