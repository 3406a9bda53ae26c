"""
Unit tests for the risk calculator.

Tests cover:
- Liquidation price for longs and shorts
- Unrealized PnL
- Position validation against asset limits
- TP/SL placement checks
- Position construction
"""

import pytest
from decimal import Decimal

from dex_client.errors import PositionValidationError
from dex_client.models.positions import PositionType
from dex_client.risk import (
    build_position,
    estimate_funding_fee,
    liquidation_price,
    position_size,
    unrealized_pnl,
    validate_exit_prices,
    validate_position,
)


class TestLiquidationPrice:
    """Test liquidation price calculation."""

    def test_long_liquidation(self):
        assert liquidation_price(Decimal("2500"), 10, True) == Decimal("2250")

    def test_short_liquidation(self):
        assert liquidation_price(Decimal("2500"), 10, False) == Decimal("2750")

    def test_accepts_plain_numbers(self):
        assert liquidation_price(2500, 10, True) == 2250
        assert liquidation_price(2500.0, 10, False) == 2750

    def test_one_x_long_liquidates_at_zero(self):
        assert liquidation_price(Decimal("85"), 1, True) == 0
        assert liquidation_price(Decimal("85"), 1, False) == Decimal("170")

    @pytest.mark.parametrize("leverage", [1, 2, 3, 7, 10, 20, 49, 50, 1000, 10 ** 40])
    def test_long_below_and_short_above_entry(self, leverage):
        """Liquidation never reaches entry for finite leverage."""
        for entry in (Decimal("1.5"), Decimal("85"), Decimal("42000")):
            assert liquidation_price(entry, leverage, True) < entry
            assert liquidation_price(entry, leverage, False) > entry

    def test_zero_leverage_rejected(self):
        with pytest.raises(ValueError, match="Leverage must be at least 1"):
            liquidation_price(Decimal("2500"), 0, True)

    def test_non_positive_entry_rejected(self):
        with pytest.raises(ValueError, match="Entry price must be positive"):
            liquidation_price(Decimal("0"), 10, True)


class TestUnrealizedPnL:
    """Test PnL calculation."""

    def test_long_profit(self):
        assert unrealized_pnl(Decimal("2500"), Decimal("2750"), Decimal("1000"), True) == Decimal("100")

    def test_short_loss_mirrors_long(self):
        assert unrealized_pnl(Decimal("2500"), Decimal("2750"), Decimal("1000"), False) == Decimal("-100")

    def test_short_profit_on_drop(self):
        assert unrealized_pnl(2500, 2250, 1000, False) == 100

    @pytest.mark.parametrize("is_long", [True, False])
    @pytest.mark.parametrize("size", [Decimal("0"), Decimal("10"), Decimal("123456.78")])
    def test_flat_price_is_zero(self, size, is_long):
        assert unrealized_pnl(Decimal("2500"), Decimal("2500"), size, is_long) == 0

    def test_zero_entry_rejected(self):
        with pytest.raises(ValueError, match="Entry price must be positive"):
            unrealized_pnl(Decimal("0"), Decimal("10"), Decimal("100"), True)


class TestValidatePosition:
    """Test position validation against asset limits."""

    def test_valid_position(self):
        result = validate_position("ETH", Decimal("100"), 10)
        assert result.valid is True
        assert result.error is None
        assert bool(result) is True

    def test_collateral_below_minimum(self):
        result = validate_position("ETH", 5, 10)
        assert result.valid is False
        assert "Minimum collateral" in result.error
        assert "10" in result.error

    def test_leverage_above_maximum(self):
        result = validate_position("ETH", 50, 60)
        assert result.valid is False
        assert "leverage" in result.error.lower()
        assert "50x" in result.error

    def test_asset_specific_max_leverage(self):
        assert validate_position("SOL", 100, 20).valid
        assert not validate_position("SOL", 100, 21).valid
        assert not validate_position("ARB", 100, 11).valid

    def test_leverage_below_one(self):
        assert not validate_position("BTC", 100, 0).valid

    def test_fractional_leverage(self):
        assert not validate_position("BTC", 100, 2.5).valid

    def test_unknown_asset(self):
        result = validate_position("DOGE", 100, 2)
        assert result.valid is False
        assert "not supported" in result.error

    def test_lowercase_symbol_accepted(self):
        assert validate_position("eth", 100, 2).valid

    def test_non_numeric_collateral(self):
        result = validate_position("ETH", "abc", 2)
        assert result.valid is False
        assert "collateral" in result.error.lower()

    def test_boundaries_inclusive(self):
        assert validate_position("ETH", 10, 1).valid
        assert validate_position("ETH", 10, 50).valid


class TestExitPrices:
    """Test TP/SL placement relative to entry."""

    def test_long_exits(self):
        assert validate_exit_prices(Decimal("2500"), True, Decimal("2600"), Decimal("2400")).valid
        assert not validate_exit_prices(Decimal("2500"), True, Decimal("2400"), None).valid
        assert not validate_exit_prices(Decimal("2500"), True, None, Decimal("2600")).valid

    def test_short_exits(self):
        assert validate_exit_prices(Decimal("2500"), False, Decimal("2400"), Decimal("2600")).valid
        assert not validate_exit_prices(Decimal("2500"), False, Decimal("2600"), None).valid
        assert not validate_exit_prices(Decimal("2500"), False, None, Decimal("2400")).valid

    def test_no_exits(self):
        assert validate_exit_prices(Decimal("2500"), True).valid

    def test_negative_exit_rejected(self):
        result = validate_exit_prices(Decimal("2500"), False, Decimal("-1"), None)
        assert not result.valid
        assert "positive" in result.error


class TestBuildPosition:
    """Test position construction."""

    def test_size_is_collateral_times_leverage(self):
        position = build_position("ETH", "long", Decimal("100"), 10)
        assert position.size == Decimal("1000")
        assert position.size == position.collateral * position.leverage
        assert position.entry_price == Decimal("2500")
        assert position.position_type is PositionType.LONG
        assert position.simulated is True

    def test_ids_are_unique(self):
        first = build_position("BTC", PositionType.SHORT, 20, 2)
        second = build_position("BTC", PositionType.SHORT, 20, 2)
        assert first.position_id != second.position_id

    def test_invalid_parameters_raise(self):
        with pytest.raises(PositionValidationError, match="Minimum collateral") as exc_info:
            build_position("ETH", "long", 5, 10)
        assert exc_info.value.result.valid is False

    def test_invalid_exits_raise(self):
        with pytest.raises(PositionValidationError, match="Take profit"):
            build_position("ETH", "long", 100, 10, take_profit_price=2000)

    def test_invalid_type_raises(self):
        with pytest.raises(ValueError, match="long' or 'short"):
            build_position("ETH", "sideways", 100, 10)

    def test_custom_entry_price(self):
        position = build_position("SOL", "short", 50, 4, entry_price="90", stop_loss_price="95")
        assert position.entry_price == Decimal("90")
        assert position.stop_loss_price == Decimal("95")
        assert position.size == Decimal("200")

    def test_to_dict(self):
        position = build_position("ARB", "long", 10, 3)
        data = position.to_dict()
        assert data["asset"] == "ARB"
        assert data["position_type"] == "long"
        assert data["size"] == "30"
        assert data["take_profit_price"] is None


class TestHelpers:
    """Test size and funding helpers."""

    def test_position_size(self):
        assert position_size("12.5", 4) == Decimal("50.0")

    def test_funding_fee(self):
        assert estimate_funding_fee(Decimal("1000"), "ETH", 24) == Decimal("2.4000")

    def test_funding_fee_default_rate(self):
        assert estimate_funding_fee(Decimal("1000"), "UNKNOWN") == Decimal("0.1000")
