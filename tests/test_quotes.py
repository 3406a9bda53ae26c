"""
Unit tests for the quote estimator.

Tests cover:
- Price impact math
- Amount validation
- Fallback rate table
- Router-first quoting with typed fallback rules
"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock

from dex_client.errors import (
    InvalidAmountError,
    NoRouteError,
    RouterError,
    RouterNotConfiguredError,
    RouterUnavailableError,
)
from dex_client.models.market import QuoteSource, RouteResult
from dex_client.monitoring import CallOutcome
from dex_client.quotes import QuoteEstimator, fallback_quote, price_impact, validate_amount
from dex_client.router_client import FallbackRouterClient, RouterClient


def make_router(result=None, error=None) -> RouterClient:
    router = AsyncMock(spec=RouterClient)
    if error is not None:
        router.route.side_effect = error
    else:
        router.route.return_value = result
    return router


class TestPriceImpact:
    """Test price impact calculation."""

    def test_no_impact_at_spot(self):
        assert price_impact("100", "0.04", Decimal("0.0004")) == 0

    def test_positive_impact(self):
        assert price_impact("100", "0.038", Decimal("0.0004")) == Decimal("5")

    def test_better_than_spot_clamped_to_zero(self):
        assert price_impact("100", "0.05", Decimal("0.0004")) == 0

    def test_zero_expected_output(self):
        assert price_impact("0", "10", Decimal("2")) == 0
        assert price_impact("10", "10", Decimal("0")) == 0

    @pytest.mark.parametrize("amount_out", ["0", "1", "99.5", "250"])
    def test_never_negative(self, amount_out):
        assert price_impact("100", amount_out, Decimal("1")) >= 0


class TestValidateAmount:
    """Test swap amount validation."""

    def test_valid_amount(self):
        assert validate_amount("1.5").valid

    def test_minimum_is_inclusive(self):
        assert validate_amount("0.01").valid

    def test_below_minimum(self):
        result = validate_amount("0.001")
        assert not result.valid
        assert result.error == "Minimum swap amount is 0.01"

    def test_custom_minimum(self):
        assert not validate_amount("5", min_amount=10).valid

    @pytest.mark.parametrize("amount", ["", "abc", "NaN", "Infinity", None])
    def test_non_numeric(self, amount):
        result = validate_amount(amount)
        assert not result.valid
        assert result.error == "Invalid amount"


class TestFallbackQuote:
    """Test the static rate table."""

    def test_known_pair(self):
        assert fallback_quote("USDC", "ETH", "100") == Decimal("0.050000")

    def test_reverse_pair(self):
        assert fallback_quote("ETH", "USDC", "1.5") == Decimal("3000.000000")

    def test_unknown_pair_trades_at_one(self):
        assert fallback_quote("DAI", "WBTC", "12.3456789") == Decimal("12.345679")


class TestQuoteEstimator:
    """Test router-first quoting."""

    @pytest.mark.asyncio
    async def test_router_quote(self, route_result, monitor):
        router = make_router(result=route_result)
        estimator = QuoteEstimator(router, monitor=monitor)

        quote = await estimator.quote("usdc", "eth", "100")

        assert quote.source is QuoteSource.ROUTER
        assert quote.amount_out == Decimal("0.0398")
        assert quote.token_in == "USDC"
        assert quote.price_impact == Decimal("0.5")
        router.route.assert_awaited_once_with("USDC", "ETH", Decimal("100"), recipient=None)
        assert monitor.statistics.successful_calls == 1

    @pytest.mark.asyncio
    async def test_not_configured_falls_back(self, monitor):
        estimator = QuoteEstimator(FallbackRouterClient(), monitor=monitor)

        quote = await estimator.quote("USDC", "ETH", "100")

        assert quote.source is QuoteSource.FALLBACK
        assert quote.is_fallback
        assert quote.amount_out_str == "0.050000"
        assert monitor.statistics.fallback_calls == 1

    @pytest.mark.asyncio
    async def test_unavailable_falls_back(self):
        router = make_router(error=RouterUnavailableError("connection refused"))
        quote = await QuoteEstimator(router).quote("ETH", "USDC", "2")

        assert quote.source is QuoteSource.FALLBACK
        assert quote.amount_out == Decimal("4000")
        assert quote.price_impact == Decimal("20")

    @pytest.mark.asyncio
    async def test_no_route_propagates(self, monitor):
        router = make_router(error=NoRouteError("No route found"))
        estimator = QuoteEstimator(router, monitor=monitor)

        with pytest.raises(NoRouteError):
            await estimator.quote("USDC", "WBTC", "100")
        assert monitor.get_recent_calls(1)[0].outcome is CallOutcome.ERROR

    @pytest.mark.asyncio
    async def test_no_route_fallback_when_enabled(self):
        router = make_router(error=NoRouteError("No route found"))
        estimator = QuoteEstimator(router, fallback_on_no_route=True)

        quote = await estimator.quote("USDC", "DAI", "100")

        assert quote.source is QuoteSource.FALLBACK
        assert quote.amount_out == Decimal("98")

    @pytest.mark.asyncio
    async def test_router_rejection_propagates(self):
        router = make_router(error=RouterError("bad request"))
        with pytest.raises(RouterError):
            await QuoteEstimator(router).quote("USDC", "ETH", "100")

    @pytest.mark.asyncio
    async def test_invalid_amount_never_routes(self):
        router = make_router(error=RouterNotConfiguredError("unused"))
        estimator = QuoteEstimator(router)

        with pytest.raises(InvalidAmountError, match="Minimum swap amount"):
            await estimator.quote("USDC", "ETH", "0.001")
        with pytest.raises(InvalidAmountError, match="Invalid amount"):
            await estimator.quote("USDC", "ETH", "ten")
        router.route.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_estimate_output_string(self):
        router = make_router(result=RouteResult(amount_out=Decimal("0.0398")))
        assert await QuoteEstimator(router).estimate_output("USDC", "ETH", "100") == "0.0398"

    @pytest.mark.asyncio
    async def test_fallback_unknown_pair(self):
        quote = await QuoteEstimator(FallbackRouterClient()).quote("DAI", "USDT", "50")
        assert quote.amount_out == Decimal("50")
        assert quote.price_impact == 0
