"""
Quote Estimator - Swap output and price impact.

The estimator asks the configured router first and falls back to the static
rate table only when the router is missing or unreachable. A pair the
router cannot route is reported as `NoRouteError`. Every quote carries its
`QuoteSource`, so callers can tell a live quote from a fallback estimate.

Example usage:
    from decimal import Decimal
    from dex_client import QuoteEstimator, create_router_client

    async with create_router_client() as router:
        estimator = QuoteEstimator(router)
        quote = await estimator.quote("USDC", "ETH", Decimal("100"))
        print(quote.amount_out_str, quote.source.value)
"""

import logging
import time
from decimal import Decimal
from typing import Optional, Tuple

from .catalog import get_fallback_rate, get_spot_price
from .constants import FALLBACK_QUOTE_PRECISION, MIN_SWAP_AMOUNT
from .errors import InvalidAmountError, NoRouteError, RouterNotConfiguredError, RouterUnavailableError
from .models.market import Quote, QuoteSource, SwapTransaction
from .models.positions import ValidationResult
from .monitoring import CallOutcome, PerformanceMonitor, elapsed_ms
from .router_client import RouterClient
from .utils import Numeric, normalize_symbol, round_half_up, to_decimal

logger = logging.getLogger(__name__)


def validate_amount(amount: Numeric, min_amount: Numeric = MIN_SWAP_AMOUNT) -> ValidationResult:
    """Validate a swap amount. Never raises."""
    try:
        value = to_decimal(amount)
    except ValueError:
        return ValidationResult.fail("Invalid amount")

    minimum = to_decimal(min_amount)
    if value < minimum:
        return ValidationResult.fail(f"Minimum swap amount is {minimum}")

    return ValidationResult.ok()


def price_impact(amount_in: Numeric, amount_out: Numeric, spot_price: Numeric) -> Decimal:
    """
    Percentage shortfall of the actual output against the spot-price output.

    Returns:
        max(0, (expected - actual) / expected * 100) with expected = amount_in * spot_price,
        or 0 when expected is 0
    """
    expected = to_decimal(amount_in) * to_decimal(spot_price)
    if expected == 0:
        return Decimal("0")

    impact = (expected - to_decimal(amount_out)) / expected * 100
    return max(Decimal("0"), impact)


def fallback_quote(token_in: str, token_out: str, amount_in: Numeric) -> Decimal:
    """Estimate output from the static rate table, rounded to 6 places."""
    amount = to_decimal(amount_in) * get_fallback_rate(token_in, token_out)
    return round_half_up(amount, FALLBACK_QUOTE_PRECISION)


class QuoteEstimator:
    """Quotes swaps through a router, degrading to the fallback rate table."""

    SERVICE = "router"

    def __init__(
        self,
        router: RouterClient,
        monitor: Optional[PerformanceMonitor] = None,
        fallback_on_no_route: bool = False,
        min_amount: Numeric = MIN_SWAP_AMOUNT,
    ):
        """
        Args:
            router: Router variant chosen at startup
            monitor: Optional collaborator call monitor
            fallback_on_no_route: Also use the rate table when the router finds no route
            min_amount: Smallest accepted input amount
        """
        self._router = router
        self._monitor = monitor
        self._fallback_on_no_route = fallback_on_no_route
        self._min_amount = to_decimal(min_amount)

    async def quote(self, token_in: str, token_out: str, amount_in: Numeric) -> Quote:
        """
        Quote an exact-input swap.

        Raises:
            InvalidAmountError: If the amount is not a number or below the minimum
            NoRouteError: If the router found no route (unless fallback_on_no_route)
            RouterError: If the router rejected the request
        """
        quote, _ = await self.quote_with_transaction(token_in, token_out, amount_in)
        return quote

    async def quote_with_transaction(
        self,
        token_in: str,
        token_out: str,
        amount_in: Numeric,
        recipient: Optional[str] = None,
    ) -> Tuple[Quote, Optional[SwapTransaction]]:
        """
        Quote a swap and return the router's unsigned transaction with it.

        The transaction prices exactly the returned quote; it is None for
        fallback quotes or when the router supplied none. Raises as `quote`.
        """
        validation = validate_amount(amount_in, self._min_amount)
        if not validation.valid:
            raise InvalidAmountError(validation.error)

        token_in = normalize_symbol(token_in)
        token_out = normalize_symbol(token_out)
        amount = to_decimal(amount_in)

        started = time.perf_counter()
        try:
            route = await self._router.route(token_in, token_out, amount, recipient=recipient)
        except (RouterNotConfiguredError, RouterUnavailableError) as e:
            self._record("quote", CallOutcome.FALLBACK, started)
            logger.warning(f"Quote {token_in}->{token_out} using fallback rate: {e}")
            return self._fallback(token_in, token_out, amount), None
        except NoRouteError as e:
            if not self._fallback_on_no_route:
                self._record("quote", CallOutcome.ERROR, started)
                raise
            self._record("quote", CallOutcome.FALLBACK, started)
            logger.warning(f"Quote {token_in}->{token_out} using fallback rate: {e}")
            return self._fallback(token_in, token_out, amount), None
        except Exception:
            self._record("quote", CallOutcome.ERROR, started)
            raise

        self._record("quote", CallOutcome.OK, started)
        quote = self._build_quote(token_in, token_out, amount, route.amount_out, QuoteSource.ROUTER)
        return quote, route.transaction

    async def estimate_output(self, token_in: str, token_out: str, amount_in: Numeric) -> str:
        """Estimated output amount as a decimal string."""
        quote = await self.quote(token_in, token_out, amount_in)
        return quote.amount_out_str

    def _fallback(self, token_in: str, token_out: str, amount: Decimal) -> Quote:
        amount_out = fallback_quote(token_in, token_out, amount)
        return self._build_quote(token_in, token_out, amount, amount_out, QuoteSource.FALLBACK)

    @staticmethod
    def _build_quote(
        token_in: str,
        token_out: str,
        amount_in: Decimal,
        amount_out: Decimal,
        source: QuoteSource,
    ) -> Quote:
        impact = price_impact(amount_in, amount_out, get_spot_price(token_in, token_out))
        logger.debug(
            f"Quote {amount_in} {token_in} -> {amount_out} {token_out} "
            f"(impact {impact:.4f}%, source={source.value})"
        )
        return Quote(
            token_in=token_in,
            token_out=token_out,
            amount_in=amount_in,
            amount_out=amount_out,
            price_impact=impact,
            source=source,
        )

    def _record(self, operation: str, outcome: CallOutcome, started: float) -> None:
        if self._monitor is not None:
            self._monitor.record_call(self.SERVICE, operation, outcome, elapsed_ms(started))
