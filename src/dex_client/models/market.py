"""
Market-related models for the DEX client.

Immutable data structures for perpetual assets, swap tokens and quotes.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from ..constants import FALLBACK_QUOTE_PRECISION


@dataclass(frozen=True)
class Asset:
    """Perpetuals asset with its trading limits."""
    symbol: str
    name: str
    price: Decimal  # reference price in USD
    max_leverage: int
    min_collateral: Decimal  # USDC


@dataclass(frozen=True)
class Token:
    """Swap token metadata."""
    symbol: str
    address: str
    decimals: int
    chain_id: int


class QuoteSource(Enum):
    """Where a quote came from."""
    ROUTER = "router"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class SwapTransaction:
    """Unsigned swap transaction prepared by the router for client-side signing."""
    to: str
    calldata: str
    value: str = "0x0"


@dataclass(frozen=True)
class RouteResult:
    """Router answer for a single exact-input swap."""
    amount_out: Decimal
    transaction: Optional[SwapTransaction] = None


@dataclass(frozen=True)
class Quote:
    """
    Swap quote.

    Attributes:
        token_in: Input token symbol
        token_out: Output token symbol
        amount_in: Input amount
        amount_out: Estimated output amount
        price_impact: Percentage deviation from spot-price output (>= 0)
        source: Whether the estimate came from the router or the fallback table
    """
    token_in: str
    token_out: str
    amount_in: Decimal
    amount_out: Decimal
    price_impact: Decimal
    source: QuoteSource

    @property
    def is_fallback(self) -> bool:
        return self.source is QuoteSource.FALLBACK

    @property
    def amount_out_str(self) -> str:
        """Output amount as a decimal string."""
        if self.is_fallback:
            return f"{self.amount_out:.{FALLBACK_QUOTE_PRECISION}f}"
        return format(self.amount_out, "f")


@dataclass(frozen=True)
class PreparedSwap:
    """Quote plus the transaction to sign, when the router supplied one."""
    quote: Quote
    wallet_address: str
    transaction: Optional[SwapTransaction] = None


@dataclass(frozen=True)
class SwapForm:
    """Swap form fields as held by the front end."""
    from_token: str
    to_token: str
    from_amount: str = ""
    to_amount: str = ""

    def flipped(self) -> "SwapForm":
        """Swap direction: transpose tokens and amounts without recomputing."""
        return SwapForm(
            from_token=self.to_token,
            to_token=self.from_token,
            from_amount=self.to_amount,
            to_amount=self.from_amount,
        )
