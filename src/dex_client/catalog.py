"""
Static market catalog.

Read-only lookup tables for perpetual assets, swap tokens, fallback swap
rates, reference USD prices and funding rates.
"""

from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Optional

from .constants import DEFAULT_FUNDING_RATE
from .errors import UnknownTokenError
from .models.market import Asset, Token
from .utils import normalize_symbol


ASSETS: Mapping[str, Asset] = MappingProxyType({
    "ETH": Asset(symbol="ETH", name="Ethereum", price=Decimal("2500"), max_leverage=50, min_collateral=Decimal("10")),
    "BTC": Asset(symbol="BTC", name="Bitcoin", price=Decimal("42000"), max_leverage=50, min_collateral=Decimal("10")),
    "SOL": Asset(symbol="SOL", name="Solana", price=Decimal("85"), max_leverage=20, min_collateral=Decimal("10")),
    "ARB": Asset(symbol="ARB", name="Arbitrum", price=Decimal("1.5"), max_leverage=10, min_collateral=Decimal("10")),
})

TOKENS: Mapping[str, Token] = MappingProxyType({
    "ETH": Token(symbol="ETH", address="0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", decimals=18, chain_id=1),
    "USDC": Token(symbol="USDC", address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", decimals=6, chain_id=1),
    "USDT": Token(symbol="USDT", address="0xdAC17F958D2ee523a2206206994597C13D831ec7", decimals=6, chain_id=1),
    "DAI": Token(symbol="DAI", address="0x6B175474E89094C44Da98b954EedeAC495271d0F", decimals=18, chain_id=1),
    "WBTC": Token(symbol="WBTC", address="0x2260FAC5E5542a773Aa44fBCfeDd86c15aF1ba47", decimals=8, chain_id=1),
})

# Keyed "IN-OUT"; unknown pairs trade at 1
FALLBACK_RATES: Mapping[str, Decimal] = MappingProxyType({
    "USDC-ETH": Decimal("0.0005"),
    "ETH-USDC": Decimal("2000"),
    "USDC-USDT": Decimal("0.99"),
    "USDC-DAI": Decimal("0.98"),
})

TOKEN_PRICES: Mapping[str, Decimal] = MappingProxyType({
    "ETH": Decimal("2500"),
    "USDC": Decimal("1"),
    "USDT": Decimal("1"),
    "DAI": Decimal("0.98"),
    "WBTC": Decimal("42000"),
})

# Hourly funding rates
FUNDING_RATES: Mapping[str, Decimal] = MappingProxyType({
    "ETH": Decimal("0.0001"),
    "BTC": Decimal("0.00008"),
    "SOL": Decimal("0.00012"),
    "ARB": Decimal("0.0005"),
})


def get_asset(symbol: str) -> Optional[Asset]:
    """Get perpetuals asset by symbol."""
    return ASSETS.get(normalize_symbol(symbol))


def get_token(symbol: str) -> Optional[Token]:
    """Get swap token by symbol."""
    return TOKENS.get(normalize_symbol(symbol))


def pair_key(token_in: str, token_out: str) -> str:
    return f"{normalize_symbol(token_in)}-{normalize_symbol(token_out)}"


def get_fallback_rate(token_in: str, token_out: str) -> Decimal:
    """Static exchange rate for a pair, 1 when the pair is not listed."""
    return FALLBACK_RATES.get(pair_key(token_in, token_out), Decimal("1"))


def get_token_price(symbol: str) -> Decimal:
    """Reference USD price of a token, 0 when unknown."""
    return TOKEN_PRICES.get(normalize_symbol(symbol), Decimal("0"))


def get_spot_price(token_in: str, token_out: str) -> Decimal:
    """Units of token_out per unit of token_in at reference prices (0 if unpriced)."""
    price_in = get_token_price(token_in)
    price_out = get_token_price(token_out)
    if price_in == 0 or price_out == 0:
        return Decimal("0")
    return price_in / price_out


def get_funding_rate(asset: str) -> Decimal:
    """Hourly funding rate for holding a position on the asset."""
    return FUNDING_RATES.get(normalize_symbol(asset), DEFAULT_FUNDING_RATE)


def require_token(symbol: str) -> Token:
    """Get swap token by symbol, raising UnknownTokenError when missing."""
    token = get_token(symbol)
    if token is None:
        raise UnknownTokenError(f"Token {symbol} not supported")
    return token
