"""
Risk Calculator - Leveraged position math.

Pure functions over Decimal inputs: liquidation price, unrealized PnL,
position validation and construction. No I/O and no shared state, so every
function is safe to call concurrently.

Example usage:
    from decimal import Decimal
    from dex_client.risk import liquidation_price, unrealized_pnl, validate_position

    result = validate_position("ETH", Decimal("100"), 10)
    if result.valid:
        liq = liquidation_price(Decimal("2500"), 10, is_long=True)  # 2250
        pnl = unrealized_pnl(Decimal("2500"), Decimal("2750"), Decimal("1000"), True)  # 100
"""

import logging
import uuid
from decimal import Decimal, localcontext
from typing import Optional, Union

from .catalog import get_asset, get_funding_rate
from .constants import MIN_LEVERAGE
from .errors import PositionValidationError
from .models.positions import Position, PositionType, ValidationResult
from .utils import Numeric, normalize_symbol, to_decimal

logger = logging.getLogger(__name__)


def liquidation_price(entry_price: Numeric, leverage: int, is_long: bool) -> Decimal:
    """
    Calculate the price at which losses consume the position's collateral.

    Args:
        entry_price: Position entry price
        leverage: Leverage multiplier (>= 1)
        is_long: Whether the position is long

    Returns:
        entry * (1 - 1/leverage) for longs, entry * (1 + 1/leverage) for shorts

    Raises:
        ValueError: If entry price is not positive or leverage is below 1

    Examples:
        >>> liquidation_price(Decimal("2500"), 10, True)
        Decimal('2250')
        >>> liquidation_price(Decimal("2500"), 10, False)
        Decimal('2750')
    """
    entry = to_decimal(entry_price)
    lev = to_decimal(leverage)
    if entry <= 0:
        raise ValueError(f"Entry price must be positive, got {entry_price}")
    if lev < MIN_LEVERAGE:
        raise ValueError(f"Leverage must be at least {MIN_LEVERAGE}, got {leverage}")

    # Keep enough digits that entry / leverage never rounds away
    with localcontext() as ctx:
        ctx.prec += max(lev.adjusted(), 0) + 2
        cushion = entry / lev
        if is_long:
            return entry - cushion
        return entry + cushion


def unrealized_pnl(
    entry_price: Numeric,
    current_price: Numeric,
    size: Numeric,
    is_long: bool,
) -> Decimal:
    """
    Calculate unrealized profit/loss of a position.

    Raises:
        ValueError: If entry price is not positive
    """
    entry = to_decimal(entry_price)
    if entry <= 0:
        raise ValueError(f"Entry price must be positive, got {entry_price}")

    move = (to_decimal(current_price) - entry) / entry
    if not is_long:
        move = -move
    return to_decimal(size) * move


def position_size(collateral: Numeric, leverage: int) -> Decimal:
    """Notional size of a position: collateral * leverage."""
    return to_decimal(collateral) * to_decimal(leverage)


def validate_position(asset: str, collateral: Numeric, leverage: Union[int, Numeric]) -> ValidationResult:
    """
    Validate position parameters against the asset's limits.

    Must run before any size or liquidation computation. Never raises.
    """
    listed = get_asset(asset) if isinstance(asset, str) else None
    if listed is None:
        return ValidationResult.fail(f"Asset {asset} not supported")

    try:
        collateral_value = to_decimal(collateral)
    except ValueError:
        return ValidationResult.fail("Invalid collateral amount")

    if collateral_value < listed.min_collateral:
        return ValidationResult.fail(
            f"Minimum collateral is {listed.min_collateral} USDC"
        )

    try:
        leverage_value = to_decimal(leverage)
    except ValueError:
        leverage_value = None

    if (
        leverage_value is None
        or leverage_value != leverage_value.to_integral_value()
        or leverage_value < MIN_LEVERAGE
        or leverage_value > listed.max_leverage
    ):
        return ValidationResult.fail(
            f"Invalid leverage. Max for {listed.symbol} is {listed.max_leverage}x"
        )

    return ValidationResult.ok()


def validate_exit_prices(
    entry_price: Numeric,
    is_long: bool,
    take_profit_price: Optional[Numeric] = None,
    stop_loss_price: Optional[Numeric] = None,
) -> ValidationResult:
    """Check TP/SL sit on the correct sides of entry (long: SL < entry < TP)."""
    entry = to_decimal(entry_price)
    try:
        tp = to_decimal(take_profit_price) if take_profit_price is not None else None
        sl = to_decimal(stop_loss_price) if stop_loss_price is not None else None
    except ValueError:
        return ValidationResult.fail("Invalid take profit or stop loss price")

    for label, price in (("Take profit", tp), ("Stop loss", sl)):
        if price is not None and price <= 0:
            return ValidationResult.fail(f"{label} price must be positive")

    if is_long:
        if tp is not None and tp <= entry:
            return ValidationResult.fail(f"Take profit must be above entry {entry} for LONG")
        if sl is not None and sl >= entry:
            return ValidationResult.fail(f"Stop loss must be below entry {entry} for LONG")
    else:
        if tp is not None and tp >= entry:
            return ValidationResult.fail(f"Take profit must be below entry {entry} for SHORT")
        if sl is not None and sl <= entry:
            return ValidationResult.fail(f"Stop loss must be above entry {entry} for SHORT")

    return ValidationResult.ok()


def build_position(
    asset: str,
    position_type: Union[PositionType, str],
    collateral: Numeric,
    leverage: int,
    take_profit_price: Optional[Numeric] = None,
    stop_loss_price: Optional[Numeric] = None,
    entry_price: Optional[Numeric] = None,
) -> Position:
    """
    Validate inputs and build a position at the asset's reference price.

    Raises:
        PositionValidationError: If any parameter fails validation
        ValueError: If position_type is not long/short
    """
    result = validate_position(asset, collateral, leverage)
    if not result.valid:
        raise PositionValidationError(result)

    side = PositionType.parse(position_type)
    symbol = normalize_symbol(asset)
    entry = to_decimal(entry_price) if entry_price is not None else get_asset(symbol).price

    exits = validate_exit_prices(entry, side.is_long, take_profit_price, stop_loss_price)
    if not exits.valid:
        raise PositionValidationError(exits)

    collateral_value = to_decimal(collateral)
    lev = int(to_decimal(leverage))
    position = Position(
        position_id=uuid.uuid4().hex,
        asset=symbol,
        position_type=side,
        collateral=collateral_value,
        leverage=lev,
        entry_price=entry,
        size=position_size(collateral_value, lev),
        take_profit_price=to_decimal(take_profit_price) if take_profit_price is not None else None,
        stop_loss_price=to_decimal(stop_loss_price) if stop_loss_price is not None else None,
    )

    logger.debug(
        f"Built {side.value.upper()} {symbol} position: collateral={collateral_value}, "
        f"leverage={lev}x, size={position.size}, entry={entry}"
    )
    return position


def estimate_funding_fee(size: Numeric, asset: str, hours: Numeric = 1) -> Decimal:
    """Funding cost of holding a position of the given size for some hours."""
    return to_decimal(size) * get_funding_rate(asset) * to_decimal(hours)
