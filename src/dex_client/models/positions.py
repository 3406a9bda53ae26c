"""
Position-related models for the DEX client.

Immutable data structures for leveraged perpetual positions and
protocol confirmations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class PositionType(Enum):
    """Position direction enumeration."""
    LONG = "long"
    SHORT = "short"

    @property
    def is_long(self) -> bool:
        return self is PositionType.LONG

    @classmethod
    def parse(cls, value: Union["PositionType", str]) -> "PositionType":
        """Accept an enum member or a case-insensitive "long"/"short"."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ValueError(f"Position type must be 'long' or 'short', got {value!r}")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of an input validation."""
    valid: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, error: str) -> "ValidationResult":
        return cls(valid=False, error=error)


@dataclass(frozen=True)
class Position:
    """
    Leveraged perpetual position.

    Attributes:
        position_id: Opaque local key, only used to address the position in a book
        asset: Asset symbol (e.g., "ETH")
        position_type: LONG or SHORT
        collateral: Collateral in USDC
        leverage: Leverage multiplier
        entry_price: Entry price
        size: Position size, always collateral * leverage
        take_profit_price: Optional take profit trigger
        stop_loss_price: Optional stop loss trigger
        created_at: ISO timestamp when the position was built
        protocol_position_id: Id assigned by the perpetuals protocol, if any
        transaction_hash: Hash of the opening transaction, if any
        simulated: True when no protocol confirmed the position
    """
    position_id: str
    asset: str
    position_type: PositionType
    collateral: Decimal
    leverage: int
    entry_price: Decimal
    size: Decimal
    take_profit_price: Optional[Decimal] = None
    stop_loss_price: Optional[Decimal] = None
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    protocol_position_id: Optional[str] = None
    transaction_hash: Optional[str] = None
    simulated: bool = True

    @property
    def is_long(self) -> bool:
        return self.position_type.is_long

    def to_dict(self) -> dict:
        """Convert position to dictionary for serialization."""
        return {
            "position_id": self.position_id,
            "asset": self.asset,
            "position_type": self.position_type.value,
            "collateral": str(self.collateral),
            "leverage": self.leverage,
            "entry_price": str(self.entry_price),
            "size": str(self.size),
            "take_profit_price": str(self.take_profit_price) if self.take_profit_price else None,
            "stop_loss_price": str(self.stop_loss_price) if self.stop_loss_price else None,
            "created_at": self.created_at,
            "protocol_position_id": self.protocol_position_id,
            "transaction_hash": self.transaction_hash,
            "simulated": self.simulated,
        }


@dataclass(frozen=True)
class PositionMetrics:
    """Risk figures for a position at a given mark price."""
    position_id: str
    mark_price: Decimal
    liquidation_price: Decimal
    unrealized_pnl: Decimal


@dataclass(frozen=True)
class PositionConfirmation:
    """Protocol answer to an open request."""
    entry_price: Decimal
    size: Decimal
    protocol_position_id: Optional[str] = None
    transaction_hash: Optional[str] = None
    simulated: bool = False


@dataclass(frozen=True)
class CloseConfirmation:
    """Result of closing a position.

    Attributes:
        position_id: Local position key
        pnl: Realized profit/loss in USDC
        transaction_hash: Hash of the closing transaction (None when simulated)
        simulated: True when no protocol closed the position
    """
    position_id: str
    pnl: Decimal
    transaction_hash: Optional[str] = None
    simulated: bool = False


@dataclass(frozen=True)
class OrderUpdateConfirmation:
    """Result of replacing a position's take profit / stop loss."""
    position_id: str
    take_profit_price: Optional[Decimal] = None
    stop_loss_price: Optional[Decimal] = None
    transaction_hash: Optional[str] = None
    simulated: bool = False
