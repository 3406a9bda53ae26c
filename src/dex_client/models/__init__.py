"""
Data models for the DEX client.

This package contains all data structures used throughout the DEX client,
following the state-first principle with immutable data structures.
"""

from .config import ConnectionConfig, RetryConfig
from .market import (
    Asset,
    Token,
    Quote,
    QuoteSource,
    RouteResult,
    SwapTransaction,
    PreparedSwap,
    SwapForm,
)
from .positions import (
    PositionType,
    ValidationResult,
    Position,
    PositionMetrics,
    PositionConfirmation,
    CloseConfirmation,
    OrderUpdateConfirmation,
)
from .assistant import PromptResult, ChatResponse

__all__ = [
    # Configuration
    "ConnectionConfig",
    "RetryConfig",
    # Market
    "Asset",
    "Token",
    "Quote",
    "QuoteSource",
    "RouteResult",
    "SwapTransaction",
    "PreparedSwap",
    "SwapForm",
    # Positions
    "PositionType",
    "ValidationResult",
    "Position",
    "PositionMetrics",
    "PositionConfirmation",
    "CloseConfirmation",
    "OrderUpdateConfirmation",
    # Assistant
    "PromptResult",
    "ChatResponse",
]
