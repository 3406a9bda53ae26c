"""
DEX Client - Python core for a demo decentralized-exchange front end.

This package provides leveraged-position risk math, swap quoting with an
explicit fallback path, and async clients for the swap router, perpetuals
gateway and metered AI assistant.
"""

from .models import (
    # Configuration
    ConnectionConfig,
    RetryConfig,
    # Market
    Asset,
    Token,
    Quote,
    QuoteSource,
    PreparedSwap,
    SwapForm,
    # Positions
    PositionType,
    ValidationResult,
    Position,
    PositionMetrics,
    CloseConfirmation,
    # Assistant
    ChatResponse,
)
from .config import Settings
from .errors import (
    DexClientError,
    UnknownTokenError,
    InvalidAmountError,
    PositionValidationError,
    PositionNotFoundError,
    InsufficientBalanceError,
    RouterError,
    RouterNotConfiguredError,
    RouterUnavailableError,
    NoRouteError,
    PerpsError,
    AssistantError,
)
from .risk import (
    liquidation_price,
    unrealized_pnl,
    validate_position,
    validate_exit_prices,
    position_size,
    build_position,
    estimate_funding_fee,
)
from .quotes import QuoteEstimator, price_impact, validate_amount, fallback_quote
from .router_client import RouterClient, HttpRouterClient, FallbackRouterClient, create_router_client
from .swaps import SwapService
from .perps_client import PerpsClient, HttpPerpsClient, FallbackPerpsClient, create_perps_client
from .positions import PositionManager
from .balances import BalanceStore, InMemoryBalanceStore, SqlBalanceStore
from .assistant import (
    AssistantClient,
    HttpAssistantClient,
    FallbackAssistantClient,
    MeteredAssistant,
    create_assistant_client,
)
from .monitoring import PerformanceMonitor

__all__ = [
    # Risk Calculator
    "liquidation_price",
    "unrealized_pnl",
    "validate_position",
    "validate_exit_prices",
    "position_size",
    "build_position",
    "estimate_funding_fee",
    # Quote Estimator
    "QuoteEstimator",
    "price_impact",
    "validate_amount",
    "fallback_quote",
    # Collaborators
    "RouterClient",
    "HttpRouterClient",
    "FallbackRouterClient",
    "create_router_client",
    "SwapService",
    "PerpsClient",
    "HttpPerpsClient",
    "FallbackPerpsClient",
    "create_perps_client",
    "PositionManager",
    "BalanceStore",
    "InMemoryBalanceStore",
    "SqlBalanceStore",
    "AssistantClient",
    "HttpAssistantClient",
    "FallbackAssistantClient",
    "MeteredAssistant",
    "create_assistant_client",
    "PerformanceMonitor",
    # Configuration
    "Settings",
    "ConnectionConfig",
    "RetryConfig",
    # Models
    "Asset",
    "Token",
    "Quote",
    "QuoteSource",
    "PreparedSwap",
    "SwapForm",
    "PositionType",
    "ValidationResult",
    "Position",
    "PositionMetrics",
    "CloseConfirmation",
    "ChatResponse",
    # Errors
    "DexClientError",
    "UnknownTokenError",
    "InvalidAmountError",
    "PositionValidationError",
    "PositionNotFoundError",
    "InsufficientBalanceError",
    "RouterError",
    "RouterNotConfiguredError",
    "RouterUnavailableError",
    "NoRouteError",
    "PerpsError",
    "AssistantError",
]
