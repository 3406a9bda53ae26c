"""
Constants for the DEX client.
"""

from decimal import Decimal

# Collaborator Configuration
DEFAULT_TIMEOUT = 30.0
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_API_KEY_HEADER = "x-api-key"

# Chains
DEFAULT_CHAIN_ID = 1  # Ethereum mainnet, swap routing
DEFAULT_PAYMENT_CHAIN_ID = 8453  # Base, assistant micropayments

# Swaps
MIN_SWAP_AMOUNT = Decimal("0.01")
FALLBACK_QUOTE_PRECISION = 6

# Positions
MIN_LEVERAGE = 1
DEFAULT_FUNDING_RATE = Decimal("0.0001")

# Assistant metering
ASSISTANT_REQUEST_COST = Decimal("0.10")
ASSISTANT_INITIAL_BALANCE = Decimal("1000")
ASSISTANT_PAYMENT_TOKEN = "USDC"
