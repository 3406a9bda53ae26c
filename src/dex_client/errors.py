"""
Exception hierarchy for the DEX client.

Routing failures are split by kind so callers can tell a missing or
unreachable router (safe to fall back) from a pair that has no route.
"""

from typing import Optional

from .models.positions import ValidationResult


class DexClientError(Exception):
    """Base exception for DEX client errors."""
    pass


class UnknownTokenError(DexClientError):
    """Raised when a token symbol is not in the token catalog."""
    pass


class InvalidAmountError(DexClientError):
    """Raised when a swap amount fails validation."""
    pass


class PositionValidationError(DexClientError):
    """Raised when position parameters fail validation."""

    def __init__(self, result: ValidationResult):
        super().__init__(result.error or "Invalid position")
        self.result = result


class PositionNotFoundError(DexClientError):
    """Raised when a position id is not in the book."""
    pass


class InsufficientBalanceError(DexClientError):
    """Raised when a wallet cannot cover a metered request."""

    def __init__(self, message: str, balance: Optional[object] = None, required: Optional[object] = None):
        super().__init__(message)
        self.balance = balance
        self.required = required


# Routing errors
class RouterError(DexClientError):
    """Base exception for swap routing failures."""
    pass


class RouterNotConfiguredError(RouterError):
    """No routing service is configured."""
    pass


class RouterUnavailableError(RouterError):
    """Routing service could not be reached or could not price the tokens."""
    pass


class NoRouteError(RouterError):
    """Routing service answered but found no route for the pair."""
    pass


# Collaborator errors
class PerpsError(DexClientError):
    """Raised when the perpetuals gateway rejects or fails a request."""
    pass


class AssistantError(DexClientError):
    """Raised when the assistant service fails to process a prompt."""
    pass
