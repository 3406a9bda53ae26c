"""
Assistant-related models for the DEX client.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class PromptResult:
    """Answer from the assistant collaborator."""
    success: bool
    message: str
    transaction_hash: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)
    simulated: bool = False


@dataclass(frozen=True)
class ChatResponse:
    """Metered assistant response returned to the caller."""
    success: bool
    response: str
    transaction_executed: bool
    new_balance: Decimal
    transaction_hash: Optional[str] = None
    simulated: bool = False

    def to_dict(self) -> dict:
        """Convert response to dictionary for serialization."""
        return {
            "success": self.success,
            "response": self.response,
            "transactionExecuted": self.transaction_executed,
            "transactionHash": self.transaction_hash,
            "newBalance": f"{self.new_balance:.2f}",
        }
