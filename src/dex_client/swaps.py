"""
Swap preparation.

Prepares exact-input swaps for client-side signing: the router supplies the
unsigned transaction from the same call that priced the quote; when the
router is missing or unreachable the caller gets a fallback quote and no
transaction. Nothing here signs or sends.
"""

import logging
from typing import Optional

from .catalog import require_token
from .errors import InvalidAmountError
from .models.market import PreparedSwap
from .quotes import QuoteEstimator, validate_amount
from .router_client import RouterClient
from .utils import Numeric

logger = logging.getLogger(__name__)


class SwapService:
    """Builds swap quotes plus unsigned transactions."""

    def __init__(self, router: RouterClient, estimator: Optional[QuoteEstimator] = None):
        self._estimator = estimator or QuoteEstimator(router)

    async def prepare_swap(
        self,
        token_in: str,
        token_out: str,
        amount_in: Numeric,
        wallet_address: str,
    ) -> PreparedSwap:
        """
        Quote a swap and fetch the transaction the wallet should sign.

        Raises:
            UnknownTokenError: If either token is not in the catalog
            InvalidAmountError: If the amount fails validation
            ValueError: If the wallet address is empty
            NoRouteError: If the router found no route
        """
        require_token(token_in)
        require_token(token_out)
        if not wallet_address:
            raise ValueError("Wallet address is required")

        validation = validate_amount(amount_in)
        if not validation.valid:
            raise InvalidAmountError(validation.error)

        quote, transaction = await self._estimator.quote_with_transaction(
            token_in, token_out, amount_in, recipient=wallet_address
        )
        if quote.is_fallback:
            logger.info(f"Swap {quote.token_in}->{quote.token_out} prepared without transaction (fallback quote)")
        elif transaction is None:
            logger.warning(f"Router returned no transaction for {quote.token_in}->{quote.token_out}")

        return PreparedSwap(quote=quote, wallet_address=wallet_address, transaction=transaction)
