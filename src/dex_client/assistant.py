"""
Metered AI-assistant access.

`MeteredAssistant` charges a wallet a flat fee per prompt out of an injected
`BalanceStore` and forwards the prompt to an `AssistantClient`:

- `HttpAssistantClient` posts prompts to the assistant service, passing the
  micropayment parameters (chain, token, amount) along.
- `FallbackAssistantClient` echoes what would have been processed and is
  flagged `simulated=True`; it never invents transaction hashes.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import aiohttp

from .balances import BalanceStore
from .config import Settings
from .constants import (
    ASSISTANT_INITIAL_BALANCE,
    ASSISTANT_PAYMENT_TOKEN,
    ASSISTANT_REQUEST_COST,
    DEFAULT_PAYMENT_CHAIN_ID,
)
from .errors import AssistantError
from .http_client import HttpClientError, HttpServiceClient
from .models.assistant import ChatResponse, PromptResult
from .models.config import ConnectionConfig, RetryConfig
from .utils import Numeric, to_decimal

logger = logging.getLogger(__name__)


def _require_prompt(prompt: str) -> str:
    if not prompt or not prompt.strip():
        raise ValueError("Prompt cannot be empty")
    return prompt.strip()


class AssistantClient(ABC):
    """Capability interface for the assistant service."""

    @abstractmethod
    async def execute_prompt(self, prompt: str, chain_id: Optional[int] = None) -> PromptResult:
        """Run a natural-language prompt and wait for its result."""

    async def close(self) -> None:
        """Release any held resources."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class FallbackAssistantClient(AssistantClient):
    """Assistant stand-in used when no assistant service is configured."""

    async def execute_prompt(self, prompt: str, chain_id: Optional[int] = None) -> PromptResult:
        prompt = _require_prompt(prompt)
        logger.info(f"[Assistant] Using fallback (service not configured): {prompt}")
        return PromptResult(
            success=True,
            message=f'[Fallback] Assistant would process: "{prompt}"',
            raw={"fallback": True, "prompt": prompt},
            simulated=True,
        )


class HttpAssistantClient(HttpServiceClient, AssistantClient):
    """Client for the assistant service prompt endpoint."""

    def __init__(
        self,
        config: ConnectionConfig,
        retry_config: Optional[RetryConfig] = None,
        payment_chain_id: int = DEFAULT_PAYMENT_CHAIN_ID,
        payment_amount: Numeric = ASSISTANT_REQUEST_COST,
    ):
        # Prompts may execute transactions; never resend one automatically
        super().__init__(config, retry_config or RetryConfig(max_retries=0))
        self._payment_chain_id = payment_chain_id
        self._payment_amount = to_decimal(payment_amount)

    async def execute_prompt(self, prompt: str, chain_id: Optional[int] = None) -> PromptResult:
        prompt = _require_prompt(prompt)
        payload = {
            "prompt": prompt,
            "chainId": str(chain_id or self._payment_chain_id),
            "paymentToken": ASSISTANT_PAYMENT_TOKEN,
            "paymentAmount": f"{self._payment_amount:.2f}",
        }

        try:
            response = await self._request("POST", "/prompt", data=payload)
        except (HttpClientError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise AssistantError(f"Assistant request failed: {e}") from e

        if not isinstance(response, dict):
            raise AssistantError(f"Unexpected assistant response: {response!r}")

        message = response.get("message") or response.get("response")
        return PromptResult(
            success=bool(response.get("success", True)),
            message=message if message is not None else str(response),
            transaction_hash=response.get("transactionHash") or response.get("txHash"),
            raw=response,
        )


class MeteredAssistant:
    """Charges a per-request fee before forwarding prompts to the assistant."""

    def __init__(
        self,
        client: AssistantClient,
        store: BalanceStore,
        request_cost: Numeric = ASSISTANT_REQUEST_COST,
        initial_balance: Numeric = ASSISTANT_INITIAL_BALANCE,
    ):
        """
        Args:
            client: Assistant variant chosen at startup
            store: Balance store holding per-wallet spendable balances
            request_cost: Fee charged per prompt
            initial_balance: Balance granted to a wallet the store has never seen
        """
        self._client = client
        self._store = store
        self._request_cost = to_decimal(request_cost)
        self._initial_balance = to_decimal(initial_balance)

    async def ask(self, prompt: str, wallet_address: str, chain_id: Optional[int] = None) -> ChatResponse:
        """
        Charge the wallet and run the prompt.

        Raises:
            ValueError: If prompt or wallet address is missing
            InsufficientBalanceError: If the wallet cannot cover the fee
            AssistantError: If the assistant fails (the fee is refunded)
        """
        prompt = _require_prompt(prompt)
        if not wallet_address:
            raise ValueError("Wallet address is required")

        # Stores are synchronous and may block; run them in worker threads
        if self._initial_balance > 0:
            opened = await asyncio.to_thread(self._store.open, wallet_address, self._initial_balance)
            if opened:
                logger.info(f"Opened assistant balance for {wallet_address}: {self._initial_balance}")

        new_balance = await asyncio.to_thread(self._store.debit, wallet_address, self._request_cost)

        try:
            result = await self._client.execute_prompt(prompt, chain_id=chain_id)
        except Exception:
            await asyncio.to_thread(self._store.credit, wallet_address, self._request_cost)
            logger.error(f"Assistant request failed for {wallet_address}; refunded {self._request_cost}")
            raise

        return ChatResponse(
            success=result.success,
            response=result.message,
            transaction_executed=bool(result.transaction_hash),
            transaction_hash=result.transaction_hash,
            new_balance=new_balance,
            simulated=result.simulated,
        )


def create_assistant_client(settings: Optional[Settings] = None) -> AssistantClient:
    """Pick the assistant variant once, from configuration."""
    settings = settings or Settings.from_env()
    connection = settings.assistant_connection()
    if connection is None:
        logger.warning("DEX_ASSISTANT_URL not set; assistant prompts will use fallback responses")
        return FallbackAssistantClient()

    logger.info(f"Using assistant service at {connection.normalized_url}")
    return HttpAssistantClient(connection, payment_chain_id=settings.payment_chain_id)
