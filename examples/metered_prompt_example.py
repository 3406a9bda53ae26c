"""
Assistant Example - Send metered prompts to the AI assistant.

This example demonstrates how to:
1. Pick the assistant variant from environment variables
2. Keep per-wallet balances in a SQLite-backed store
3. Charge the request fee for each prompt and show the remaining balance

Prerequisites:
- Optionally set DEX_ASSISTANT_URL and DEX_ASSISTANT_API_KEY in .env file
- Optionally set DEX_DATABASE_URL (defaults to a local SQLite file)
"""

import asyncio
import logging

from dex_client import (
    DexClientError,
    MeteredAssistant,
    Settings,
    SqlBalanceStore,
    create_assistant_client,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


async def main():
    """Main example function."""
    settings = Settings.from_env()
    wallet = "0x1111111111111111111111111111111111111111"
    prompts = [
        "What is the current price of ETH?",
        "Swap 10 USDC to ETH on Base",
    ]

    store = SqlBalanceStore(settings.database_url or "sqlite:///assistant_balances.db")
    try:
        async with create_assistant_client(settings) as client:
            assistant = MeteredAssistant(client, store)

            for prompt in prompts:
                try:
                    response = await assistant.ask(prompt, wallet)
                except DexClientError as e:
                    logger.error(f"❌ Prompt failed: {e}")
                    continue

                print(f"\n🤖 {response.response}")
                if response.transaction_executed:
                    print(f"   🔗 Transaction: {response.transaction_hash}")
                print(f"   💰 Balance left: {response.new_balance:.2f} USDC")
    finally:
        store.close()


if __name__ == "__main__":
    asyncio.run(main())
