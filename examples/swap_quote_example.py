"""
Swap Example - Quote a swap and prepare the transaction to sign.

This example demonstrates how to:
1. Pick the router variant from environment variables
2. Quote an exact-input swap (router first, fallback rate table otherwise)
3. Prepare the unsigned swap transaction for a wallet

Prerequisites:
- Optionally set DEX_ROUTER_URL (and DEX_ROUTER_API_KEY) in .env file
- Without a router the quote comes from the fallback table and no transaction is built
"""

import asyncio
import logging

from dex_client import DexClientError, QuoteEstimator, SwapService, create_router_client
from dex_client.monitoring import PerformanceMonitor

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


async def main():
    """Main example function."""
    # Configuration
    token_in = "USDC"
    token_out = "ETH"
    amount = "250"
    wallet = "0x1111111111111111111111111111111111111111"

    monitor = PerformanceMonitor()

    async with create_router_client() as router:
        estimator = QuoteEstimator(router, monitor=monitor)
        service = SwapService(router, estimator)

        try:
            prepared = await service.prepare_swap(token_in, token_out, amount, wallet)
        except DexClientError as e:
            logger.error(f"❌ Swap preparation failed: {e}")
            return

    quote = prepared.quote
    print(f"\n💱 {quote.amount_in} {quote.token_in} -> {quote.amount_out_str} {quote.token_out}")
    print(f"   Price impact: {quote.price_impact:.4f}%")
    print(f"   Source:       {quote.source.value}")

    if prepared.transaction:
        print(f"   To:           {prepared.transaction.to}")
        print(f"   Value:        {prepared.transaction.value}")
        print(f"   Calldata:     {prepared.transaction.calldata[:42]}...")
    else:
        print("   ⚠️  No transaction available (quote is an estimate only)")

    stats = monitor.get_operation_stats("router", "quote")
    print(f"\n📈 Router quotes: {stats['count']} call(s), fallback rate {stats['fallback_rate']:.0%}")


if __name__ == "__main__":
    asyncio.run(main())
