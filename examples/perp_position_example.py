"""
Position Example - Open, amend and close a leveraged position.

This example demonstrates how to:
1. Validate a position before submitting it
2. Open it through the perpetuals client chosen from the environment
3. Inspect liquidation price and PnL at a few mark prices
4. Set take profit / stop loss and close the position

Prerequisites:
- Optionally set DEX_PERPS_URL in .env file; otherwise positions are simulated
"""

import asyncio
import logging
from decimal import Decimal

from dex_client import (
    DexClientError,
    PositionManager,
    create_perps_client,
    validate_position,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


async def main():
    """Main example function."""
    wallet = "0x1111111111111111111111111111111111111111"
    asset = "ETH"
    collateral = Decimal("100")
    leverage = 10

    check = validate_position(asset, collateral, leverage)
    if not check.valid:
        logger.error(f"❌ {check.error}")
        return

    async with create_perps_client() as perps:
        manager = PositionManager(perps)

        try:
            position = await manager.open_position(wallet, asset, "long", collateral, leverage)
            print(f"\n📊 Opened {position.position_type.value.upper()} {position.asset}")
            print(f"   Size:  {position.size} USDC @ {position.entry_price}")
            print(f"   Simulated: {position.simulated}")

            for mark in (Decimal("2300"), Decimal("2500"), Decimal("2750")):
                metrics = manager.position_metrics(position.position_id, mark)
                print(
                    f"   mark {mark}: liq {metrics.liquidation_price:.2f}, "
                    f"pnl {metrics.unrealized_pnl:+.2f}"
                )

            await manager.update_orders(
                position.position_id,
                take_profit_price=Decimal("2900"),
                stop_loss_price=Decimal("2350"),
            )
            print("   🎯 TP 2900 / 🛑 SL 2350 set")

            result = await manager.close_position(position.position_id, wallet, mark_price=Decimal("2750"))
            print(f"\n✅ Closed with PnL {result.pnl:+.2f} USDC (tx: {result.transaction_hash or 'n/a'})")
        except DexClientError as e:
            logger.error(f"❌ Position flow failed: {e}")


if __name__ == "__main__":
    asyncio.run(main())
