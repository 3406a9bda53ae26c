#!/usr/bin/env python
"""
Run Desk - Command-line entry point for quotes and position previews.

Location: run_desk.py
Purpose: Quote a swap or preview a leveraged position from the terminal
Relevant files: src/dex_client/quotes.py, src/dex_client/risk.py, config.yml

Usage:
    python run_desk.py quote --token_in USDC --token_out ETH --amount 100
    python run_desk.py position --asset ETH --type short --collateral 50 --leverage 20
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import yaml


def load_config():
    """Load configuration from config.yml"""
    config_path = Path(__file__).parent / "config.yml"
    if config_path.exists():
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    return {}


def build_parser(config: dict) -> argparse.ArgumentParser:
    swap_config = config.get("swap", {})
    position_config = config.get("position", {})
    logging_config = config.get("logging", {})

    parser = argparse.ArgumentParser(description="DEX desk: swap quotes and position previews")
    parser.add_argument("--log_level", default=logging_config.get("level", "INFO"))
    subparsers = parser.add_subparsers(dest="command", required=True)

    quote = subparsers.add_parser("quote", help="Quote a token swap")
    quote.add_argument("--token_in", default=swap_config.get("token_in", "USDC"))
    quote.add_argument("--token_out", default=swap_config.get("token_out", "ETH"))
    quote.add_argument("--amount", default=str(swap_config.get("amount", "100")))
    quote.add_argument(
        "--fallback_on_no_route",
        action="store_true",
        default=bool(swap_config.get("fallback_on_no_route", False)),
    )

    position = subparsers.add_parser("position", help="Preview a leveraged position")
    position.add_argument("--asset", default=position_config.get("asset", "ETH"))
    position.add_argument("--type", dest="position_type", default=position_config.get("type", "long"))
    position.add_argument("--collateral", default=str(position_config.get("collateral", "100")))
    position.add_argument("--leverage", type=int, default=int(position_config.get("leverage", 1)))
    position.add_argument("--mark_price", default=None)
    return parser


async def run_quote(args) -> int:
    from dex_client import DexClientError, QuoteEstimator, create_router_client

    async with create_router_client() as router:
        estimator = QuoteEstimator(router, fallback_on_no_route=args.fallback_on_no_route)
        try:
            quote = await estimator.quote(args.token_in, args.token_out, args.amount)
        except DexClientError as e:
            print(f"❌ Quote failed: {e}")
            return 1

    print(f"💱 {quote.amount_in} {quote.token_in} -> {quote.amount_out_str} {quote.token_out}")
    print(f"📉 Price impact: {quote.price_impact:.4f}%")
    print(f"🔎 Source: {quote.source.value}")
    return 0


def run_position(args) -> int:
    from dex_client import PositionValidationError, build_position, estimate_funding_fee
    from dex_client.risk import liquidation_price, unrealized_pnl

    try:
        position = build_position(args.asset, args.position_type, args.collateral, args.leverage)
    except (PositionValidationError, ValueError) as e:
        print(f"❌ Invalid position: {e}")
        return 1

    mark = args.mark_price if args.mark_price is not None else position.entry_price
    liq = liquidation_price(position.entry_price, position.leverage, position.is_long)
    pnl = unrealized_pnl(position.entry_price, mark, position.size, position.is_long)

    print(f"📊 {position.position_type.value.upper()} {position.asset} {position.leverage}x")
    print(f"   Size:              {position.size:.2f} USDC")
    print(f"   Entry price:       {position.entry_price}")
    print(f"   Liquidation price: {liq:.2f}")
    print(f"   PnL @ {mark}:      {pnl:.2f}")
    print(f"   Funding / hour:    {estimate_funding_fee(position.size, position.asset):.4f}")
    return 0


def main():
    config = load_config()
    args = build_parser(config).parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if args.command == "quote":
        sys.exit(asyncio.run(run_quote(args)))
    sys.exit(run_position(args))


if __name__ == "__main__":
    main()
