"""
run_analytics.py
Command line access to the vault analytics engine.
Loads a JSON export of vaults/transactions/snapshots and prints results as JSON.

Examples:
  python run_analytics.py --data data/vaults.json vault VAULT_ID
  python run_analytics.py --data data/vaults.json portfolio OWNER --network testnet
  python run_analytics.py --data data/vaults.json --live-price history VAULT_ID --days 7
"""
import sys
import json
import asyncio
import argparse

from py_vault_data import StroopConverter, VaultNotFoundError, fetch_coingecko_price, load_store
from py_analytics import build_engine, load_config, log_event


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Vault & Portfolio Analytics")
    parser.add_argument("--data", required=True, help="JSON export with vaults, transactions and snapshots")
    parser.add_argument("--config", default="config/analytics.json", help="Engine configuration file")
    price = parser.add_mutually_exclusive_group()
    price.add_argument("--price", type=float, default=None, help="Static fiat price per token")
    price.add_argument("--live-price", action="store_true", help="Fetch the token price from CoinGecko")

    sub = parser.add_subparsers(dest="command", required=True)

    for name in ("vault", "detail"):
        p = sub.add_parser(name, help=f"{name} analytics for one vault")
        p.add_argument("vault_id")

    p = sub.add_parser("history", help="Performance chart for one vault")
    p.add_argument("vault_id")
    p.add_argument("--days", type=int, default=30)

    for name in ("portfolio", "allocation", "breakdown", "portfolio-history"):
        p = sub.add_parser(name, help=f"Portfolio {name} for an owner")
        p.add_argument("owner")
        p.add_argument("--network", default="testnet")
        if name == "portfolio-history":
            p.add_argument("--days", type=int, default=30)

    return parser


async def run_command(engine, args) -> object:
    if args.command == "vault":
        return (await engine.get_vault_analytics(args.vault_id)).to_dict()
    if args.command == "detail":
        return (await engine.get_detailed_vault_analytics(args.vault_id)).to_dict()
    if args.command == "history":
        return [p.to_dict() for p in await engine.get_historical_performance(args.vault_id, args.days)]
    if args.command == "portfolio":
        return (await engine.get_portfolio_analytics(args.owner, args.network)).to_dict()
    if args.command == "allocation":
        return [s.to_dict() for s in await engine.get_portfolio_allocation(args.owner, args.network)]
    if args.command == "breakdown":
        return [r.to_dict() for r in await engine.get_vault_breakdown(args.owner, args.network)]
    if args.command == "portfolio-history":
        points = await engine.get_portfolio_performance_history(args.owner, args.network, args.days)
        return [p.to_dict() for p in points]
    raise ValueError(f"Unknown command: {args.command}")


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    config = load_config(args.config)
    store = load_store(args.data)

    # 1. Price source
    if args.live_price:
        converter = StroopConverter(lambda: fetch_coingecko_price(timeout=config.request_timeout),
                                   config.units_per_token, config.price_ttl_seconds)
    else:
        converter = StroopConverter.with_static_price(args.price if args.price is not None else 0.0,
                                                     config.units_per_token)

    engine = build_engine(store, converter, config=config)
    log_event("CLI", f"Command: {args.command}")

    # 2. Execution
    try:
        result = asyncio.run(run_command(engine, args))
    except VaultNotFoundError as e:
        print(json.dumps({"success": False, "message": str(e), "error_code": "VAULT_NOT_FOUND"}))
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
