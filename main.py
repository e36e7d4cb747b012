#!/usr/bin/env python3
"""Frontier Analyst: portfolio statistics & efficient frontier.

Usage:
    python main.py optimize AAPL:40 MSFT:30 JNJ:30            # 1y lookback
    python main.py optimize AAPL:50 NESN.SW:50 --range 5y     # longer history
    python main.py optimize AAPL:50 MSFT:50 --json --cloud    # full JSON incl. samples
    python main.py stats AAPL MSFT GOOG --range 2y            # means, vols, correlation
"""

import argparse
import json
import sys

from frontier.analysis.optimizer import PortfolioOptimizer
from frontier.config import SETTINGS
from frontier.errors import FrontierError
from frontier.models import AssetPosition, TimeRange
from frontier.utils.logger import setup_logger

logger = setup_logger("main", SETTINGS.get("app", {}).get("log_level", "INFO"))


def parse_position(text: str) -> AssetPosition:
    """'AAPL:40' -> AssetPosition('AAPL', 40.0)."""
    ticker, sep, weight = text.rpartition(":")
    if not sep or not ticker:
        raise argparse.ArgumentTypeError(f"Expected TICKER:WEIGHT, got '{text}'")
    try:
        return AssetPosition(ticker, float(weight))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Weight must be a number in '{text}'") from None


def _pct(val: float) -> str:
    return f"{val * 100:6.2f}%"


def _print_portfolio(label: str, stats, tickers: list[str]) -> None:
    print(f"\n--- {label} ---")
    print(f"  {'return':20s}: {_pct(stats.annualized_return)}")
    print(f"  {'volatility':20s}: {_pct(stats.annualized_risk)}")
    print(f"  {'sharpe':20s}: {stats.sharpe_ratio:7.3f}")
    if stats.var95 is not None:
        print(f"  {'VaR 95%':20s}: {_pct(stats.var95)}")
    if len(stats.weights) == len(tickers):
        for t, w in zip(tickers, stats.weights):
            print(f"    {t:18s}: {_pct(w)}")


# ============================================================
# COMMANDS
# ============================================================

def cmd_optimize(args):
    """Full run: frontier, extremes, current portfolio, risk contributions."""
    optimizer = PortfolioOptimizer(trials=args.trials)
    result = optimizer.run(args.positions, args.range)

    if args.json:
        print(json.dumps(result.to_dict(include_cloud=args.cloud), indent=2))
        return

    tickers = list(result.assets)
    print(f"\n{'='*50}")
    print(f"  Portfolio over {args.range.value}  ({len(result.frontier)} samples)")
    if result.is_simulation:
        print("  SIMULATION MODE: live data unavailable, synthetic history used")
    print(f"{'='*50}")
    for t in tickers:
        name = result.display_names.get(t)
        if name and name != t:
            print(f"  {t:10s} {name}")

    _print_portfolio("Current portfolio", result.current, tickers)
    _print_portfolio("Minimum variance", result.min_variance, tickers)
    _print_portfolio("Maximum Sharpe", result.max_sharpe, tickers)
    if result.benchmark is not None:
        _print_portfolio("Benchmark", result.benchmark, [])

    print("\n--- Risk contribution ---")
    for t, rc in zip(tickers, result.risk_contributions):
        print(f"  {t:20s}: {_pct(rc)}")


def cmd_stats(args):
    """Annualised means, volatilities and correlations only."""
    optimizer = PortfolioOptimizer(validate=False)
    tickers = [t.strip().upper() for t in args.tickers]
    bundle, stats = optimizer.statistics(tickers, args.range)
    if bundle.is_simulation:
        print("SIMULATION MODE: live data unavailable, synthetic history used")
    print(f"\n{'ticker':10s} {'return':>9s} {'vol':>9s}")
    for t, mu, vol in zip(tickers, stats.mean_annual, stats.volatilities):
        print(f"{t:10s} {_pct(mu):>9s} {_pct(vol):>9s}")
    print("\n--- Correlation ---")
    print(" " * 10 + "".join(f"{t:>9s}" for t in tickers))
    for i, t in enumerate(tickers):
        print(f"{t:10s}" + "".join(f"{c:9.3f}" for c in stats.corr[i]))


def main():
    parser = argparse.ArgumentParser(
        description="Frontier Analyst: portfolio statistics & efficient frontier",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", help="Commands")

    # optimize
    p = sub.add_parser("optimize", help="Efficient frontier for a portfolio")
    p.add_argument("positions", nargs="+", type=parse_position, help="TICKER:WEIGHT pairs")
    p.add_argument("--range", type=TimeRange.parse, default=TimeRange.ONE_YEAR,
                   help="Lookback: 1y, 2y or 5y (default: 1y)")
    p.add_argument("--trials", type=int, default=None, help="Monte-Carlo samples")
    p.add_argument("--json", action="store_true", help="Print JSON instead of text")
    p.add_argument("--cloud", action="store_true", help="Include every sample in JSON output")
    p.set_defaults(func=cmd_optimize)

    # stats
    p = sub.add_parser("stats", help="Return statistics and correlation")
    p.add_argument("tickers", nargs="+")
    p.add_argument("--range", type=TimeRange.parse, default=TimeRange.ONE_YEAR)
    p.set_defaults(func=cmd_stats)

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)
    try:
        args.func(args)
    except FrontierError as e:
        logger.error("%s", e)
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
