#!/usr/bin/env python3
# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""
Replay backtest CLI.

Usage:
    python run_backtest.py                  # SPX, default DB and report path
    python run_backtest.py SPY --db market_data.db --output out/spy.json
    python run_backtest.py SPX --stats      # store coverage only, no replay
    python run_backtest.py --config backtest.yaml

Environment variables (also read from .env):
    REPLAY_DB_PATH          - Snapshot SQLite file
    REPLAY_REPORT_PATH      - Report destination (default ./backtest_report.json)
    REPLAY_DEFAULT_SYMBOL   - Symbol when none is given (default SPX)
    REPLAY_SPREAD_WIDTH     - Spread width in points (default 5)
    REPLAY_MIN_CREDIT       - Minimum net credit (default 0.20)

Exit: 0 success, 1 bad config, 2 repository failure, 3 report write failure, 130 cancelled.
"""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

_REPO = Path(__file__).resolve().parent
if str(_REPO) not in sys.path:
    sys.path.insert(0, str(_REPO))

from dotenv import load_dotenv

load_dotenv(_REPO / ".env")

from replay.backtest.engine import BacktestCancelled, BacktestConfig, BacktestEngine  # noqa: E402
from replay.backtest.report import ReportWriteError  # noqa: E402
from replay.core.config.backtest_config import load_settings  # noqa: E402
from replay.data.snapshot_repository import SnapshotRepositoryError  # noqa: E402
from replay.data.sqlite_repository import SQLiteSnapshotRepository  # noqa: E402
from replay.signals.engine import GexCreditSpreadEngine  # noqa: E402

logger = logging.getLogger("run_backtest")

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_REPOSITORY = 2
EXIT_REPORT = 3
EXIT_CANCELLED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Replay recorded option-chain snapshots and score credit-spread signals",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("symbol", nargs="?", default=None, help="Symbol to replay (default: SPX)")
    parser.add_argument("--db", type=Path, default=None, help="Snapshot SQLite database")
    parser.add_argument("--output", type=Path, default=None, help="Report JSON path")
    parser.add_argument("--config", type=Path, default=None, help="YAML settings file")
    parser.add_argument("--stats", action="store_true", help="Print store coverage for the symbol and exit")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        settings = load_settings(args.config)
    except (OSError, ValueError) as e:
        logger.error("Invalid config %s: %s", args.config, e)
        return EXIT_CONFIG

    symbol = (args.symbol or settings.default_symbol).strip().upper()
    db_path = args.db or settings.db_path
    output = args.output or settings.report_path

    try:
        repo = SQLiteSnapshotRepository(db_path, read_only=True)
        engine = BacktestEngine(
            BacktestConfig(
                repository=repo,
                signal_engine=GexCreditSpreadEngine(settings.spread_width, settings.min_credit),
                output_path=None if args.stats else output,
            )
        )
        if args.stats:
            print(json.dumps(engine.stats(symbol).to_dict(), indent=2))
            return EXIT_OK

        stop_event = threading.Event()
        previous = signal.signal(signal.SIGINT, lambda *_: stop_event.set())
        try:
            report = engine.run(symbol, stop_event=stop_event)
        finally:
            signal.signal(signal.SIGINT, previous)
    except SnapshotRepositoryError as e:
        logger.error("Snapshot store failure for %s: %s", symbol, e)
        return EXIT_REPOSITORY
    except ReportWriteError as e:
        logger.error("%s (cause: %r)", e, e.__cause__)
        return EXIT_REPORT
    except BacktestCancelled as e:
        logger.warning("%s", e)
        return EXIT_CANCELLED

    summary = report.summary_dict()
    print("\n--- BACKTEST SUMMARY ---")
    print(f"Total Snapshots: {summary['totalSnapshots']}")
    print(f"Total Trades: {summary['totalTrades']}")
    print(f"Wins: {summary['wins']} | Losses: {summary['losses']}")
    print(f"Win Rate: {summary['winRate']}")
    print(f"Total PnL: {summary['totalPnL']}")
    print("------------------------")
    print(f"Report saved to {output}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
