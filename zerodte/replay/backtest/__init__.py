# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Snapshot replay backtesting: recorded chains only, no live data."""

from replay.backtest.aggregator import PerformanceAggregator
from replay.backtest.engine import (
    BacktestCancelled,
    BacktestConfig,
    BacktestEngine,
)
from replay.backtest.evaluator import OutcomeEvaluator, compute_pnl, evaluate_alert
from replay.backtest.report import BacktestReport, ReportWriteError, write_report

__all__ = [
    "BacktestCancelled",
    "BacktestConfig",
    "BacktestEngine",
    "BacktestReport",
    "OutcomeEvaluator",
    "PerformanceAggregator",
    "ReportWriteError",
    "compute_pnl",
    "evaluate_alert",
    "write_report",
]
