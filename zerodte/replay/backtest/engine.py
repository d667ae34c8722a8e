# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Backtest engine: replay recorded chain snapshots, deterministic, no live calls.

One run covers one symbol. For each capture time, ascending:

    repository rows -> reconstruct chain -> metrics -> signal engine
        -> evaluate each tradeable alert on the same-day forward path
        -> aggregate

The report is written once, after the last snapshot. A run stopped through
``stop_event`` raises :class:`BacktestCancelled` and writes nothing.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from replay.backtest.aggregator import PerformanceAggregator
from replay.backtest.evaluator import evaluate_alert
from replay.backtest.report import BacktestReport, write_report
from replay.data.chain_reconstructor import reconstruct_chain
from replay.data.snapshot_repository import (
    SnapshotRepository,
    SnapshotRepositoryError,
    SnapshotStats,
    ensure_ascending,
)
from replay.signals.engine import GexCreditSpreadEngine, MetricsFn, SignalEngine
from replay.signals.gex import compute_gex_metrics

logger = logging.getLogger(__name__)


class BacktestCancelled(Exception):
    """Run stopped between snapshots; no report was written."""


@dataclass
class BacktestConfig:
    """Backtest run config: data source, signal engine, report destination."""

    repository: SnapshotRepository
    signal_engine: Optional[SignalEngine] = None
    metrics_fn: Optional[MetricsFn] = None
    output_path: Optional[Path] = None


class BacktestEngine:
    """Runs the replay for one symbol over the repository's full history."""

    def __init__(self, config: BacktestConfig):
        self.config = config
        self.signal_engine: SignalEngine = config.signal_engine or GexCreditSpreadEngine()
        self.metrics_fn: MetricsFn = config.metrics_fn or compute_gex_metrics

    def stats(self, symbol: str) -> SnapshotStats:
        return self.config.repository.snapshot_stats(symbol)

    def run(self, symbol: str, stop_event: Optional[threading.Event] = None) -> BacktestReport:
        """Replay ``symbol`` and return the report (also written if ``output_path`` is set).

        Raises
        ------
        SnapshotRepositoryError
            Store unreachable or malformed; the run is aborted.
        BacktestCancelled
            ``stop_event`` was set before the run finished.
        ReportWriteError
            The completed report could not be saved.
        """
        repo = self.config.repository
        run_id = str(uuid.uuid4())[:8]
        points = ensure_ascending(symbol, repo.list_distinct_snapshots(symbol))
        logger.info("[BACKTEST] %s run %s: %d snapshots", symbol, run_id, len(points))

        agg = PerformanceAggregator()
        skipped = 0

        for i, point in enumerate(points):
            if stop_event is not None and stop_event.is_set():
                logger.warning("[BACKTEST] %s run %s cancelled at %d/%d", symbol, run_id, i, len(points))
                raise BacktestCancelled(f"{symbol} backtest cancelled after {i} of {len(points)} snapshots")

            if not point.underlying_price:
                logger.warning("[BACKTEST] %s @ %s: no underlying price, skipped", symbol, point.timestamp)
                skipped += 1
                continue

            rows = repo.list_rows(symbol, point.timestamp)
            chain = reconstruct_chain(symbol, point, rows)
            if chain is None:
                logger.warning("[BACKTEST] %s @ %s: no option rows, skipped", symbol, point.timestamp)
                skipped += 1
                continue

            try:
                metrics = self.metrics_fn(chain)
                alerts = self.signal_engine.generate(symbol, metrics, chain, point.day)
            except SnapshotRepositoryError:
                raise
            except Exception:
                logger.exception("[BACKTEST] %s @ %s: signal generation failed, skipped", symbol, point.timestamp)
                skipped += 1
                continue

            for alert in alerts:
                if alert.is_warning:
                    continue
                trade = evaluate_alert(alert, points, i)
                agg.add(trade)
                logger.info(
                    "[BACKTEST] [%s] %s at %s credit=%s -> %s (%s)",
                    point.timestamp, trade.strategy, point.underlying_price,
                    alert.net_credit, trade.result.value, trade.pnl,
                )

        report = BacktestReport(
            run_id=run_id,
            symbol=symbol,
            total_snapshots=len(points),
            wins=agg.wins,
            losses=agg.losses,
            win_rate=agg.win_rate,
            total_pnl=agg.total_pnl,
            period_start=points[0].timestamp if points else None,
            period_end=points[-1].timestamp if points else None,
            open_trades=agg.open_count,
            skipped_snapshots=skipped,
            trades=agg.trades,
        )
        logger.info(
            "[BACKTEST] %s summary: trades=%d wins=%d losses=%d win_rate=%.1f%% pnl=%.2f",
            symbol, report.total_trades, report.wins, report.losses, report.win_rate, report.total_pnl,
        )

        if self.config.output_path is not None:
            write_report(report, Path(self.config.output_path))
        return report


__all__ = [
    "BacktestCancelled",
    "BacktestConfig",
    "BacktestEngine",
]
