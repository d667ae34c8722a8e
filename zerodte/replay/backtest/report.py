# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Backtest report model and its JSON writer.

File layout::

    {
      "summary": {"symbol", "totalSnapshots", "totalTrades", "wins", "losses",
                  "winRate": "<pct>%", "totalPnL": "$<amount>", ...},
      "signals": [EvaluatedTrade, ...]
    }

Percent and currency are formatted here only; the model keeps numbers.
Writes are atomic (temp file in the target directory, then ``os.replace``).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

from replay.models.trade import EvaluatedTrade

logger = logging.getLogger(__name__)


class ReportWriteError(Exception):
    """Report could not be serialized or written. The run's results were not saved."""


@dataclass(frozen=True)
class BacktestReport:
    """Summary of one symbol run plus every evaluated trade in entry order."""

    run_id: str
    symbol: str
    total_snapshots: int
    wins: int
    losses: int
    win_rate: float
    total_pnl: Decimal
    period_start: Optional[str] = None
    period_end: Optional[str] = None
    open_trades: int = 0
    skipped_snapshots: int = 0
    trades: List[EvaluatedTrade] = field(default_factory=list)

    @property
    def total_trades(self) -> int:
        return self.wins + self.losses

    def summary_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "totalSnapshots": self.total_snapshots,
            "totalTrades": self.total_trades,
            "wins": self.wins,
            "losses": self.losses,
            "winRate": f"{self.win_rate:.1f}%",
            "totalPnL": f"${self.total_pnl:.2f}",
            "openTrades": self.open_trades,
            "skippedSnapshots": self.skipped_snapshots,
            "periodStart": self.period_start,
            "periodEnd": self.period_end,
            "runId": self.run_id,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary_dict(),
            "signals": [t.to_dict() for t in self.trades],
        }


def write_report(report: BacktestReport, path: Path) -> Path:
    """Serialize ``report`` to ``path`` atomically.

    Raises
    ------
    ReportWriteError
        Wrapping the underlying serialization or filesystem error.
    """
    path = Path(path)
    try:
        payload = json.dumps(report.to_dict(), indent=2)
    except (TypeError, ValueError) as e:
        raise ReportWriteError(f"Cannot serialize report for {report.symbol}: {e}") from e

    tmp: Optional[str] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f"{path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except OSError as e:
        if tmp and os.path.exists(tmp):
            try:
                os.unlink(tmp)
            except OSError:
                logger.warning("[REPORT] Could not remove temp file %s", tmp)
        raise ReportWriteError(f"Cannot write report to {path}: {e}") from e

    logger.info("[REPORT] Saved %s report to %s", report.symbol, path)
    return path


__all__ = ["BacktestReport", "ReportWriteError", "write_report"]
