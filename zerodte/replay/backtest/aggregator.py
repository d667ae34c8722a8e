# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Running performance totals over evaluated trades."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from replay.models.trade import EvaluatedTrade, TradeResult


@dataclass
class PerformanceAggregator:
    """Fold of EvaluatedTrades. Only WIN/LOSS count toward totals; OPEN is kept for audit."""

    wins: int = 0
    losses: int = 0
    open_count: int = 0
    total_pnl: Decimal = Decimal("0")
    trades: List[EvaluatedTrade] = field(default_factory=list)

    def add(self, trade: EvaluatedTrade) -> None:
        self.trades.append(trade)
        if trade.result == TradeResult.WIN:
            self.wins += 1
        elif trade.result == TradeResult.LOSS:
            self.losses += 1
        else:
            self.open_count += 1
        self.total_pnl += trade.pnl

    @property
    def total_trades(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> float:
        """Percent of closed trades that won; 0 when nothing closed."""
        closed = self.total_trades
        return (self.wins / closed) * 100 if closed else 0.0


__all__ = ["PerformanceAggregator"]
