# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""EvaluatedTrade: one candidate alert resolved against the forward snapshot path."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class TradeResult(str, Enum):
    """Outcome of a replayed trade. OPEN is initial; WIN and LOSS are terminal."""

    OPEN = "OPEN"
    WIN = "WIN"
    LOSS = "LOSS"


@dataclass(frozen=True)
class EvaluatedTrade:
    """Replayed trade: entry snapshot, short strike, resolved outcome and P&L."""

    alert_id: str
    strategy: str
    entry_time: str
    entry_price: Decimal
    short_strike: Optional[Decimal]
    net_credit: Decimal
    max_loss: Decimal
    result: TradeResult
    exit_price: Decimal
    exit_time: str
    pnl: Decimal
    quality_score: float = 0.0

    @property
    def is_closed(self) -> bool:
        return self.result in (TradeResult.WIN, TradeResult.LOSS)

    def to_dict(self) -> dict:
        """JSON-ready dict using the report's signal field names."""
        return {
            "time": self.entry_time,
            "entryPrice": _num(self.entry_price),
            "strategy": self.strategy,
            "shortStrike": _num(self.short_strike),
            "credit": _num(self.net_credit),
            "result": self.result.value,
            "exitPrice": _num(self.exit_price),
            "exitTime": self.exit_time,
            "pnl": _num(self.pnl),
            "quality": self.quality_score,
            "alertId": self.alert_id,
            "maxLoss": _num(self.max_loss),
        }


def _num(value: Optional[Decimal]):
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)


__all__ = ["EvaluatedTrade", "TradeResult"]
