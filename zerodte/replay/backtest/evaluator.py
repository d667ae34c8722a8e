# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Outcome evaluator: resolve one candidate alert against the same-day forward path.

State machine, one instance per alert, anchored at the entry snapshot::

    OPEN --(short strike breached)----------> LOSS   (final, scan stops)
    OPEN --(last snapshot of the day)-------> WIN    (provisional, scan continues)
    WIN  --(later same-day breach)----------> LOSS

Breach: underlying <= K for a short PUT leg, underlying >= K for a short CALL
leg. An iron condor is checked on both sides. If no same-day snapshot follows
the entry the trade stays OPEN.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional, Sequence

from replay.core.config.backtest_config import CONTRACT_MULTIPLIER
from replay.models.alert import CandidateAlert, LegAction
from replay.models.snapshot import OptionType, SnapshotPoint
from replay.models.trade import EvaluatedTrade, TradeResult

logger = logging.getLogger(__name__)


def compute_pnl(result: TradeResult, net_credit: Decimal, max_loss: Decimal) -> Decimal:
    """Per-contract P&L in dollars: credit kept on WIN, max loss on LOSS, 0 while OPEN."""
    if result == TradeResult.WIN:
        return net_credit * CONTRACT_MULTIPLIER
    if result == TradeResult.LOSS:
        return -max_loss * CONTRACT_MULTIPLIER
    return Decimal("0")


class OutcomeEvaluator:
    """Walks forward from the entry snapshot and classifies the trade."""

    def __init__(self, alert: CandidateAlert, entry: SnapshotPoint) -> None:
        self.alert = alert
        self.entry = entry
        self.result = TradeResult.OPEN
        self.exit_price: Optional[Decimal] = entry.underlying_price
        self.exit_time = entry.timestamp
        self._last_price: Optional[Decimal] = entry.underlying_price
        self._short_puts: List[Decimal] = []
        self._short_calls: List[Decimal] = []
        for leg in alert.legs:
            if leg.action != LegAction.SELL:
                continue
            if leg.option_type == OptionType.PUT:
                self._short_puts.append(leg.strike)
            else:
                self._short_calls.append(leg.strike)

    @property
    def scoreable(self) -> bool:
        return bool(self._short_puts or self._short_calls)

    def breached(self, price: Decimal) -> bool:
        return any(price <= k for k in self._short_puts) or any(price >= k for k in self._short_calls)

    def observe(self, point: SnapshotPoint, last_of_day: bool) -> bool:
        """Apply one forward snapshot. Returns False once scanning must stop."""
        if self.result == TradeResult.LOSS or point.day != self.entry.day:
            return False
        # No or zero price: not breach-tested, may still end the day
        price = point.underlying_price or None
        if price is not None:
            self._last_price = price
        if price is not None and self.breached(price):
            self.result = TradeResult.LOSS
            self.exit_price = price
            self.exit_time = point.timestamp
            return False
        if last_of_day:
            # Provisional: a later same-day breach still turns this into a LOSS.
            self.result = TradeResult.WIN
            self.exit_price = self._last_price
            self.exit_time = point.timestamp
        return True

    def scan(self, points: Sequence[SnapshotPoint], entry_index: int) -> None:
        """Feed snapshots ``entry_index+1 ..`` until the entry day ends or a breach."""
        n = len(points)
        for j in range(entry_index + 1, n):
            point = points[j]
            if point.day != self.entry.day:
                break
            last_of_day = j == n - 1 or points[j + 1].day != self.entry.day
            if not self.observe(point, last_of_day):
                break

    def to_trade(self) -> EvaluatedTrade:
        alert = self.alert
        return EvaluatedTrade(
            alert_id=alert.id,
            strategy=alert.label,
            entry_time=self.entry.timestamp,
            entry_price=self.entry.underlying_price,
            short_strike=alert.short_strike,
            net_credit=alert.net_credit,
            max_loss=alert.max_loss,
            result=self.result,
            exit_price=self.exit_price,
            exit_time=self.exit_time,
            pnl=compute_pnl(self.result, alert.net_credit, alert.max_loss),
            quality_score=alert.quality_score,
        )


def evaluate_alert(
    alert: CandidateAlert,
    points: Sequence[SnapshotPoint],
    entry_index: int,
) -> EvaluatedTrade:
    """Resolve ``alert`` entered at ``points[entry_index]``.

    An alert without a SELL leg has no stop level: it is returned OPEN with
    zero P&L and no forward scan.
    """
    evaluator = OutcomeEvaluator(alert, points[entry_index])
    if not evaluator.scoreable:
        logger.warning(
            "[BACKTEST] Alert %s (%s) has no SELL leg; recorded OPEN, not scored",
            alert.id, alert.label,
        )
        return evaluator.to_trade()
    evaluator.scan(points, entry_index)
    return evaluator.to_trade()


__all__ = ["OutcomeEvaluator", "compute_pnl", "evaluate_alert"]
