# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Signal engine contract and the reference GEX credit-spread engine.

The backtest only depends on :class:`SignalEngine`; any object with a matching
``generate`` is substitutable (tests use scripted engines).

Reference strategy selection, per snapshot inside the trading window:

- regime ``stable``            -> Iron Condor
- net drift > 0.5              -> Bull Put Spread
- net drift < -0.5             -> Bear Call Spread
- |drift| <= 0.5 and stable    -> Bull Put and Bear Call
- regime ``volatile``          -> ``warning-`` notice (no legs, not tradeable)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, List, Optional, Protocol, Sequence

from replay.core.config.backtest_config import MIN_CREDIT, SPREAD_WIDTH
from replay.core.market_time import get_trading_window
from replay.models.alert import (
    WARNING_ID_PREFIX,
    AlertStatus,
    CandidateAlert,
    Leg,
    LegAction,
    StrategyType,
)
from replay.models.snapshot import (
    OptionChainSnapshot,
    OptionType,
    SnapshotRow,
    parse_snapshot_time,
)
from replay.signals.gex import GexMetrics, compute_gex_metrics, expected_move

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
DRIFT_THRESHOLD = 0.5
SHORT_DELTA_MIN = 0.15
SHORT_DELTA_MAX = 0.25
WALL_BUFFER = 20.0
DEFAULT_SHORT_DELTA = 0.25

MetricsFn = Callable[[OptionChainSnapshot], Any]


class SignalEngine(Protocol):
    """Produces candidate alerts for one reconstructed chain."""

    def generate(
        self,
        symbol: str,
        metrics: Any,
        chain: OptionChainSnapshot,
        day: date,
    ) -> List[CandidateAlert]:
        ...


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _mid(row: SnapshotRow) -> Decimal:
    m = row.mid
    return m if m is not None else Decimal("0")


def find_target_expiration(chain: OptionChainSnapshot, day: date) -> Optional[str]:
    """Same-day expiration if listed, else the next one, else the earliest."""
    expirations = chain.expirations()
    if not expirations:
        return None
    today = day.isoformat()
    for exp in expirations:
        if exp >= today:
            return exp
    return expirations[0]


@dataclass(frozen=True)
class _Spread:
    strategy: StrategyType
    label: str
    legs: tuple
    net_credit: Decimal
    max_loss: Decimal
    probability: float
    status: AlertStatus
    rationale: str


class GexCreditSpreadEngine:
    """Reference 0DTE credit-spread generator driven by GEX regime and drift."""

    def __init__(
        self,
        spread_width: Decimal = SPREAD_WIDTH,
        min_credit: Decimal = MIN_CREDIT,
    ) -> None:
        self.spread_width = Decimal(spread_width)
        self.min_credit = Decimal(min_credit)

    def generate(
        self,
        symbol: str,
        metrics: GexMetrics,
        chain: OptionChainSnapshot,
        day: date,
    ) -> List[CandidateAlert]:
        window = get_trading_window(parse_snapshot_time(chain.timestamp))
        if not window.is_open:
            logger.debug("[SIGNALS] %s @ %s outside trading window (%s)", symbol, chain.timestamp, window.status)
            return []
        if metrics is None or not metrics.current_price:
            logger.warning("[SIGNALS] No GEX metrics for %s @ %s", symbol, chain.timestamp)
            return []

        expiration = find_target_expiration(chain, day)
        if expiration is None:
            logger.warning("[SIGNALS] No expiration in chain for %s @ %s", symbol, chain.timestamp)
            return []
        options = chain.for_expiration(expiration)
        if not options:
            return []

        move = expected_move(options, metrics.current_price)
        alerts: List[CandidateAlert] = []

        def emit(spread: Optional[_Spread], prefix: str) -> None:
            if spread is not None:
                alerts.append(self._to_alert(spread, prefix, symbol, expiration, chain, move))

        if metrics.regime == "stable":
            emit(self._iron_condor(options, metrics, move), "ic")
        if metrics.net_drift > DRIFT_THRESHOLD:
            emit(self._bull_put(options, metrics, move), "bps")
        if metrics.net_drift < -DRIFT_THRESHOLD:
            emit(self._bear_call(options, metrics, move), "bcs")
        if abs(metrics.net_drift) <= DRIFT_THRESHOLD and metrics.regime == "stable":
            emit(self._bull_put(options, metrics, move), "bps")
            emit(self._bear_call(options, metrics, move), "bcs")
        if metrics.regime == "volatile":
            alerts.append(self._volatile_warning(symbol, expiration, chain))

        logger.info(
            "[SIGNALS] %s @ %s regime=%s drift=%.2f move=%.2f -> %d alert(s)",
            symbol, chain.timestamp, metrics.regime, metrics.net_drift, move, len(alerts),
        )
        return alerts

    # ------------------------------------------------------------------ #
    # Spread construction
    # ------------------------------------------------------------------ #
    def _vertical(
        self,
        options: Sequence[SnapshotRow],
        kind: OptionType,
        metrics: GexMetrics,
        move: float,
    ) -> Optional[_Spread]:
        price = metrics.current_price
        side = [o for o in options if o.type == kind]
        if kind == OptionType.PUT:
            wall = metrics.put_wall
            shorts = [
                o for o in side
                if float(o.strike) < price and float(o.strike) >= wall - WALL_BUFFER
            ]
        else:
            wall = metrics.call_wall
            shorts = [
                o for o in side
                if float(o.strike) > price and float(o.strike) <= wall + WALL_BUFFER
            ]
        shorts = [o for o in shorts if SHORT_DELTA_MIN <= abs(o.delta or 0.0) <= SHORT_DELTA_MAX]
        if not shorts:
            return None
        shorts.sort(key=lambda o: abs(o.delta or 0.0))
        short = shorts[0]

        if kind == OptionType.PUT:
            long_strike = short.strike - self.spread_width
        else:
            long_strike = short.strike + self.spread_width
        long = next((o for o in side if abs(o.strike - long_strike) < 1), None)
        if long is None:
            return None

        short_price = _mid(short)
        long_price = _mid(long)
        credit = short_price - long_price
        if credit <= self.min_credit:
            return None

        credit = _cents(credit)
        max_loss = _cents(self.spread_width - credit)
        probability = round((1 - abs(short.delta or DEFAULT_SHORT_DELTA)) * 100, 1)

        if kind == OptionType.PUT:
            inside = bool(move) and float(short.strike) >= price - move
            strategy, label = StrategyType.BULL_PUT_SPREAD, "Bull Put Spread"
            wall_text = f"Put wall at {wall:.0f} acts as support"
        else:
            inside = bool(move) and float(short.strike) <= price + move
            strategy, label = StrategyType.BEAR_CALL_SPREAD, "Bear Call Spread"
            wall_text = f"Call wall at {wall:.0f} acts as resistance"
        if move:
            where = "inside" if inside else "outside"
            rationale = f"{wall_text}. Short strike {short.strike} {where} expected move (+/-{move:.1f})."
        else:
            rationale = f"{wall_text}. Short strike {short.strike} in high-probability zone."

        legs = (
            Leg(LegAction.SELL, kind, short.strike, short_price, short.delta or 0.0),
            Leg(LegAction.BUY, kind, long.strike, long_price, long.delta or 0.0),
        )
        return _Spread(
            strategy=strategy,
            label=label,
            legs=legs,
            net_credit=credit,
            max_loss=max_loss,
            probability=probability,
            status=AlertStatus.WATCH if inside else AlertStatus.ACTIVE,
            rationale=rationale,
        )

    def _bull_put(self, options, metrics, move) -> Optional[_Spread]:
        return self._vertical(options, OptionType.PUT, metrics, move)

    def _bear_call(self, options, metrics, move) -> Optional[_Spread]:
        return self._vertical(options, OptionType.CALL, metrics, move)

    def _iron_condor(self, options, metrics, move) -> Optional[_Spread]:
        put_side = self._bull_put(options, metrics, move)
        call_side = self._bear_call(options, metrics, move)
        if put_side is None or call_side is None:
            return None
        credit = put_side.net_credit + call_side.net_credit
        return _Spread(
            strategy=StrategyType.IRON_CONDOR,
            label="Iron Condor",
            legs=put_side.legs + call_side.legs,
            net_credit=credit,
            max_loss=_cents(self.spread_width - credit),
            probability=min(put_side.probability, call_side.probability),
            status=AlertStatus.ACTIVE,
            rationale=(
                f"Stable regime with price between walls "
                f"({metrics.put_wall:.0f} - {metrics.call_wall:.0f}). Premium selling setup."
            ),
        )

    # ------------------------------------------------------------------ #
    # Alert assembly
    # ------------------------------------------------------------------ #
    @staticmethod
    def _quality(spread: _Spread) -> float:
        score = spread.probability - (15.0 if spread.status == AlertStatus.WATCH else 0.0)
        return round(max(0.0, min(100.0, score)), 1)

    def _to_alert(
        self,
        spread: _Spread,
        prefix: str,
        symbol: str,
        expiration: str,
        chain: OptionChainSnapshot,
        move: float,
    ) -> CandidateAlert:
        return CandidateAlert(
            id=f"{prefix}-{chain.timestamp}",
            strategy=spread.strategy,
            legs=spread.legs,
            net_credit=spread.net_credit,
            max_loss=spread.max_loss,
            max_profit=spread.net_credit,
            quality_score=self._quality(spread),
            strategy_label=spread.label,
            expiration=expiration,
            status=spread.status,
            probability=spread.probability,
            rationale=spread.rationale,
            generated_at=chain.timestamp,
            context={"symbol": symbol, "expected_move": move},
        )

    @staticmethod
    def _volatile_warning(symbol: str, expiration: str, chain: OptionChainSnapshot) -> CandidateAlert:
        return CandidateAlert(
            id=f"{WARNING_ID_PREFIX}-{chain.timestamp}",
            strategy=StrategyType.BEAR_CALL_SPREAD,
            legs=(),
            net_credit=Decimal("0"),
            max_loss=Decimal("0"),
            max_profit=Decimal("0"),
            strategy_label="Volatile regime detected",
            expiration=expiration,
            status=AlertStatus.WATCH,
            rationale="Negative dealer gamma amplifies moves. Avoid selling premium or reduce size.",
            generated_at=chain.timestamp,
            context={"symbol": symbol},
        )


__all__ = [
    "GexCreditSpreadEngine",
    "MetricsFn",
    "SignalEngine",
    "compute_gex_metrics",
    "find_target_expiration",
]
