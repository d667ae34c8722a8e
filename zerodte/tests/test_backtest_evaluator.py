# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Tests for the outcome evaluator state machine (same-day forward scan, P&L)."""

from __future__ import annotations

from decimal import Decimal

import pytest

from replay.backtest.evaluator import OutcomeEvaluator, compute_pnl, evaluate_alert
from replay.models.alert import CandidateAlert, Leg, LegAction, StrategyType
from replay.models.snapshot import OptionType, SnapshotPoint
from replay.models.trade import TradeResult

DAY1 = "2026-01-05"
DAY2 = "2026-01-06"


def _point(ts: str, price) -> SnapshotPoint:
    return SnapshotPoint(timestamp=ts, underlying_price=None if price is None else Decimal(str(price)))


def _bull_put(short: str = "6000", credit: str = "2.3", max_loss: str = "2.7") -> CandidateAlert:
    return CandidateAlert(
        id="bps-1",
        strategy=StrategyType.BULL_PUT_SPREAD,
        legs=(
            Leg(LegAction.SELL, OptionType.PUT, Decimal(short), Decimal("3.10"), -0.2),
            Leg(LegAction.BUY, OptionType.PUT, Decimal(short) - 5, Decimal("0.80"), -0.1),
        ),
        net_credit=Decimal(credit),
        max_loss=Decimal(max_loss),
        max_profit=Decimal(credit),
        quality_score=72.5,
        strategy_label="Bull Put Spread",
    )


def _bear_call(short: str = "6050") -> CandidateAlert:
    return CandidateAlert(
        id="bcs-1",
        strategy=StrategyType.BEAR_CALL_SPREAD,
        legs=(
            Leg(LegAction.SELL, OptionType.CALL, Decimal(short), Decimal("2.00"), 0.2),
            Leg(LegAction.BUY, OptionType.CALL, Decimal(short) + 5, Decimal("1.00"), 0.1),
        ),
        net_credit=Decimal("1.00"),
        max_loss=Decimal("4.00"),
        max_profit=Decimal("1.00"),
    )


def _iron_condor() -> CandidateAlert:
    return CandidateAlert(
        id="ic-1",
        strategy=StrategyType.IRON_CONDOR,
        legs=_bull_put().legs + _bear_call().legs,
        net_credit=Decimal("3.30"),
        max_loss=Decimal("1.70"),
        max_profit=Decimal("3.30"),
    )


# --- Scenarios ---


def test_bull_put_breached_intraday_is_loss():
    points = [
        _point(f"{DAY1}T09:30:00", 6020),
        _point(f"{DAY1}T09:35:00", 6015),
        _point(f"{DAY1}T09:40:00", 5995),
    ]
    trade = evaluate_alert(_bull_put(), points, 0)
    assert trade.result == TradeResult.LOSS
    assert trade.exit_time == f"{DAY1}T09:40:00"
    assert trade.exit_price == Decimal("5995")
    assert trade.pnl == Decimal("-270")
    assert trade.short_strike == Decimal("6000")


def test_bull_put_survives_to_day_end_is_win():
    points = [
        _point(f"{DAY1}T09:30:00", 6020),
        _point(f"{DAY1}T09:35:00", 6015),
        _point(f"{DAY1}T09:40:00", 6025),
    ]
    trade = evaluate_alert(_bull_put(), points, 0)
    assert trade.result == TradeResult.WIN
    assert trade.pnl == Decimal("230")
    assert trade.pnl == 230
    assert trade.exit_time == f"{DAY1}T09:40:00"
    assert trade.exit_price == Decimal("6025")


def test_no_same_day_snapshot_after_entry_stays_open():
    points = [
        _point(f"{DAY1}T15:55:00", 6020),
        _point(f"{DAY2}T09:30:00", 5900),
    ]
    trade = evaluate_alert(_bull_put(), points, 0)
    assert trade.result == TradeResult.OPEN
    assert trade.pnl == 0
    assert trade.exit_time == trade.entry_time
    assert trade.exit_price == trade.entry_price


def test_entry_at_last_snapshot_overall_stays_open():
    trade = evaluate_alert(_bull_put(), [_point(f"{DAY1}T09:30:00", 6020)], 0)
    assert trade.result == TradeResult.OPEN


# --- Day confinement / ordering ---


def test_next_day_breach_does_not_affect_trade():
    points = [
        _point(f"{DAY1}T09:30:00", 6020),
        _point(f"{DAY1}T09:35:00", 6015),
        _point(f"{DAY1}T09:40:00", 6025),
        _point(f"{DAY2}T09:30:00", 5900),
    ]
    trade = evaluate_alert(_bull_put(), points, 0)
    assert trade.result == TradeResult.WIN
    assert trade.exit_time[:10] == trade.entry_time[:10]


def test_evaluator_never_reads_snapshots_before_entry():
    points = [
        _point(f"{DAY1}T09:30:00", 5900),  # breached, but before entry
        _point(f"{DAY1}T09:35:00", 6020),
        _point(f"{DAY1}T09:40:00", 6030),
    ]
    trade = evaluate_alert(_bull_put(), points, 1)
    assert trade.result == TradeResult.WIN
    assert trade.entry_time == f"{DAY1}T09:35:00"


# --- State machine rules ---


def test_win_is_provisional_until_day_end_and_later_breach_overrides_it():
    """WIN recorded at a day-end marker is overwritten by a later same-day breach.

    Kept deliberately: LOSS is final on first breach, WIN only holds if no
    same-day breach follows.
    """
    ev = OutcomeEvaluator(_bull_put(), _point(f"{DAY1}T09:30:00", 6020))
    assert ev.observe(_point(f"{DAY1}T09:35:00", 6015), last_of_day=True) is True
    assert ev.result == TradeResult.WIN
    assert ev.observe(_point(f"{DAY1}T09:40:00", 5995), last_of_day=False) is False
    assert ev.result == TradeResult.LOSS
    assert ev.exit_time == f"{DAY1}T09:40:00"
    assert ev.to_trade().pnl == Decimal("-270")


def test_loss_is_final():
    ev = OutcomeEvaluator(_bull_put(), _point(f"{DAY1}T09:30:00", 6020))
    assert ev.observe(_point(f"{DAY1}T09:35:00", 5990), last_of_day=False) is False
    assert ev.observe(_point(f"{DAY1}T09:40:00", 6100), last_of_day=True) is False
    assert ev.result == TradeResult.LOSS
    assert ev.exit_price == Decimal("5990")


def test_breach_on_last_snapshot_of_day_is_loss_not_win():
    points = [
        _point(f"{DAY1}T09:30:00", 6020),
        _point(f"{DAY1}T09:35:00", 6000),
    ]
    trade = evaluate_alert(_bull_put(), points, 0)
    assert trade.result == TradeResult.LOSS
    assert trade.exit_price == Decimal("6000")


def test_bear_call_breaches_at_or_above_short_strike():
    points = [
        _point(f"{DAY1}T09:30:00", 6020),
        _point(f"{DAY1}T09:35:00", 6049.99),
        _point(f"{DAY1}T09:40:00", 6050),
        _point(f"{DAY1}T09:45:00", 6010),
    ]
    trade = evaluate_alert(_bear_call(), points, 0)
    assert trade.result == TradeResult.LOSS
    assert trade.exit_time == f"{DAY1}T09:40:00"
    assert trade.pnl == Decimal("-400")


def test_bear_call_not_breached_by_falling_price():
    points = [
        _point(f"{DAY1}T09:30:00", 6020),
        _point(f"{DAY1}T09:35:00", 5900),
    ]
    assert evaluate_alert(_bear_call(), points, 0).result == TradeResult.WIN


@pytest.mark.parametrize("price,expected", [(5999, TradeResult.LOSS), (6051, TradeResult.LOSS), (6025, TradeResult.WIN)])
def test_iron_condor_checks_both_short_legs(price, expected):
    points = [_point(f"{DAY1}T09:30:00", 6025), _point(f"{DAY1}T09:35:00", price)]
    trade = evaluate_alert(_iron_condor(), points, 0)
    assert trade.result == expected
    assert trade.short_strike == Decimal("6000")  # first SELL leg


def test_forward_snapshot_without_price_is_not_a_breach():
    points = [
        _point(f"{DAY1}T09:30:00", 6020),
        _point(f"{DAY1}T09:35:00", 6010),
        _point(f"{DAY1}T09:40:00", None),
    ]
    trade = evaluate_alert(_bull_put(), points, 0)
    assert trade.result == TradeResult.WIN
    assert trade.exit_time == f"{DAY1}T09:40:00"
    assert trade.exit_price == Decimal("6010")


def test_alert_without_sell_leg_is_unscoreable():
    alert = CandidateAlert(
        id="odd-1",
        strategy=StrategyType.BULL_PUT_SPREAD,
        legs=(Leg(LegAction.BUY, OptionType.PUT, Decimal("6000"), Decimal("1.0")),),
        net_credit=Decimal("1.0"),
        max_loss=Decimal("4.0"),
        max_profit=Decimal("1.0"),
    )
    points = [_point(f"{DAY1}T09:30:00", 6020), _point(f"{DAY1}T09:35:00", 5000)]
    trade = evaluate_alert(alert, points, 0)
    assert trade.result == TradeResult.OPEN
    assert trade.short_strike is None
    assert trade.pnl == 0


# --- P&L formula ---


def test_compute_pnl_is_exact_in_decimal():
    assert compute_pnl(TradeResult.WIN, Decimal("2.3"), Decimal("2.7")) == Decimal("230")
    assert compute_pnl(TradeResult.LOSS, Decimal("2.3"), Decimal("2.7")) == Decimal("-270")
    assert compute_pnl(TradeResult.OPEN, Decimal("2.3"), Decimal("2.7")) == 0
    assert compute_pnl(TradeResult.WIN, Decimal("0.35"), Decimal("4.65")) == Decimal("35")


def test_win_exit_price_is_last_priced_snapshot_of_the_day():
    points = [
        _point(f"{DAY1}T09:30:00", 6020),
        _point(f"{DAY1}T09:35:00", 6010),
        _point(f"{DAY1}T09:40:00", 6012),
        _point(f"{DAY1}T09:45:00", 0),
    ]
    trade = evaluate_alert(_bull_put(), points, 0)
    assert trade.result == TradeResult.WIN
    assert trade.exit_time == f"{DAY1}T09:45:00"
    assert trade.exit_price == Decimal("6012")


# --- Alert records ---


def test_candidate_alert_is_hashable_and_context_read_only():
    alert = CandidateAlert(
        id="bps-ctx",
        strategy=StrategyType.BULL_PUT_SPREAD,
        legs=_bull_put().legs,
        net_credit=Decimal("2.3"),
        max_loss=Decimal("2.7"),
        max_profit=Decimal("2.3"),
        context={"symbol": "SPX"},
    )
    assert alert in {alert}
    with pytest.raises(TypeError):
        alert.context["symbol"] = "SPY"
    assert alert.context["symbol"] == "SPX"
