# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Tests for GEX metrics and the reference credit-spread signal engine."""

from datetime import date
from decimal import Decimal

import pytest

from replay.data.chain_reconstructor import reconstruct_chain
from replay.data.snapshot_repository import point_from_values, row_from_mapping
from replay.models.alert import AlertStatus, LegAction, StrategyType
from replay.models.snapshot import OptionType
from replay.signals.engine import GexCreditSpreadEngine, find_target_expiration
from replay.signals.gex import GexMetrics, compute_gex_metrics, expected_move

DAY = date(2026, 1, 5)  # Monday
TS = "2026-01-05T10:00:00"

# (strike, type, bid, ask, delta)
_QUOTES = [
    (5990, "PUT", 1.4, 1.6, -0.12),
    (5995, "PUT", 2.9, 3.1, -0.17),
    (6000, "PUT", 3.9, 4.1, -0.22),
    (6005, "PUT", 4.9, 5.1, -0.28),
    (6010, "PUT", 6.9, 7.1, -0.35),
    (6020, "PUT", 11.9, 12.1, -0.50),
    (6020, "CALL", 12.9, 13.1, 0.50),
    (6030, "CALL", 7.9, 8.1, 0.38),
    (6040, "CALL", 3.4, 3.6, 0.24),
    (6045, "CALL", 2.4, 2.6, 0.19),
    (6050, "CALL", 1.9, 2.1, 0.16),
    (6055, "CALL", 0.9, 1.1, 0.11),
]


def _chain(ts=TS, price=6020, quotes=_QUOTES, expiration="2026-01-05"):
    rows = [
        row_from_mapping(
            {
                "symbol": "SPX",
                "snapshot_time": ts,
                "expiration_date": expiration,
                "strike": strike,
                "type": kind,
                "bid": bid,
                "ask": ask,
                "delta": delta,
                "gamma": 0.01,
                "volume": 100,
                "open_interest": 1000,
                "underlying_price": price,
            }
        )
        for strike, kind, bid, ask, delta in quotes
    ]
    return reconstruct_chain("SPX", point_from_values(ts, price), rows)


def _metrics(regime="neutral", drift=0.0, price=6020.0):
    return GexMetrics(
        total_gex=1.0e9,
        gamma_flip=5950.0,
        net_institutional_delta=0.0,
        net_drift=drift,
        call_wall=6050.0,
        put_wall=6000.0,
        current_price=price,
        regime=regime,
    )


# --- GEX metrics ---


def _gex_chain(put_oi):
    quotes = [
        {"strike": 6050, "type": "CALL", "gamma": 0.01, "open_interest": 1000, "delta": 0.3},
        {"strike": 5900, "type": "PUT", "gamma": 0.01, "open_interest": put_oi, "delta": -0.2},
    ]
    rows = [
        row_from_mapping({"symbol": "SPX", "snapshot_time": TS, "expiration_date": "2026-01-05", "underlying_price": 6020, **q})
        for q in quotes
    ]
    return reconstruct_chain("SPX", point_from_values(TS, 6020), rows)


def test_gex_metrics_positive_gamma_is_stable():
    m = compute_gex_metrics(_gex_chain(put_oi=500))
    assert m.call_wall == 6050.0
    assert m.put_wall == 5900.0
    assert m.total_gex == pytest.approx(0.01 * 1000 * 100 * 6020 - 0.01 * 500 * 100 * 6020)
    assert m.gamma_flip == pytest.approx(5975.0)
    assert m.regime == "stable"
    assert m.net_institutional_delta == pytest.approx(-20000.0)
    assert m.net_drift == pytest.approx(-20000.0 / 6020 * 100)
    assert m.call_wall_liquidity == 1000
    assert m.put_wall_liquidity == 500
    assert [p["price"] for p in m.gamma_profile] == [5900.0, 6050.0]


def test_gex_metrics_negative_gamma_is_volatile():
    assert compute_gex_metrics(_gex_chain(put_oi=3000)).regime == "volatile"


def test_gex_metrics_near_flip_is_neutral():
    quotes = [
        {"strike": 6000, "type": "PUT", "gamma": 0.01, "open_interest": 500},
        {"strike": 6050, "type": "CALL", "gamma": 0.01, "open_interest": 1000},
    ]
    rows = [
        row_from_mapping({"symbol": "SPX", "snapshot_time": TS, "expiration_date": "2026-01-05", "underlying_price": 6024, **q})
        for q in quotes
    ]
    m = compute_gex_metrics(reconstruct_chain("SPX", point_from_values(TS, 6024), rows))
    assert m.gamma_flip == pytest.approx(6025.0)
    assert m.regime == "neutral"


def test_expected_move_is_atm_straddle():
    chain = _chain()
    assert expected_move(chain.options, 6021.0) == pytest.approx(25.0)
    assert expected_move([], 6020.0) == 0.0


# --- Target expiration ---


def test_find_target_expiration_prefers_same_day():
    chain = _chain(expiration="2026-01-05")
    assert find_target_expiration(chain, DAY) == "2026-01-05"


def test_find_target_expiration_falls_back_to_next_then_earliest():
    chain = _chain(expiration="2026-01-07")
    assert find_target_expiration(chain, DAY) == "2026-01-07"
    assert find_target_expiration(chain, date(2026, 1, 9)) == "2026-01-07"


# --- Signal engine ---


def test_bull_put_on_positive_drift():
    alerts = GexCreditSpreadEngine().generate("SPX", _metrics(drift=1.0), _chain(), DAY)
    assert len(alerts) == 1
    a = alerts[0]
    assert a.id == f"bps-{TS}"
    assert a.strategy == StrategyType.BULL_PUT_SPREAD
    short, long = a.legs
    assert (short.action, short.option_type, short.strike) == (LegAction.SELL, OptionType.PUT, Decimal("5995"))
    assert (long.action, long.strike) == (LegAction.BUY, Decimal("5990"))
    assert a.net_credit == Decimal("1.50")
    assert a.max_loss == Decimal("3.50")
    assert a.probability == 83.0
    # short strike sits exactly on the lower edge of the expected move
    assert a.status == AlertStatus.WATCH
    assert a.quality_score == 68.0
    assert a.short_strike == Decimal("5995")
    assert a.expiration == "2026-01-05"


def test_bear_call_on_negative_drift():
    alerts = GexCreditSpreadEngine().generate("SPX", _metrics(drift=-1.0), _chain(), DAY)
    assert [a.strategy for a in alerts] == [StrategyType.BEAR_CALL_SPREAD]
    a = alerts[0]
    assert a.short_strike == Decimal("6050")
    assert a.legs[1].strike == Decimal("6055")
    assert a.net_credit == Decimal("1.00")
    assert a.max_loss == Decimal("4.00")
    assert a.status == AlertStatus.ACTIVE
    assert a.quality_score == 84.0


def test_stable_flat_drift_emits_condor_and_both_verticals():
    alerts = GexCreditSpreadEngine().generate("SPX", _metrics(regime="stable"), _chain(), DAY)
    assert [a.strategy for a in alerts] == [
        StrategyType.IRON_CONDOR,
        StrategyType.BULL_PUT_SPREAD,
        StrategyType.BEAR_CALL_SPREAD,
    ]
    ic = alerts[0]
    assert len(ic.legs) == 4
    assert ic.net_credit == Decimal("2.50")
    assert ic.max_loss == Decimal("2.50")
    assert ic.probability == 83.0
    assert [leg.strike for leg in ic.short_legs()] == [Decimal("5995"), Decimal("6050")]


def test_volatile_regime_emits_warning_only():
    alerts = GexCreditSpreadEngine().generate("SPX", _metrics(regime="volatile"), _chain(), DAY)
    assert len(alerts) == 1
    assert alerts[0].is_warning
    assert alerts[0].legs == ()


def test_min_credit_filters_spread():
    engine = GexCreditSpreadEngine(min_credit=Decimal("1.50"))
    assert engine.generate("SPX", _metrics(drift=1.0), _chain(), DAY) == []


def test_missing_long_leg_skips_spread():
    quotes = [q for q in _QUOTES if q[0] != 5990]
    assert GexCreditSpreadEngine().generate("SPX", _metrics(drift=1.0), _chain(quotes=quotes), DAY) == []


@pytest.mark.parametrize(
    "ts",
    [
        "2026-01-05T09:00:00",  # pre-market
        "2026-01-05T16:00:00",  # after hours
        "2026-01-03T10:00:00",  # Saturday
    ],
)
def test_no_alerts_outside_trading_window(ts):
    assert GexCreditSpreadEngine().generate("SPX", _metrics(drift=1.0), _chain(ts=ts), DAY) == []


def test_aware_timestamp_is_converted_to_eastern():
    # 15:00 UTC is 10:00 ET in January
    alerts = GexCreditSpreadEngine().generate(
        "SPX", _metrics(drift=1.0), _chain(ts="2026-01-05T15:00:00+00:00"), DAY
    )
    assert len(alerts) == 1


def test_closing_window_still_generates():
    alerts = GexCreditSpreadEngine().generate("SPX", _metrics(drift=1.0), _chain(ts="2026-01-05T15:50:00"), DAY)
    assert len(alerts) == 1
