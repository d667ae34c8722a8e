# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Gamma exposure (GEX) metrics computed from one reconstructed chain.

Per strike, dealer gamma exposure is ``gamma * OI * 100 * spot``: positive
for calls, negative for puts (dealers short the puts clients buy). From the
strike profile we derive:

- call wall / put wall: strikes with the largest call GEX / most negative put GEX
- gamma flip: midpoint of the first strike pair where net GEX changes sign,
  otherwise the strike whose net GEX is closest to zero
- net institutional delta: negated client delta (dealer side)
- net drift: dealer delta normalized by spot, in percent
- regime: ``stable`` (net GEX > 0), ``volatile`` (< 0), ``neutral`` when
  flat or when spot sits within 0.2 % of the flip
- expected move: ATM straddle mid

Greeks are floats; this is context for the signal engine, not accounting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Sequence

from replay.models.snapshot import OptionChainSnapshot, OptionType, SnapshotRow

logger = logging.getLogger(__name__)

Regime = Literal["stable", "volatile", "neutral"]

FLIP_PROXIMITY_PCT = 0.002


@dataclass(frozen=True)
class GexMetrics:
    total_gex: float
    gamma_flip: float
    net_institutional_delta: float
    net_drift: float
    call_wall: float
    put_wall: float
    current_price: float
    regime: Regime
    expected_move: float = 0.0
    net_vanna: float = 0.0
    call_wall_liquidity: int = 0
    put_wall_liquidity: int = 0
    gamma_profile: List[Dict[str, float]] = field(default_factory=list)


@dataclass
class _StrikeExposure:
    call_gex: float = 0.0
    put_gex: float = 0.0
    call_delta: float = 0.0
    put_delta: float = 0.0
    net_vanna: float = 0.0

    @property
    def net_gex(self) -> float:
        return self.call_gex + self.put_gex


def _mid_float(row: SnapshotRow) -> float:
    m = row.mid
    return float(m) if m is not None else 0.0


def expected_move(options: Sequence[SnapshotRow], current_price: float) -> float:
    """ATM straddle mid; 0.0 when the ATM call or put is missing."""
    if not options:
        return 0.0
    strikes = sorted({float(o.strike) for o in options})
    atm = min(strikes, key=lambda s: abs(s - current_price))
    atm_call = next(
        (o for o in options if o.type == OptionType.CALL and abs(float(o.strike) - atm) < 1), None
    )
    atm_put = next(
        (o for o in options if o.type == OptionType.PUT and abs(float(o.strike) - atm) < 1), None
    )
    if atm_call is None or atm_put is None:
        logger.debug("[SIGNALS] No ATM pair at %s for expected move", atm)
        return 0.0
    return _mid_float(atm_call) + _mid_float(atm_put)


def _find_gamma_flip(profile: Dict[float, _StrikeExposure], default: float) -> float:
    flip = default
    closest = float("inf")
    strikes = sorted(profile)
    for lo, hi in zip(strikes, strikes[1:]):
        lo_gex = profile[lo].net_gex
        if lo_gex * profile[hi].net_gex < 0:
            return (lo + hi) / 2
        if abs(lo_gex) < closest:
            closest = abs(lo_gex)
            flip = lo
    return flip


def _open_interest_at(options: Sequence[SnapshotRow], kind: OptionType, strike: float) -> int:
    match: Optional[SnapshotRow] = next(
        (o for o in options if o.type == kind and abs(float(o.strike) - strike) < 0.5), None
    )
    return match.open_interest if match is not None else 0


def compute_gex_metrics(chain: OptionChainSnapshot) -> GexMetrics:
    """GEX metrics for the whole chain (all expirations)."""
    spot = float(chain.underlying_price)
    options = chain.options
    profile: Dict[float, _StrikeExposure] = {}

    max_call_gex = 0.0
    max_put_gex = 0.0
    call_wall = 0.0
    put_wall = 0.0

    for opt in options:
        strike = float(opt.strike)
        if strike == 0:
            continue
        oi = opt.open_interest
        gamma = opt.gamma or 0.0
        delta = opt.delta or 0.0
        vega = opt.vega or 0.0
        m = profile.setdefault(strike, _StrikeExposure())
        gex = gamma * oi * 100 * spot
        if opt.type == OptionType.CALL:
            m.call_gex += gex
            m.call_delta += delta * oi * 100
            m.net_vanna += vega * oi * 100
            if m.call_gex > max_call_gex:
                max_call_gex = m.call_gex
                call_wall = strike
        else:
            m.put_gex -= gex
            m.put_delta += delta * oi * 100
            m.net_vanna -= vega * oi * 100
            if m.put_gex < max_put_gex:
                max_put_gex = m.put_gex
                put_wall = strike

    total_gex = sum(m.net_gex for m in profile.values())
    net_vanna = sum(m.net_vanna for m in profile.values())
    gamma_flip = _find_gamma_flip(profile, spot)
    net_institutional_delta = -sum(m.call_delta + m.put_delta for m in profile.values())
    net_drift = (net_institutional_delta / spot) * 100 if spot else 0.0

    regime: Regime = "neutral"
    if total_gex > 0:
        regime = "stable"
    elif total_gex < 0:
        regime = "volatile"
    if spot and abs(spot - gamma_flip) / spot < FLIP_PROXIMITY_PCT:
        regime = "neutral"

    return GexMetrics(
        total_gex=total_gex,
        gamma_flip=gamma_flip,
        net_institutional_delta=net_institutional_delta,
        net_drift=net_drift,
        call_wall=call_wall,
        put_wall=put_wall,
        current_price=spot,
        regime=regime,
        expected_move=expected_move(options, spot),
        net_vanna=net_vanna,
        call_wall_liquidity=_open_interest_at(options, OptionType.CALL, call_wall),
        put_wall_liquidity=_open_interest_at(options, OptionType.PUT, put_wall),
        gamma_profile=[{"price": s, "netGex": profile[s].net_gex} for s in sorted(profile)],
    )


__all__ = ["GexMetrics", "Regime", "compute_gex_metrics", "expected_move"]
