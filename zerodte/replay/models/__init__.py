# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Replay models (snapshot rows, chains, candidate alerts, evaluated trades)."""

from replay.models.alert import (
    AlertStatus,
    CandidateAlert,
    Leg,
    LegAction,
    StrategyType,
)
from replay.models.snapshot import (
    OptionChainSnapshot,
    OptionType,
    SnapshotPoint,
    SnapshotRow,
    parse_snapshot_time,
    to_decimal,
    trading_day,
)
from replay.models.trade import EvaluatedTrade, TradeResult

__all__ = [
    "AlertStatus",
    "CandidateAlert",
    "EvaluatedTrade",
    "Leg",
    "LegAction",
    "OptionChainSnapshot",
    "OptionType",
    "SnapshotPoint",
    "SnapshotRow",
    "StrategyType",
    "TradeResult",
    "parse_snapshot_time",
    "to_decimal",
    "trading_day",
]
