# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Signal generation: engine contract, reference GEX credit-spread engine, GEX metrics."""

from replay.signals.engine import (
    GexCreditSpreadEngine,
    MetricsFn,
    SignalEngine,
    find_target_expiration,
)
from replay.signals.gex import GexMetrics, compute_gex_metrics, expected_move

__all__ = [
    "GexCreditSpreadEngine",
    "GexMetrics",
    "MetricsFn",
    "SignalEngine",
    "compute_gex_metrics",
    "expected_move",
    "find_target_expiration",
]
