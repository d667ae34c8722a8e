# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Configuration package for the replay engine.

- paths: snapshot database and report locations
- backtest_config: spread construction, recorder cadence, YAML overrides
"""

from __future__ import annotations

from replay.core.config.backtest_config import (
    CONTRACT_MULTIPLIER,
    BacktestSettings,
    load_settings,
)
from replay.core.config.paths import BASE_DIR, DB_PATH, REPORT_PATH

__all__ = [
    "BASE_DIR",
    "BacktestSettings",
    "CONTRACT_MULTIPLIER",
    "DB_PATH",
    "REPORT_PATH",
    "load_settings",
]
