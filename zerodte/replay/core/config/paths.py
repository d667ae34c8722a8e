# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Path configuration constants for the replay engine.

Single source of truth for the snapshot database and the default report
location. Both can be overridden through the environment.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

# This file is at: zerodte/replay/core/config/paths.py
# So BASE_DIR = Path(__file__).resolve().parents[3] = zerodte/
BASE_DIR = Path(__file__).resolve().parents[3]

logger = logging.getLogger(__name__)


def _path_env(name: str, default: Path) -> Path:
    raw = os.getenv(name, "")
    if raw and raw.strip():
        return Path(raw.strip())
    return default


# Snapshot database: replay/data/market_data.db (relative to project dir)
DB_PATH: Path = _path_env("REPLAY_DB_PATH", BASE_DIR / "replay" / "data" / "market_data.db")

# Report lands in the working directory unless overridden
REPORT_PATH: Path = _path_env("REPLAY_REPORT_PATH", Path.cwd() / "backtest_report.json")

logger.debug("[CONFIG] DB_PATH=%s REPORT_PATH=%s", DB_PATH, REPORT_PATH)

__all__ = ["BASE_DIR", "DB_PATH", "REPORT_PATH"]
