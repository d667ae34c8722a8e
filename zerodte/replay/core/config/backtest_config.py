# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Backtest and recorder config: symbol, spread construction, recorder cadence.

Defaults come from the environment; an optional YAML file can override them
per run. Keys (env / YAML):

    REPLAY_DEFAULT_SYMBOL            / default_symbol            (default SPX)
    REPLAY_SPREAD_WIDTH              / spread_width              (default 5 points)
    REPLAY_MIN_CREDIT                / min_credit                (default 0.20)
    REPLAY_RECORD_INTERVAL_SECONDS   / record_interval_seconds   (default 60)
    REPLAY_DB_PATH                   / db_path
    REPLAY_REPORT_PATH               / report_path

CONTRACT_MULTIPLIER is fixed: reports are only comparable with 100 shares per
contract.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from replay.core.config.paths import DB_PATH, REPORT_PATH

logger = logging.getLogger(__name__)

CONTRACT_MULTIPLIER: int = 100


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


def _decimal_env(name: str, default: str) -> Decimal:
    raw = os.getenv(name, "").strip()
    if not raw:
        return Decimal(default)
    try:
        return Decimal(raw)
    except ArithmeticError:
        logger.warning("[CONFIG] Ignoring non-numeric %s=%r", name, raw)
        return Decimal(default)


DEFAULT_SYMBOL: str = os.getenv("REPLAY_DEFAULT_SYMBOL", "SPX").strip().upper() or "SPX"
SPREAD_WIDTH: Decimal = _decimal_env("REPLAY_SPREAD_WIDTH", "5")
MIN_CREDIT: Decimal = _decimal_env("REPLAY_MIN_CREDIT", "0.20")
RECORD_INTERVAL_SECONDS: int = _int_env("REPLAY_RECORD_INTERVAL_SECONDS", 60)


@dataclass(frozen=True)
class BacktestSettings:
    """Resolved settings for one CLI invocation."""

    default_symbol: str = DEFAULT_SYMBOL
    spread_width: Decimal = SPREAD_WIDTH
    min_credit: Decimal = MIN_CREDIT
    record_interval_seconds: int = RECORD_INTERVAL_SECONDS
    db_path: Path = DB_PATH
    report_path: Path = REPORT_PATH


_COERCE = {
    "default_symbol": lambda v: str(v).strip().upper(),
    "spread_width": lambda v: Decimal(str(v)),
    "min_credit": lambda v: Decimal(str(v)),
    "record_interval_seconds": int,
    "db_path": Path,
    "report_path": Path,
}


def load_settings(config_path: Optional[Path] = None) -> BacktestSettings:
    """Build settings from env defaults, overlaid with a YAML mapping if given.

    Raises
    ------
    FileNotFoundError
        If ``config_path`` is given but does not exist.
    ValueError
        If the YAML document is not a mapping or a value cannot be coerced.
    """
    if config_path is None:
        return BacktestSettings()

    path = Path(config_path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"{path}: invalid YAML: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a mapping at top level, got {type(raw).__name__}")

    known = {f.name for f in fields(BacktestSettings)}
    overrides: Dict[str, Any] = {}
    for key, value in raw.items():
        if key not in known:
            logger.warning("[CONFIG] Unknown key %r in %s ignored", key, path)
            continue
        if value is None:
            continue
        try:
            overrides[key] = _COERCE[key](value)
        except (ArithmeticError, TypeError, ValueError) as e:
            raise ValueError(f"{path}: invalid value for {key}: {value!r}") from e

    logger.info("[CONFIG] Loaded %d setting(s) from %s", len(overrides), path)
    return BacktestSettings(**overrides)


__all__ = [
    "BacktestSettings",
    "CONTRACT_MULTIPLIER",
    "DEFAULT_SYMBOL",
    "MIN_CREDIT",
    "RECORD_INTERVAL_SECONDS",
    "SPREAD_WIDTH",
    "load_settings",
]
