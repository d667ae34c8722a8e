# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Trading window for alert generation, evaluated at a snapshot's capture time.

- WEEKEND: Saturday or Sunday
- PRE_MARKET: before 9:30 AM ET
- ACTIVE: 9:30 AM - 3:45 PM ET
- CLOSING_WINDOW: 3:45 PM - 4:00 PM ET (still open)
- AFTER_HOURS: from 4:00 PM ET
"""

from __future__ import annotations

from datetime import datetime, time
from typing import Literal, NamedTuple

import pytz

ET = pytz.timezone("America/New_York")

WindowStatus = Literal["WEEKEND", "PRE_MARKET", "ACTIVE", "CLOSING_WINDOW", "AFTER_HOURS"]

MARKET_OPEN = time(9, 30)
MARKET_CLOSE = time(16, 0)
LAST_ALERT_TIME = time(15, 45)


class TradingWindow(NamedTuple):
    is_open: bool
    status: WindowStatus


def to_et(at: datetime) -> datetime:
    """Convert to ET; naive datetimes are taken as ET wall-clock time."""
    if at.tzinfo is None:
        return ET.localize(at)
    return at.astimezone(ET)


def get_trading_window(at: datetime) -> TradingWindow:
    """Trading window status at ``at``.

    Parameters
    ----------
    at:
        Capture time of the snapshot being replayed (naive = ET).
    """
    now = to_et(at)
    if now.weekday() >= 5:
        return TradingWindow(False, "WEEKEND")

    current = now.time()
    if current < MARKET_OPEN:
        return TradingWindow(False, "PRE_MARKET")
    if current >= MARKET_CLOSE:
        return TradingWindow(False, "AFTER_HOURS")
    if current >= LAST_ALERT_TIME:
        return TradingWindow(True, "CLOSING_WINDOW")
    return TradingWindow(True, "ACTIVE")


__all__ = ["ET", "TradingWindow", "WindowStatus", "get_trading_window", "to_et"]
