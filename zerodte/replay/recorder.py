# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Snapshot recorder: capture live chains into the snapshot store on a schedule.

The chain source (broker client) is external; anything with
``get_chain(symbol)`` returning the broker payload below works::

    {"underlyingPrice": 6020.5,
     "calls": [{"strikePrice", "putCall", "bid", "ask", "last", "totalVolume",
                "openInterest", "delta", "gamma", "theta", "vega",
                "expirationDate"}, ...],
     "puts": [...]}

:class:`RecorderLoop` is the scheduled task. It takes its clock and its stop
event from the caller, so tests drive it cycle by cycle.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Mapping, Optional, Protocol, Sequence

from replay.core.config.backtest_config import RECORD_INTERVAL_SECONDS
from replay.data.snapshot_repository import row_from_mapping
from replay.models.snapshot import SnapshotRow

logger = logging.getLogger(__name__)

MIN_OPEN_INTEREST = 100


class ChainSource(Protocol):
    def get_chain(self, symbol: str) -> Optional[Mapping[str, Any]]:
        ...


class SnapshotWriter(Protocol):
    def insert_rows(self, rows: Iterable[SnapshotRow]) -> int:
        ...


def _is_active(opt: Mapping[str, Any]) -> bool:
    return (opt.get("totalVolume") or 0) > 0 or (opt.get("openInterest") or 0) > MIN_OPEN_INTEREST


def flatten_chain(symbol: str, chain: Mapping[str, Any], captured_at: str) -> List[SnapshotRow]:
    """Active options of a broker chain as store rows stamped ``captured_at``.

    Raises
    ------
    SnapshotRepositoryError
        If an option entry cannot be converted to a valid row.
    """
    price = chain.get("underlyingPrice")
    if price is None:
        price = (chain.get("underlying") or {}).get("last")
    options = list(chain.get("calls") or []) + list(chain.get("puts") or [])
    rows: List[SnapshotRow] = []
    for opt in options:
        if not _is_active(opt):
            continue
        rows.append(
            row_from_mapping(
                {
                    "symbol": symbol,
                    "snapshot_time": captured_at,
                    "expiration_date": opt.get("expirationDate"),
                    "strike": opt.get("strikePrice", opt.get("strike")),
                    "type": opt.get("putCall"),
                    "bid": opt.get("bid"),
                    "ask": opt.get("ask"),
                    "last": opt.get("last"),
                    "volume": opt.get("totalVolume"),
                    "open_interest": opt.get("openInterest"),
                    "delta": opt.get("delta"),
                    "gamma": opt.get("gamma"),
                    "theta": opt.get("theta"),
                    "vega": opt.get("vega"),
                    "underlying_price": price,
                }
            )
        )
    return rows


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotRecorder:
    """Records one capture per symbol per call to :meth:`record_once`."""

    def __init__(
        self,
        source: ChainSource,
        store: SnapshotWriter,
        symbols: Sequence[str] = ("SPX",),
    ) -> None:
        self.source = source
        self.store = store
        self.symbols = [s.strip().upper() for s in symbols]

    def record_once(self, now: Optional[datetime] = None) -> dict:
        """Capture all symbols at ``now``. Returns ``{symbol: rows_written}``.

        A failing symbol is logged and reported as 0; the others still record.
        """
        captured_at = (now or _utc_now()).isoformat(timespec="seconds")
        written = {}
        for symbol in self.symbols:
            try:
                chain = self.source.get_chain(symbol)
                if not chain:
                    logger.warning("[RECORDER] No chain for %s at %s", symbol, captured_at)
                    written[symbol] = 0
                    continue
                rows = flatten_chain(symbol, chain, captured_at)
                written[symbol] = self.store.insert_rows(rows)
                logger.info("[RECORDER] Saved %d option records for %s at %s", written[symbol], symbol, captured_at)
            except Exception:
                logger.exception("[RECORDER] Error recording %s at %s", symbol, captured_at)
                written[symbol] = 0
        return written


class RecorderLoop:
    """Runs a recorder every ``interval_seconds`` until the stop event is set."""

    def __init__(
        self,
        recorder: SnapshotRecorder,
        interval_seconds: float = RECORD_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be > 0, got {interval_seconds}")
        self.recorder = recorder
        self.interval_seconds = interval_seconds
        self.clock = clock

    def run(
        self,
        stop_event: threading.Event,
        max_cycles: Optional[int] = None,
        wait: Optional[Callable[[float], Any]] = None,
    ) -> int:
        """Record immediately, then once per interval. Returns cycles completed.

        ``wait`` defaults to ``stop_event.wait`` so setting the event ends the
        sleep at once.
        """
        wait = wait or stop_event.wait
        cycles = 0
        logger.info("[RECORDER] Starting (interval %ss, symbols %s)", self.interval_seconds, self.recorder.symbols)
        while not stop_event.is_set():
            self.recorder.record_once(self.clock())
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            wait(self.interval_seconds)
        logger.info("[RECORDER] Stopped after %d cycle(s)", cycles)
        return cycles


__all__ = [
    "ChainSource",
    "RecorderLoop",
    "SnapshotRecorder",
    "SnapshotWriter",
    "flatten_chain",
]
