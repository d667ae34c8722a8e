# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Snapshot repository contract: ordered capture points and per-timestamp option rows.

Backends (SQLite, in-memory) implement :class:`SnapshotRepository`. Raw
records are validated here, at the boundary, so the engine only ever sees
typed :class:`SnapshotRow` / :class:`SnapshotPoint` values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Protocol

from replay.models.snapshot import (
    OptionType,
    SnapshotPoint,
    SnapshotRow,
    to_decimal,
)


class SnapshotRepositoryError(Exception):
    """Snapshot store unreachable or returned malformed data. Fatal for a run."""


@dataclass(frozen=True)
class SnapshotStats:
    """Coverage of the store for one symbol."""

    symbol: str
    total_records: int
    total_snapshots: int
    first_snapshot: Optional[str]
    last_snapshot: Optional[str]

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "totalRecords": self.total_records,
            "totalSnapshots": self.total_snapshots,
            "firstSnapshot": self.first_snapshot,
            "lastSnapshot": self.last_snapshot,
        }


class SnapshotRepository(Protocol):
    """Read-only access to recorded chain history."""

    def list_distinct_snapshots(self, symbol: str) -> List[SnapshotPoint]:
        """Return distinct capture points for symbol, ascending by time."""
        ...

    def list_rows(self, symbol: str, timestamp: str) -> List[SnapshotRow]:
        """Return all option rows recorded for symbol at timestamp."""
        ...

    def snapshot_stats(self, symbol: str) -> SnapshotStats:
        """Return record/snapshot counts and first/last capture time."""
        ...


def _int_field(raw: Mapping[str, Any], key: str) -> int:
    value = raw.get(key)
    if value is None or value == "":
        return 0
    return int(float(value))


def _float_field(raw: Mapping[str, Any], key: str) -> Optional[float]:
    value = raw.get(key)
    if value is None or value == "":
        return None
    return float(value)


def row_from_mapping(raw: Mapping[str, Any]) -> SnapshotRow:
    """Validate one stored record and build a :class:`SnapshotRow`.

    Raises
    ------
    SnapshotRepositoryError
        If a required field is missing or any field has the wrong shape.
    """
    try:
        symbol = str(raw["symbol"]).strip().upper()
        snapshot_time = str(raw["snapshot_time"])
        strike = to_decimal(raw["strike"])
        if strike is None:
            raise ValueError("strike is empty")
        return SnapshotRow(
            symbol=symbol,
            snapshot_time=snapshot_time,
            strike=strike,
            type=OptionType(str(raw["type"]).strip().upper()),
            expiration_date=str(raw.get("expiration_date") or ""),
            bid=to_decimal(raw.get("bid")),
            ask=to_decimal(raw.get("ask")),
            last=to_decimal(raw.get("last")),
            volume=_int_field(raw, "volume"),
            open_interest=_int_field(raw, "open_interest"),
            delta=_float_field(raw, "delta"),
            gamma=_float_field(raw, "gamma"),
            theta=_float_field(raw, "theta"),
            vega=_float_field(raw, "vega"),
            underlying_price=to_decimal(raw.get("underlying_price")),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise SnapshotRepositoryError(f"Malformed snapshot row {dict(raw)!r}: {e}") from e


def point_from_values(timestamp: Any, underlying_price: Any) -> SnapshotPoint:
    try:
        return SnapshotPoint(timestamp=str(timestamp), underlying_price=to_decimal(underlying_price))
    except (TypeError, ValueError) as e:
        raise SnapshotRepositoryError(
            f"Malformed snapshot point ({timestamp!r}, {underlying_price!r}): {e}"
        ) from e


def ensure_ascending(symbol: str, points: Iterable[SnapshotPoint]) -> List[SnapshotPoint]:
    """Check points are strictly increasing in time; return them as a list.

    Raises
    ------
    SnapshotRepositoryError
        On a duplicate timestamp, a backwards step, or mixed naive/aware times.
    """
    out = list(points)
    for prev, cur in zip(out, out[1:]):
        try:
            ordered = prev.at < cur.at
        except TypeError as e:
            raise SnapshotRepositoryError(
                f"{symbol}: cannot order {prev.timestamp!r} and {cur.timestamp!r}: {e}"
            ) from e
        if not ordered:
            raise SnapshotRepositoryError(
                f"{symbol}: snapshots not strictly ascending at {prev.timestamp!r} -> {cur.timestamp!r}"
            )
    return out


__all__ = [
    "SnapshotRepository",
    "SnapshotRepositoryError",
    "SnapshotStats",
    "ensure_ascending",
    "point_from_values",
    "row_from_mapping",
]
