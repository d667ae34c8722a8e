# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""In-memory snapshot repository, optionally loaded from a JSON fixture file.

Fixture format: a JSON list of row objects using the store's column names
(``symbol``, ``snapshot_time``, ``strike``, ``type``, ``underlying_price``,
...), or ``{"rows": [...]}``. Same read semantics as the SQLite backend.
"""

from __future__ import annotations

import json
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from replay.data.snapshot_repository import (
    SnapshotRepositoryError,
    SnapshotStats,
    point_from_values,
    row_from_mapping,
)
from replay.models.snapshot import SnapshotPoint, SnapshotRow


class InMemorySnapshotRepository:
    """Holds rows per (symbol, snapshot_time); insertion order kept within a timestamp."""

    def __init__(self, rows: Optional[Iterable[SnapshotRow]] = None) -> None:
        self._rows: Dict[str, Dict[str, List[SnapshotRow]]] = defaultdict(lambda: defaultdict(list))
        # Capture points with no option rows (price recorded, chain empty)
        self._bare_points: Dict[str, Dict[str, Any]] = defaultdict(dict)
        if rows:
            self.insert_rows(rows)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "InMemorySnapshotRepository":
        return cls(row_from_mapping(r) for r in records)

    @classmethod
    def from_json(cls, path: Path) -> "InMemorySnapshotRepository":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SnapshotRepositoryError(f"Cannot read snapshot fixture {path}: {e}") from e
        if isinstance(data, dict):
            data = data.get("rows")
        if not isinstance(data, list):
            raise SnapshotRepositoryError(f"{path}: expected a list of rows")
        return cls.from_records(data)

    def insert_rows(self, rows: Iterable[SnapshotRow]) -> int:
        n = 0
        for r in rows:
            self._rows[r.symbol][r.snapshot_time].append(r)
            n += 1
        return n

    def add_point(self, symbol: str, timestamp: str, underlying_price: Any) -> None:
        """Register a capture time that has a price but no option rows."""
        point = point_from_values(timestamp, underlying_price)
        self._bare_points[symbol][point.timestamp] = point.underlying_price

    def list_distinct_snapshots(self, symbol: str) -> List[SnapshotPoint]:
        prices: Dict[str, Any] = dict(self._bare_points.get(symbol, {}))
        for ts, rows in self._rows.get(symbol, {}).items():
            seen = {r.underlying_price for r in rows if r.underlying_price is not None}
            if prices.get(ts) is not None:
                seen.add(prices[ts])
            if len(seen) > 1:
                raise SnapshotRepositoryError(
                    f"{symbol}: conflicting underlying prices at {ts}: {sorted(seen)}"
                )
            prices[ts] = next(iter(seen)) if seen else prices.get(ts)
        points = [point_from_values(ts, price) for ts, price in prices.items()]
        try:
            points.sort(key=lambda p: p.at)
        except TypeError as e:
            raise SnapshotRepositoryError(f"{symbol}: mixed naive and tz-aware snapshot times") from e
        return points

    def list_rows(self, symbol: str, timestamp: str) -> List[SnapshotRow]:
        return list(self._rows.get(symbol, {}).get(timestamp, []))

    def snapshot_stats(self, symbol: str) -> SnapshotStats:
        by_time = self._rows.get(symbol, {})
        times = sorted(ts for ts, rows in by_time.items() if rows)
        return SnapshotStats(
            symbol=symbol,
            total_records=sum(len(rows) for rows in by_time.values()),
            total_snapshots=len(times),
            first_snapshot=times[0] if times else None,
            last_snapshot=times[-1] if times else None,
        )


__all__ = ["InMemorySnapshotRepository"]
