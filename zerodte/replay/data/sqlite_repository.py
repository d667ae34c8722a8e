# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""SQLite-backed storage for recorded options-chain snapshots.

Thin, typed wrapper around ``sqlite3``:
- schema initialization (``options_chain_snapshots`` + index)
- batch insert of one capture (used by the recorder)
- the read queries of :class:`replay.data.snapshot_repository.SnapshotRepository`

Every ``sqlite3.Error`` surfaces as :class:`SnapshotRepositoryError`.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Iterable, List, Optional

from replay.core.config.paths import DB_PATH
from replay.data.snapshot_repository import (
    SnapshotRepositoryError,
    SnapshotStats,
    point_from_values,
    row_from_mapping,
)
from replay.models.snapshot import SnapshotPoint, SnapshotRow

logger = logging.getLogger(__name__)

_COLUMNS = (
    "symbol",
    "snapshot_time",
    "expiration_date",
    "strike",
    "type",
    "bid",
    "ask",
    "last",
    "volume",
    "open_interest",
    "delta",
    "gamma",
    "theta",
    "vega",
    "underlying_price",
)


def _num(value):
    return None if value is None else float(value)


class SQLiteSnapshotRepository:
    """Snapshot store on a single SQLite file."""

    def __init__(self, db_path: Optional[Path] = None, *, read_only: bool = False) -> None:
        """Open (and if needed create) the snapshot database.

        Parameters
        ----------
        db_path:
            Path to the SQLite file. Defaults to ``DB_PATH``.
        read_only:
            Refuse to create a missing file. The backtest CLI opens the store
            this way so a typo in the path is a repository failure rather than
            an empty run.
        """
        if db_path is None:
            db_path = DB_PATH
        self.db_path = Path(db_path)
        if read_only:
            if not self.db_path.exists():
                raise SnapshotRepositoryError(f"Snapshot database not found: {self.db_path}")
        else:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_db()

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _get_connection(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise SnapshotRepositoryError(f"Cannot open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        conn = self._get_connection()
        try:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS options_chain_snapshots (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    symbol TEXT NOT NULL,
                    snapshot_time TEXT NOT NULL,
                    expiration_date TEXT,
                    strike REAL NOT NULL,
                    type TEXT NOT NULL,
                    bid REAL,
                    ask REAL,
                    last REAL,
                    volume INTEGER,
                    open_interest INTEGER,
                    delta REAL,
                    gamma REAL,
                    theta REAL,
                    vega REAL,
                    underlying_price REAL
                );
                CREATE INDEX IF NOT EXISTS idx_symbol_time
                    ON options_chain_snapshots(symbol, snapshot_time);
                """
            )
            # Stores written before underlying_price was recorded
            try:
                conn.execute("ALTER TABLE options_chain_snapshots ADD COLUMN underlying_price REAL")
            except sqlite3.OperationalError:
                pass  # Column already exists
            conn.commit()
        except sqlite3.Error as e:
            raise SnapshotRepositoryError(f"Cannot initialize schema in {self.db_path}: {e}") from e
        finally:
            conn.close()

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def insert_rows(self, rows: Iterable[SnapshotRow]) -> int:
        """Insert one capture's rows in a single transaction. Returns rows written."""
        params = [
            (
                r.symbol,
                r.snapshot_time,
                r.expiration_date,
                float(r.strike),
                r.type.value,
                _num(r.bid),
                _num(r.ask),
                _num(r.last),
                r.volume,
                r.open_interest,
                r.delta,
                r.gamma,
                r.theta,
                r.vega,
                _num(r.underlying_price),
            )
            for r in rows
        ]
        if not params:
            return 0
        placeholders = ", ".join("?" for _ in _COLUMNS)
        sql = f"INSERT INTO options_chain_snapshots ({', '.join(_COLUMNS)}) VALUES ({placeholders})"
        conn = self._get_connection()
        try:
            with conn:
                conn.executemany(sql, params)
        except sqlite3.Error as e:
            raise SnapshotRepositoryError(f"Insert failed ({len(params)} rows): {e}") from e
        finally:
            conn.close()
        return len(params)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def list_distinct_snapshots(self, symbol: str) -> List[SnapshotPoint]:
        """Distinct capture times with their underlying price, ascending.

        A timestamp recorded with two different non-null prices is malformed
        data and raises :class:`SnapshotRepositoryError`.
        """
        conn = self._get_connection()
        try:
            cur = conn.execute(
                """
                SELECT snapshot_time,
                       MIN(underlying_price) AS lo,
                       MAX(underlying_price) AS hi
                FROM options_chain_snapshots
                WHERE symbol = ?
                GROUP BY snapshot_time
                """,
                (symbol,),
            )
            records = cur.fetchall()
        except sqlite3.Error as e:
            raise SnapshotRepositoryError(f"Failed to list snapshots for {symbol}: {e}") from e
        finally:
            conn.close()

        points: List[SnapshotPoint] = []
        for rec in records:
            if rec["lo"] is not None and rec["lo"] != rec["hi"]:
                raise SnapshotRepositoryError(
                    f"{symbol}: conflicting underlying prices at {rec['snapshot_time']}: "
                    f"{rec['lo']} vs {rec['hi']}"
                )
            points.append(point_from_values(rec["snapshot_time"], rec["lo"]))
        try:
            points.sort(key=lambda p: p.at)
        except TypeError as e:
            raise SnapshotRepositoryError(f"{symbol}: mixed naive and tz-aware snapshot times") from e
        logger.debug("[REPO] %s: %d distinct snapshots", symbol, len(points))
        return points

    def list_rows(self, symbol: str, timestamp: str) -> List[SnapshotRow]:
        conn = self._get_connection()
        try:
            cur = conn.execute(
                f"""
                SELECT {', '.join(_COLUMNS)}
                FROM options_chain_snapshots
                WHERE symbol = ? AND snapshot_time = ?
                ORDER BY id
                """,
                (symbol, timestamp),
            )
            records = cur.fetchall()
        except sqlite3.Error as e:
            raise SnapshotRepositoryError(f"Failed to load rows for {symbol} @ {timestamp}: {e}") from e
        finally:
            conn.close()
        return [row_from_mapping(dict(rec)) for rec in records]

    def snapshot_stats(self, symbol: str) -> SnapshotStats:
        conn = self._get_connection()
        try:
            rec = conn.execute(
                """
                SELECT COUNT(*) AS total_records,
                       COUNT(DISTINCT snapshot_time) AS total_snapshots,
                       MIN(snapshot_time) AS first_snapshot,
                       MAX(snapshot_time) AS last_snapshot
                FROM options_chain_snapshots
                WHERE symbol = ?
                """,
                (symbol,),
            ).fetchone()
        except sqlite3.Error as e:
            raise SnapshotRepositoryError(f"Failed to read stats for {symbol}: {e}") from e
        finally:
            conn.close()
        return SnapshotStats(
            symbol=symbol,
            total_records=int(rec["total_records"] or 0),
            total_snapshots=int(rec["total_snapshots"] or 0),
            first_snapshot=rec["first_snapshot"],
            last_snapshot=rec["last_snapshot"],
        )


__all__ = ["SQLiteSnapshotRepository"]
