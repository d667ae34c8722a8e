# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Rebuild an options-chain snapshot from the flat rows of one capture time."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from replay.data.snapshot_repository import SnapshotRepositoryError
from replay.models.snapshot import (
    OptionChainSnapshot,
    OptionType,
    SnapshotPoint,
    SnapshotRow,
)

logger = logging.getLogger(__name__)


def _chain_order(row: SnapshotRow):
    return (row.expiration_date or "", row.strike)


def reconstruct_chain(
    symbol: str,
    point: SnapshotPoint,
    rows: Sequence[SnapshotRow],
) -> Optional[OptionChainSnapshot]:
    """Build an :class:`OptionChainSnapshot` for one (symbol, capture time).

    Returns ``None`` when the capture cannot seed a signal: no rows, or the
    underlying price is missing or zero. Rows belonging to another symbol or
    capture time mean the repository broke its contract and raise
    :class:`SnapshotRepositoryError`.
    """
    if not rows:
        return None
    price = point.underlying_price
    if price is None or price == 0:
        return None

    calls: List[SnapshotRow] = []
    puts: List[SnapshotRow] = []
    for r in rows:
        if r.symbol != symbol or r.snapshot_time != point.timestamp:
            raise SnapshotRepositoryError(
                f"Row for {r.symbol}@{r.snapshot_time} returned for {symbol}@{point.timestamp}"
            )
        if r.type == OptionType.CALL:
            calls.append(r)
        else:
            puts.append(r)

    calls.sort(key=_chain_order)
    puts.sort(key=_chain_order)
    return OptionChainSnapshot(
        symbol=symbol,
        timestamp=point.timestamp,
        underlying_price=price,
        calls=tuple(calls),
        puts=tuple(puts),
    )


__all__ = ["reconstruct_chain"]
