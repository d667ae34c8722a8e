# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Snapshot models: recorded option rows, distinct capture points, reconstructed chains.

All records are immutable. Prices and strikes are ``Decimal`` so that replayed
P&L is exactly reproducible across runs and backends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, List, Optional, Tuple


class OptionType(str, Enum):
    """Option right as recorded in the snapshot store."""

    CALL = "CALL"
    PUT = "PUT"


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a stored numeric value to ``Decimal``; ``None`` stays ``None``.

    Floats go through ``str`` so 6020.5 becomes Decimal("6020.5"), not its
    binary expansion. NaN and infinities are rejected with ``ValueError``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"not a number: {value!r}") from e
    if not d.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return d


def parse_snapshot_time(value: str) -> datetime:
    """Parse an ISO-8601 capture time (``Z`` suffix accepted)."""
    if not isinstance(value, str) or not value:
        raise ValueError(f"snapshot_time must be a non-empty ISO string, got {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def trading_day(value: str) -> date:
    """Trading day of a capture time: the date component as recorded."""
    return parse_snapshot_time(value).date()


@dataclass(frozen=True)
class SnapshotRow:
    """One option quote at one point in time, as persisted by the recorder."""

    symbol: str
    snapshot_time: str
    strike: Decimal
    type: OptionType
    expiration_date: str
    bid: Optional[Decimal] = None
    ask: Optional[Decimal] = None
    last: Optional[Decimal] = None
    volume: int = 0
    open_interest: int = 0
    delta: Optional[float] = None
    gamma: Optional[float] = None
    theta: Optional[float] = None
    vega: Optional[float] = None
    underlying_price: Optional[Decimal] = None

    def __post_init__(self) -> None:
        """Validate type, counts and timestamp."""
        if not isinstance(self.type, OptionType):
            raise ValueError(f"type must be CALL or PUT, got {self.type!r}")
        if self.volume < 0:
            raise ValueError(f"volume must be >= 0, got {self.volume}")
        if self.open_interest < 0:
            raise ValueError(f"open_interest must be >= 0, got {self.open_interest}")
        parse_snapshot_time(self.snapshot_time)

    @property
    def mid(self) -> Optional[Decimal]:
        """Bid/ask midpoint, falling back to last when the midpoint is zero or missing."""
        if self.bid is not None and self.ask is not None:
            m = (self.bid + self.ask) / 2
            if m:
                return m
        return self.last


@dataclass(frozen=True)
class SnapshotPoint:
    """One distinct capture time for a symbol with its recorded underlying price."""

    timestamp: str
    underlying_price: Optional[Decimal]
    at: datetime = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "at", parse_snapshot_time(self.timestamp))

    @property
    def day(self) -> date:
        return self.at.date()


@dataclass(frozen=True)
class OptionChainSnapshot:
    """Chain for one symbol at one capture time. Built per timestamp, never mutated."""

    symbol: str
    timestamp: str
    underlying_price: Decimal
    calls: Tuple[SnapshotRow, ...] = ()
    puts: Tuple[SnapshotRow, ...] = ()

    @property
    def options(self) -> List[SnapshotRow]:
        return list(self.calls) + list(self.puts)

    @property
    def day(self) -> date:
        return trading_day(self.timestamp)

    def expirations(self) -> List[str]:
        """Sorted distinct expiration dates present in the chain."""
        return sorted({r.expiration_date[:10] for r in self.options if r.expiration_date})

    def for_expiration(self, expiration: str) -> List[SnapshotRow]:
        """Calls then puts whose expiration date starts with ``expiration``."""
        return [r for r in self.options if (r.expiration_date or "").startswith(expiration)]


__all__ = [
    "OptionChainSnapshot",
    "OptionType",
    "SnapshotPoint",
    "SnapshotRow",
    "parse_snapshot_time",
    "to_decimal",
    "trading_day",
]
