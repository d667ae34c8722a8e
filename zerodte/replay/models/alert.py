# Copyright 2026 ChakraOps
# SPDX-License-Identifier: MIT
"""Candidate alert models: multi-leg credit spread proposals from a signal engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Tuple

from replay.models.snapshot import OptionType

WARNING_ID_PREFIX = "warning"


class StrategyType(str, Enum):
    """Spread strategies a signal engine may propose."""

    BULL_PUT_SPREAD = "BULL_PUT_SPREAD"
    BEAR_CALL_SPREAD = "BEAR_CALL_SPREAD"
    IRON_CONDOR = "IRON_CONDOR"


class LegAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class AlertStatus(str, Enum):
    ACTIVE = "ACTIVE"
    WATCH = "WATCH"


@dataclass(frozen=True)
class Leg:
    """One option leg of a spread."""

    action: LegAction
    option_type: OptionType
    strike: Decimal
    price: Decimal
    delta: float = 0.0

    def __post_init__(self) -> None:
        if not isinstance(self.action, LegAction):
            raise ValueError(f"action must be BUY or SELL, got {self.action!r}")
        if not isinstance(self.option_type, OptionType):
            raise ValueError(f"option_type must be CALL or PUT, got {self.option_type!r}")


@dataclass(frozen=True)
class CandidateAlert:
    """Immutable spread proposal produced once per snapshot by a signal engine."""

    id: str
    strategy: StrategyType
    legs: Tuple[Leg, ...]
    net_credit: Decimal
    max_loss: Decimal
    max_profit: Decimal
    quality_score: float = 0.0
    strategy_label: str = ""
    expiration: Optional[str] = None
    status: AlertStatus = AlertStatus.ACTIVE
    probability: float = 0.0
    rationale: str = ""
    generated_at: Optional[str] = None
    context: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.strategy, StrategyType):
            raise ValueError(f"unknown strategy {self.strategy!r}")
        if not isinstance(self.legs, tuple):
            object.__setattr__(self, "legs", tuple(self.legs))
        if not isinstance(self.context, MappingProxyType):
            object.__setattr__(self, "context", MappingProxyType(dict(self.context)))

    @property
    def is_warning(self) -> bool:
        """Informational notice from the engine rather than a trade proposal."""
        return self.id.startswith(WARNING_ID_PREFIX)

    @property
    def label(self) -> str:
        return self.strategy_label or self.strategy.value

    def short_legs(self) -> List[Leg]:
        return [leg for leg in self.legs if leg.action == LegAction.SELL]

    @property
    def short_strike(self) -> Optional[Decimal]:
        """Strike of the first SELL leg; ``None`` when the alert has none."""
        shorts = self.short_legs()
        return shorts[0].strike if shorts else None


__all__ = [
    "AlertStatus",
    "CandidateAlert",
    "Leg",
    "LegAction",
    "StrategyType",
    "WARNING_ID_PREFIX",
]
