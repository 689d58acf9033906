from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional, Protocol

import pandas as pd

from ..aggregate import Collected

if TYPE_CHECKING:
    from .config import InsightConfig


@dataclass
class Insight:
    """A single human-readable insight for the dashboard.

    - id: stable identifier (snake_case) for programmatic handling
    - emoji/title: UI-ready heading
    - insight: one-line finding, or None when there is nothing notable
    - metrics: small numeric bundle behind the text (not rendered)
    """

    id: str
    emoji: str
    title: str
    insight: Optional[str] = None
    metrics: Dict[str, float] = field(default_factory=dict)


@dataclass
class WeekUsage:
    """Usage for the current insight window and the week before it.

    hourly: hour-of-day buckets over [start, end)
    daily: the 7 dates of the current week over [start, end)
    """

    start: pd.Timestamp
    end: pd.Timestamp
    previous_start: pd.Timestamp
    hourly: Collected
    daily: Collected
    previous_total: float = 0.0


# Evaluator protocol for the fixed insight checks
class InsightEvaluator(Protocol):
    def __call__(self, week: WeekUsage, *, config: "InsightConfig") -> Insight: ...
