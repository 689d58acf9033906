from __future__ import annotations

from .types import Insight, InsightEvaluator, WeekUsage
from .config import InsightConfig, default_config
from .engine import EVALUATORS, generate_insights, load_week, week_window

__all__ = [
    "Insight",
    "InsightEvaluator",
    "WeekUsage",
    "InsightConfig",
    "default_config",
    "EVALUATORS",
    "generate_insights",
    "load_week",
    "week_window",
]
