from __future__ import annotations

import logging
from typing import List, Optional
from zoneinfo import ZoneInfo

import pandas as pd

from .. import buckets, canon
from ..aggregate import collect
from ..store import SampleStore
from .config import InsightConfig, default_config
from .evaluators import device_peak_hour, peak_hour, top_device, usage_spike
from .types import Insight, InsightEvaluator, WeekUsage

logger = logging.getLogger(__name__)

# Rendering order is part of the payload contract
EVALUATORS: tuple[InsightEvaluator, ...] = (
    top_device,
    peak_hour,
    usage_spike,
    device_peak_hour,
)


def _as_local(now: Optional[pd.Timestamp], tz: str) -> pd.Timestamp:
    if now is None:
        return pd.Timestamp.now(tz=ZoneInfo(tz))
    now = pd.Timestamp(now)
    if now.tz is None:
        return buckets.localise(now, tz)
    return now.tz_convert(ZoneInfo(tz))


def week_window(
    now: pd.Timestamp, config: InsightConfig
) -> tuple[pd.Timestamp, pd.Timestamp, pd.Timestamp]:
    """
    Return (previous_start, start, end) for a tz-aware now.

    The current week is the ISO week containing now + today_offset, and it
    ends at that shifted instant.
    """
    today = now + config.today_offset
    start = buckets.week_start(today.normalize())
    tzname = getattr(today.tz, "key", str(today.tz))
    previous_start = buckets.localise(
        start.tz_localize(None) - pd.DateOffset(weeks=1), tzname
    )
    return previous_start, start, today


def load_week(
    store: SampleStore, now: pd.Timestamp, config: InsightConfig
) -> WeekUsage:
    previous_start, start, end = week_window(now, config)
    week_keys = buckets.build_skeleton("weekly", start.tz_localize(None))
    hour_keys = [buckets.hour_key(h) for h in range(canon.HOURS_PER_DAY)]

    hourly = collect(store, start, end, "hour", hour_keys)
    daily = collect(store, start, end, "day", week_keys)
    previous = collect(
        store,
        previous_start,
        start,
        "day",
        buckets.build_skeleton("weekly", previous_start.tz_localize(None)),
    )
    return WeekUsage(
        start=start,
        end=end,
        previous_start=previous_start,
        hourly=hourly,
        daily=daily,
        previous_total=float(previous.frame.to_numpy().sum()),
    )


def generate_insights(
    store: SampleStore,
    *,
    now: Optional[pd.Timestamp] = None,
    config: Optional[InsightConfig] = None,
    tz: Optional[str] = None,
) -> List[Insight]:
    """Evaluate the weekly insights against a store.

    Always returns one Insight per evaluator, in EVALUATORS order. Store and
    evaluator errors propagate to the caller.
    """
    cfg = config or default_config()
    tz = tz or getattr(store, "tz", canon.DEFAULT_TZ)
    local_now = _as_local(now, tz)

    week = load_week(store, local_now, cfg)
    logger.info(
        "Generating insights for [%s, %s) (previous week %.2f kWh)",
        week.start,
        week.end,
        week.previous_total,
    )
    return [ev(week, config=cfg) for ev in EVALUATORS]
