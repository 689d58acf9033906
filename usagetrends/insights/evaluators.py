"""The four weekly insights, in the order they are rendered.

Ties for a maximum go to the first key in canonical order: devices in
Device order, hours ascending, dates ascending.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd

from .. import buckets
from ..canon import Device
from .config import InsightConfig
from .types import Insight, WeekUsage

UNKNOWN_DEVICE = "Unknown"


def _first_max(s: pd.Series) -> tuple[str, float]:
    # idxmax returns the first occurrence, and s is in skeleton order
    key = s.idxmax()
    return str(key), float(s.loc[key])


def top_device(week: WeekUsage, *, config: InsightConfig) -> Insight:
    name, total = UNKNOWN_DEVICE, 0.0
    if not week.hourly.empty:
        key, total = _first_max(week.hourly.frame.sum(axis=0))
        name = Device(key).label
    return Insight(
        id="top_device",
        emoji="🔌",
        title="Highest consuming device",
        insight=f"{name} with {total:.2f} kWh",
        metrics={"total_kwh": total, "previous_week_kwh": week.previous_total},
    )


def peak_hour(week: WeekUsage, *, config: InsightConfig) -> Insight:
    hour: Optional[int] = None
    if not week.hourly.empty:
        key, _ = _first_max(week.hourly.frame.sum(axis=1))
        hour = buckets.key_hour(key)
    return Insight(
        id="peak_hour",
        emoji="⚡️",
        title="Peak usage hour this week",
        insight=buckets.hour_key(hour) if hour is not None else "N/A",
        metrics={"hour": float(hour)} if hour is not None else {},
    )


def usage_spike(week: WeekUsage, *, config: InsightConfig) -> Insight:
    device = config.spike_device
    day, total = _first_max(week.daily.frame[device.value])
    text = None
    if total > config.spike_threshold_kwh:
        text = (
            f"Your {device.label}’s energy use spiked by {total:.2f} kWh on {day}. "
            "Was it left on accidentally?"
        )
    return Insight(
        id="usage_spike",
        emoji="‼️",
        title="Energy spikes",
        insight=text,
        metrics={"max_day_kwh": total, "threshold_kwh": config.spike_threshold_kwh},
    )


def device_peak_hour(week: WeekUsage, *, config: InsightConfig) -> Insight:
    device = config.peak_device
    text = None
    key, peak = _first_max(week.hourly.frame[device.value])
    # zero-kWh samples alone do not make a busiest hour
    if device in week.hourly.devices_seen and peak > 0:
        text = (
            f"Your {device.label} consumes the most energy around {key}. "
            "Consider adjusting settings to save power."
        )
    return Insight(
        id="device_peak_hour",
        emoji="🔋",
        title=f"{device.label.capitalize()} peak usage",
        insight=text,
    )
