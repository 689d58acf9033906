from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from ..canon import SPIKE_THRESHOLD_KWH, TODAY_OFFSET, Device


@dataclass
class InsightConfig:
    # "today" is shifted forward before the week is resolved
    today_offset: pd.Timedelta = TODAY_OFFSET

    # Per-day total above which a device is reported as spiking
    spike_device: Device = Device.OVEN
    spike_threshold_kwh: float = SPIKE_THRESHOLD_KWH

    # Device whose busiest hour is reported
    peak_device: Device = Device.FRIDGE


def default_config() -> InsightConfig:
    return InsightConfig()
