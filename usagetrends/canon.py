from __future__ import annotations
from enum import Enum
from typing import Final

import pandas as pd

from . import exceptions


class Device(str, Enum):
    """Closed set of metered appliances."""

    FRIDGE = "fridge"
    OVEN = "oven"
    LIGHTS = "lights"
    EV_CHARGER = "ev_charger"

    @property
    def label(self) -> str:
        # wire name used by the dashboard payloads
        return self.value.replace("_", " ")

    @classmethod
    def parse(cls, value: object) -> "Device":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace(" ", "_")
        try:
            return cls(key)
        except ValueError:
            raise exceptions.ValidationError(
                f"Unknown device {value!r}. Expected one of: "
                f"{', '.join(d.value for d in cls)}."
            ) from None


DEVICES: Final[tuple[Device, ...]] = tuple(Device)
# frames carry plain device values; Device members stay at the edges
DEVICE_NAMES: Final[tuple[str, ...]] = tuple(d.value for d in Device)

INDEX_NAME: Final[str] = "timestamp"
REQUIRED_COLS: Final[list[str]] = ["device", "usage_kwh"]
DEFAULT_TZ: Final[str] = "UTC"
COMMON_TIMESTAMP_NAMES = ("timestamp", "t_start", "time", "ts", "datetime")

HOURS_PER_DAY: Final[int] = 24
DAYS_PER_WEEK: Final[int] = 7

# "today" is read one day ahead so same-day late arrivals fall inside the week
TODAY_OFFSET: Final[pd.Timedelta] = pd.Timedelta(days=1)
SPIKE_THRESHOLD_KWH: Final[float] = 5.0

DATE_FORMAT: Final[str] = "%Y-%m-%d"
MONTH_FORMAT: Final[str] = "%Y-%m"
