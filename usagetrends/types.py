from __future__ import annotations
from datetime import datetime
from typing import Dict, List, Literal, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator

# pydantic only accepts typing.TypedDict from Python 3.12 on
from typing_extensions import TypedDict

from .canon import Device

Period = Literal["daily", "weekly", "monthly"]
Granularity = Literal["hour", "day"]


# Canonical sample frame
class SampleFrame(pd.DataFrame):
    """
    Canonical per-device usage samples.

    Expected:
      - DatetimeIndex named 'timestamp', tz-aware, sorted ascending
      - Columns: ['device', 'usage_kwh'] with device values from Device
    """

    @property
    def _constructor(self):
        return SampleFrame

    @property
    def device(self) -> pd.Series:
        return self["device"]

    @property
    def usage_kwh(self) -> pd.Series:
        return self["usage_kwh"]


class Sample(BaseModel):
    """One recorded usage sample, validated at the ingestion boundary."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    timestamp: datetime
    device: Device
    usage_kwh: float = Field(ge=0, allow_inf_nan=False)

    @field_validator("device", mode="before")
    @classmethod
    def _normalise_device(cls, v):
        # accept the dashboard spelling ("ev charger") as well as the enum value
        if isinstance(v, str):
            return v.strip().lower().replace(" ", "_")
        return v


class BucketRow(TypedDict):
    bucket_key: str
    per_device_totals: Dict[Device, float]
    total: float


# JSON payloads
TrendPoint = Dict[str, float | str]


class TrendPayload(TypedDict):
    total_usage_kwh: str
    device_breakdown: Dict[str, float]
    data: List[TrendPoint]


class InsightPayload(TypedDict):
    emoji: str
    title: str
    insight: Optional[str]
