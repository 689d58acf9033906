from __future__ import annotations
import numpy as np
import pandas as pd
from typing import cast

from . import canon, exceptions


def assert_samples(df: pd.DataFrame) -> None:
    """Raise ValidationError unless df is a canonical sample frame."""
    if df.index.name != canon.INDEX_NAME:
        raise exceptions.ValidationError(f"Index must be '{canon.INDEX_NAME}'.")
    if not isinstance(df.index, pd.DatetimeIndex):
        raise exceptions.ValidationError("Index must be a DatetimeIndex.")
    tz_index = cast(pd.DatetimeIndex, df.index)
    if tz_index.tz is None:
        raise exceptions.ValidationError("Index must be tz-aware.")
    for col in canon.REQUIRED_COLS:
        exceptions.require(
            col in df.columns,
            f"Missing required column '{col}'.",
            exceptions.ValidationError,
        )
    if not df.index.is_monotonic_increasing:
        raise exceptions.ValidationError("Index must be sorted ascending.")
    assert_devices(df["device"])
    assert_usage(df["usage_kwh"])


def assert_devices(devices: pd.Series) -> None:
    unknown = sorted(
        {str(d) for d in devices.unique() if d not in canon.DEVICE_NAMES}
    )
    if unknown:
        raise exceptions.ValidationError(
            f"Unknown device values: {', '.join(unknown)}."
        )


def assert_usage(usage: pd.Series) -> None:
    values = pd.to_numeric(usage, errors="coerce").to_numpy(dtype=float)
    if not np.isfinite(values).all():
        raise exceptions.ValidationError("usage_kwh must be finite numbers.")
    if (values < 0).any():
        raise exceptions.ValidationError(
            "Negative kWh values detected; usage should be non-negative."
        )
