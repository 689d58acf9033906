from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, cast
from zoneinfo import ZoneInfo

import pandas as pd
import pydantic

from . import canon, exceptions, validate
from .types import Sample, SampleFrame

logger = logging.getLogger(__name__)


def _localise(idx: pd.DatetimeIndex, tz: str) -> pd.DatetimeIndex:
    if idx.tz is None:
        return idx.tz_localize(ZoneInfo(tz))
    return idx.tz_convert(ZoneInfo(tz))


def _record_stamp(ts: datetime, tz: str) -> pd.Timestamp:
    # records may mix offsets, so each one is placed in tz on its own
    if ts.tzinfo is None:
        return pd.Timestamp(ts).tz_localize(ZoneInfo(tz))
    return pd.Timestamp(ts.astimezone(timezone.utc)).tz_convert(ZoneInfo(tz))


def _auto_index(df: pd.DataFrame) -> pd.DataFrame:
    new = df.copy()

    # 1) A datetime index only needs the canonical name
    if isinstance(new.index, pd.DatetimeIndex):
        new.index.name = canon.INDEX_NAME
        return _reject_missing_timestamps(new)

    # 2) Otherwise look for a timestamp column
    cols = {str(c).lower(): c for c in new.columns}
    tcol = next((cols[k] for k in canon.COMMON_TIMESTAMP_NAMES if k in cols), None)
    if tcol is None:
        raise exceptions.ValidationError(
            "No timestamp column found and index is not datetime. "
            f"Expected one of: {', '.join(canon.COMMON_TIMESTAMP_NAMES)}."
        )
    try:
        new[tcol] = pd.to_datetime(new[tcol])
    except (TypeError, ValueError) as exc:
        raise exceptions.ValidationError(f"Unparseable timestamps: {exc}") from exc
    new = new.rename(columns={tcol: canon.INDEX_NAME}).set_index(canon.INDEX_NAME)
    return _reject_missing_timestamps(new)


def _reject_missing_timestamps(df: pd.DataFrame) -> pd.DataFrame:
    missing = pd.isna(df.index)
    if missing.any():
        rows = [int(i) for i in missing.nonzero()[0][:5]]
        raise exceptions.ValidationError(
            f"Unparseable or missing timestamps at rows {rows}."
        )
    return df


def empty_sample_frame(tz: str = canon.DEFAULT_TZ) -> SampleFrame:
    idx = pd.DatetimeIndex([], tz=ZoneInfo(tz), name=canon.INDEX_NAME)
    out = pd.DataFrame(
        {"device": pd.Series([], dtype=object), "usage_kwh": pd.Series([], dtype=float)},
        index=idx,
    )
    out.__class__ = SampleFrame
    return cast(SampleFrame, out)


def from_dataframe(df: pd.DataFrame, *, tz: str = canon.DEFAULT_TZ) -> SampleFrame:
    """
    Normalise a frame of samples to canon:
      - index: tz-aware 'timestamp', sorted
      - columns: device (Device), usage_kwh (float, non-negative)

    Unknown devices and invalid usage raise ValidationError; no row is dropped.
    """
    if df.empty:
        return empty_sample_frame(tz)

    df = _auto_index(df)
    for col in canon.REQUIRED_COLS:
        if col not in df.columns:
            raise exceptions.ValidationError(f"Missing required column: {col}")

    df = df.assign(
        device=df["device"].map(lambda v: canon.Device.parse(v).value)
    )
    usage = pd.to_numeric(df["usage_kwh"], errors="coerce")
    validate.assert_usage(usage)
    df = df.assign(usage_kwh=usage.astype(float))

    df.index = _localise(pd.DatetimeIndex(df.index), tz)
    df.index.name = canon.INDEX_NAME
    out = df[canon.REQUIRED_COLS].sort_index(kind="stable")
    out.__class__ = SampleFrame
    return cast(SampleFrame, out)


def from_records(
    records: Iterable[Sample | Mapping[str, Any]], *, tz: str = canon.DEFAULT_TZ
) -> SampleFrame:
    """Validate raw sample records one by one and build a SampleFrame."""
    samples: list[Sample] = []
    for i, rec in enumerate(records):
        if isinstance(rec, Sample):
            samples.append(rec)
            continue
        try:
            samples.append(Sample.model_validate(rec))
        except pydantic.ValidationError as exc:
            raise exceptions.ValidationError(
                f"Invalid sample at position {i}: {exc.errors()[0]['msg']}"
            ) from exc

    if not samples:
        return empty_sample_frame(tz)

    stamps = [_record_stamp(s.timestamp, tz) for s in samples]
    frame = pd.DataFrame(
        {
            canon.INDEX_NAME: pd.DatetimeIndex(stamps),
            "device": [s.device.value for s in samples],
            "usage_kwh": [s.usage_kwh for s in samples],
        }
    )
    logger.debug("Validated %d sample records", len(samples))
    return from_dataframe(frame, tz=tz)
