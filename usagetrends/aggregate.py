"""Bucketed usage aggregation over a sample store."""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import pandas as pd

from . import buckets, canon, exceptions
from .store import SampleStore
from .types import BucketRow, Granularity, Period

logger = logging.getLogger(__name__)


@dataclass
class Collected:
    """Skeleton-aligned usage: one row per bucket key, one column per device."""

    frame: pd.DataFrame
    devices_seen: frozenset[canon.Device]
    dropped: int = 0

    @property
    def empty(self) -> bool:
        return not self.devices_seen


@dataclass
class TrendResult:
    period: Period
    reference: pd.Timestamp
    start: pd.Timestamp
    end: pd.Timestamp
    frame: pd.DataFrame  # index: bucket key, columns: device values
    total_usage: float
    device_breakdown: Dict[canon.Device, float]

    def rows(self) -> List[BucketRow]:
        out: List[BucketRow] = []
        for key, vals in self.frame.iterrows():
            per_device = {d: float(vals[d.value]) for d in canon.DEVICES}
            out.append(
                {
                    "bucket_key": str(key),
                    "per_device_totals": per_device,
                    "total": float(sum(per_device.values())),
                }
            )
        return out


def skeleton_frame(keys: Sequence[str]) -> pd.DataFrame:
    """Zero-filled bucket × device frame in skeleton order."""
    return pd.DataFrame(
        0.0,
        index=pd.Index(list(keys), name="bucket", dtype=object),
        columns=pd.Index(canon.DEVICE_NAMES, name="device", dtype=object),
    )


def query_store(
    store: SampleStore,
    start: pd.Timestamp,
    end: pd.Timestamp,
    granularity: Granularity,
    device: Optional[canon.Device] = None,
) -> pd.DataFrame:
    """Grouped sums from the store; any store failure surfaces as DataUnavailable."""
    try:
        return store.sum_grouped_by(start, end, granularity, device=device)
    except exceptions.DataUnavailable:
        raise
    except Exception as exc:
        raise exceptions.DataUnavailable(
            f"Store query failed for [{start}, {end}) by {granularity}: {exc}"
        ) from exc


def collect(
    store: SampleStore,
    start: pd.Timestamp,
    end: pd.Timestamp,
    granularity: Granularity,
    keys: Sequence[str],
    device: Optional[canon.Device] = None,
) -> Collected:
    """
    Merge the store's grouped sums onto the skeleton given by keys.

    Raw rows whose bucket is not a skeleton key are dropped rather than
    merged, so a store bucketing in another tz cannot double count.
    """
    frame = skeleton_frame(keys)
    raw = query_store(store, start, end, granularity, device=device)
    if raw.empty:
        return Collected(frame=frame, devices_seen=frozenset())

    raw = raw.assign(
        device=raw["device"].map(lambda v: canon.Device.parse(v).value)
    )
    known = raw["bucket"].isin(frame.index)
    dropped = int((~known).sum())
    if dropped:
        logger.debug(
            "Dropped %d raw rows outside the %s skeleton: %s",
            dropped,
            granularity,
            sorted(set(raw.loc[~known, "bucket"].astype(str))),
        )
    raw = raw[known]

    for bucket, dev, usage in raw[["bucket", "device", "usage_kwh"]].itertuples(
        index=False
    ):
        frame.at[bucket, dev] = float(usage)

    seen = frozenset(canon.Device(d) for d in raw["device"])
    return Collected(frame=frame, devices_seen=seen, dropped=dropped)


def aggregate(
    store: SampleStore,
    period: Period,
    reference: object,
    *,
    tz: Optional[str] = None,
) -> TrendResult:
    """
    Usage per bucket and device for the period containing reference.

    The result always has one row per skeleton bucket, zero-filled where
    the store has no data. Values are kept at full precision.
    """
    tz = tz or getattr(store, "tz", canon.DEFAULT_TZ)
    ref = buckets.parse_reference(period, reference)
    start, end = buckets.resolve_range(period, ref, tz)
    keys = buckets.build_skeleton(period, ref)
    logger.info("Aggregating %s usage for [%s, %s)", period, start, end)

    collected = collect(store, start, end, buckets.granularity_for(period), keys)
    frame = collected.frame

    breakdown = {d: float(frame[d.value].sum()) for d in canon.DEVICES}
    total = float(frame.to_numpy().sum())

    return TrendResult(
        period=period,
        reference=ref,
        start=start,
        end=end,
        frame=frame,
        total_usage=total,
        device_breakdown=breakdown,
    )
