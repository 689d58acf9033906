"""Sample stores: time-range + device filter + grouped-sum primitive.

Stores are append-only. Every store buckets in one fixed local tz, so the
keys it returns line up with buckets.build_skeleton for that tz.
"""

from __future__ import annotations
import logging
import os
import sqlite3
import threading
from typing import Any, Iterable, Mapping, Optional, Protocol, Union

import pandas as pd

from . import buckets, canon, exceptions, ingest, validate
from .types import Granularity, Sample, SampleFrame

logger = logging.getLogger(__name__)

GROUPED_COLS = ["bucket", "device", "usage_kwh"]
_EPOCH = pd.Timestamp("1970-01-01", tz="UTC")

SampleInput = Union[pd.DataFrame, Iterable[Union[Sample, Mapping[str, Any]]]]


class SampleStore(Protocol):
    tz: str

    def sum_grouped_by(
        self,
        start: pd.Timestamp,
        end: pd.Timestamp,
        granularity: Granularity,
        device: Optional[canon.Device] = None,
    ) -> pd.DataFrame:
        """Summed usage per observed (bucket, device) within [start, end)."""
        ...

    def insert_batch(self, samples: SampleInput) -> int: ...


def to_sample_frame(samples: SampleInput, tz: str) -> SampleFrame:
    if isinstance(samples, pd.DataFrame):
        frame = ingest.from_dataframe(samples, tz=tz)
    else:
        frame = ingest.from_records(samples, tz=tz)
    validate.assert_samples(frame)
    return frame


def empty_grouped() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "bucket": pd.Series([], dtype=object),
            "device": pd.Series([], dtype=object),
            "usage_kwh": pd.Series([], dtype=float),
        }
    )


class FrameStore:
    """In-memory store backed by a single SampleFrame."""

    def __init__(
        self, samples: Optional[SampleInput] = None, *, tz: str = canon.DEFAULT_TZ
    ):
        self.tz = tz
        self._lock = threading.Lock()
        self._frame: SampleFrame = ingest.empty_sample_frame(tz)
        if samples is not None:
            self.insert_batch(samples)

    def __len__(self) -> int:
        return len(self._frame)

    def insert_batch(self, samples: SampleInput) -> int:
        frame = to_sample_frame(samples, self.tz)
        if frame.empty:
            return 0
        with self._lock:
            current = self._frame
            merged = pd.concat([current, frame]) if len(current) else frame
            # swap in a new frame; readers keep whichever snapshot they started with
            self._frame = merged.sort_index(kind="stable")
            total = len(self._frame)
        logger.debug("Inserted %d samples (total %d)", len(frame), total)
        return len(frame)

    def sum_grouped_by(
        self,
        start: pd.Timestamp,
        end: pd.Timestamp,
        granularity: Granularity,
        device: Optional[canon.Device] = None,
    ) -> pd.DataFrame:
        df = self._frame
        idx = pd.DatetimeIndex(df.index)
        mask = (idx >= start) & (idx < end)
        if device is not None:
            mask &= (df["device"] == canon.Device.parse(device).value).to_numpy()
        d = df[mask]
        if d.empty:
            return empty_grouped()

        keys = buckets.bucket_keys(pd.DatetimeIndex(d.index), granularity)
        out = (
            d.assign(bucket=keys.to_numpy())
            .groupby(["bucket", "device"], sort=False)["usage_kwh"]
            .sum()
            .reset_index()
        )
        return out[GROUPED_COLS]


def _epoch_seconds(ts: pd.Timestamp | pd.DatetimeIndex):
    return (ts - _EPOCH).total_seconds()


class SQLiteStore:
    """
    sqlite3-backed store.

    Local day and hour are computed once at insert time so the grouped sums
    run entirely in SQL.
    """

    def __init__(self, path: str, *, tz: str = canon.DEFAULT_TZ):
        self.tz = tz
        self.path = path
        self._lock = threading.Lock()
        try:
            self._conn = self._connect(path)
        except sqlite3.Error as exc:
            raise exceptions.DataUnavailable(
                f"Cannot open sample store at {path}: {exc}"
            ) from exc

    @staticmethod
    def _connect(path: str) -> sqlite3.Connection:
        if path != ":memory:" and os.path.dirname(path):
            os.makedirs(os.path.dirname(path), exist_ok=True)
        conn = sqlite3.connect(path, check_same_thread=False)
        devices = ", ".join(f"'{d.value}'" for d in canon.DEVICES)
        conn.execute(
            f"""
        CREATE TABLE IF NOT EXISTS samples (
            ts REAL NOT NULL,            -- epoch seconds (UTC)
            local_day TEXT NOT NULL,     -- YYYY-MM-DD in store tz
            local_hour INTEGER NOT NULL, -- 0..23 in store tz
            device TEXT NOT NULL CHECK (device IN ({devices})),
            usage_kwh REAL NOT NULL CHECK (usage_kwh >= 0)
        );
        """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_samples_ts ON samples(ts);")
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_samples_device ON samples(device, ts);"
        )
        conn.commit()
        return conn

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def insert_batch(self, samples: SampleInput) -> int:
        frame = to_sample_frame(samples, self.tz)
        if frame.empty:
            return 0
        idx = pd.DatetimeIndex(frame.index)
        rows = list(
            zip(
                _epoch_seconds(idx).tolist(),
                buckets.bucket_keys(idx, "day").tolist(),
                idx.hour.tolist(),
                frame["device"].astype(str).tolist(),
                frame["usage_kwh"].astype(float).tolist(),
            )
        )
        try:
            with self._lock, self._conn:
                self._conn.executemany(
                    "INSERT INTO samples (ts, local_day, local_hour, device, usage_kwh)"
                    " VALUES (?, ?, ?, ?, ?)",
                    rows,
                )
        except sqlite3.Error as exc:
            raise exceptions.DataUnavailable(f"Sample insert failed: {exc}") from exc
        logger.debug("Inserted %d samples into %s", len(rows), self.path)
        return len(rows)

    def sum_grouped_by(
        self,
        start: pd.Timestamp,
        end: pd.Timestamp,
        granularity: Granularity,
        device: Optional[canon.Device] = None,
    ) -> pd.DataFrame:
        col = {"hour": "local_hour", "day": "local_day"}.get(granularity)
        if col is None:
            raise exceptions.InvalidArgument(f"Unknown granularity {granularity!r}.")

        sql = f"SELECT {col}, device, SUM(usage_kwh) FROM samples WHERE ts >= ? AND ts < ?"
        params: list[Any] = [_epoch_seconds(start), _epoch_seconds(end)]
        if device is not None:
            sql += " AND device = ?"
            params.append(canon.Device.parse(device).value)
        sql += f" GROUP BY {col}, device ORDER BY {col}"

        try:
            with self._lock:
                fetched = self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise exceptions.DataUnavailable(f"Sample query failed: {exc}") from exc

        if not fetched:
            return empty_grouped()
        out = pd.DataFrame(fetched, columns=GROUPED_COLS)
        if granularity == "hour":
            out["bucket"] = out["bucket"].map(buckets.hour_key)
        return out
