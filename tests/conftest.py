import numpy as np
import pandas as pd
import pytest

from usagetrends import exceptions
from usagetrends.store import GROUPED_COLS, FrameStore

TZ = "UTC"


def generate_mock_samples(start, end, interval_minutes=15, seed=7, tz=TZ):
    """Household usage samples on a fixed cadence, reproducible per seed.

    fridge: always on; oven: coin-flip around lunch and dinner;
    lights: mornings and evenings; ev charger: ~4 kWh spread over 22:00-02:00.
    """
    rng = np.random.default_rng(seed)
    idx = pd.date_range(
        start, end, freq=f"{interval_minutes}min", inclusive="left", tz=tz
    )
    rows = []
    for ts in idx:
        h = ts.hour
        rows.append((ts, "fridge", rng.uniform(0.025, 0.045)))
        if rng.random() < 0.5 and (12 <= h < 14 or 18 <= h < 20):
            rows.append((ts, "oven", rng.uniform(2.5, 3.5) / 4))
        if 15 <= h < 24 or 6 <= h <= 9:
            rows.append((ts, "lights", rng.uniform(0.01, 0.05)))
        if h >= 22 or h < 2:
            rows.append((ts, "ev charger", rng.uniform(3.5, 4.5) / (4 * 4)))
    return pd.DataFrame(rows, columns=["timestamp", "device", "usage_kwh"])


class StubStore:
    """Store double returning canned grouped rows and recording each query."""

    tz = TZ

    def __init__(self, rows=(), error=None):
        self.rows = list(rows)
        self.error = error
        self.calls = []

    def sum_grouped_by(self, start, end, granularity, device=None):
        self.calls.append((start, end, granularity, device))
        if self.error is not None:
            raise self.error
        return pd.DataFrame(self.rows, columns=GROUPED_COLS)

    def insert_batch(self, samples):
        raise NotImplementedError


@pytest.fixture
def mock_october():
    return generate_mock_samples("2024-10-01", "2024-11-01")


@pytest.fixture
def october_store(mock_october):
    return FrameStore(mock_october, tz=TZ)


@pytest.fixture
def empty_store():
    return FrameStore(tz=TZ)


@pytest.fixture
def stub_store():
    return StubStore


@pytest.fixture
def failing_store():
    return StubStore(error=exceptions.DataUnavailable("store timed out"))
