"""Tests for the weekly insight window and the four rendered insights."""

import pandas as pd
import pytest

from usagetrends import formats
from usagetrends.insights import InsightConfig, generate_insights, week_window
from usagetrends.store import FrameStore

# Wednesday; with the one-day offset the window is [Mon 30 Sep, Thu 3 Oct 12:00)
NOW = pd.Timestamp("2024-10-02 12:00", tz="UTC")


def _store(*rows):
    return FrameStore(
        pd.DataFrame(rows, columns=["timestamp", "device", "usage_kwh"])
    )


def _texts(store, **kwargs):
    return [i.insight for i in generate_insights(store, now=NOW, **kwargs)]


def test_window_includes_shifted_today():
    prev, start, end = week_window(NOW, InsightConfig())
    assert start == pd.Timestamp("2024-09-30", tz="UTC")
    assert prev == pd.Timestamp("2024-09-23", tz="UTC")
    assert end == pd.Timestamp("2024-10-03 12:00", tz="UTC")


def test_sunday_rolls_into_next_week():
    """On a Sunday, 'today + 1 day' already belongs to the following week."""
    _, start, _ = week_window(pd.Timestamp("2024-10-06 20:00", tz="UTC"), InsightConfig())
    assert start == pd.Timestamp("2024-10-07", tz="UTC")


def test_no_data_this_week(empty_store):
    found = generate_insights(empty_store, now=NOW)
    assert [i.title for i in found] == [
        "Highest consuming device",
        "Peak usage hour this week",
        "Energy spikes",
        "Fridge peak usage",
    ]
    assert [i.insight for i in found] == ["Unknown with 0.00 kWh", "N/A", None, None]


def test_oven_spike_above_threshold():
    store = _store(
        *[(f"2024-10-01 18:{m:02d}", "oven", 1.5) for m in (0, 15, 30, 45)]
    )
    text = _texts(store)[2]
    assert text is not None
    assert "2024-10-01" in text and "6.00 kWh" in text


def test_oven_below_threshold_is_not_a_spike():
    store = _store(("2024-10-01 18:00", "oven", 2.45), ("2024-10-01 19:00", "oven", 2.45))
    assert _texts(store)[2] is None


def test_spike_threshold_is_configurable():
    store = _store(("2024-10-01 18:00", "oven", 4.9))
    assert _texts(store, config=InsightConfig(spike_threshold_kwh=4.0))[2] is not None


def test_top_device_peak_hour_and_fridge_peak():
    store = _store(
        ("2024-09-30 03:00", "fridge", 0.5),
        ("2024-09-30 07:00", "fridge", 0.2),
        ("2024-10-01 23:00", "ev charger", 1.0),
        ("2024-10-02 23:15", "ev charger", 1.0),
    )
    top, peak, spike, fridge = _texts(store)
    assert top == "ev charger with 2.00 kWh"
    assert peak == "23:00"
    assert spike is None
    assert fridge.startswith("Your fridge consumes the most energy around 3:00.")


def test_midnight_peak_hour_is_reported():
    store = _store(("2024-10-01 00:30", "lights", 0.5))
    assert _texts(store)[1] == "0:00"


def test_data_after_window_is_ignored():
    store = _store(("2024-10-04 08:00", "oven", 9.0))
    assert _texts(store) == ["Unknown with 0.00 kWh", "N/A", None, None]


def test_ties_go_to_first_key():
    store = _store(
        ("2024-10-01 05:00", "lights", 1.0),
        ("2024-10-01 04:00", "oven", 1.0),
    )
    top, peak, _, _ = _texts(store)
    assert top == "oven with 1.00 kWh"
    assert peak == "4:00"
    # same answer on every call
    assert _texts(store)[:2] == [top, peak]


def test_previous_week_total_is_kept():
    store = _store(
        ("2024-09-24 10:00", "fridge", 1.25),
        ("2024-09-29 23:45", "oven", 0.75),
        ("2024-10-01 10:00", "fridge", 0.5),
    )
    top = generate_insights(store, now=NOW)[0]
    assert top.metrics["previous_week_kwh"] == pytest.approx(2.0)
    assert top.insight == "fridge with 0.50 kWh"


def test_payload_shape(october_store):
    now = pd.Timestamp("2024-10-16 09:00", tz="UTC")
    payload = formats.to_insight_payload(generate_insights(october_store, now=now))
    assert len(payload) == 4
    for item in payload:
        assert set(item) == {"emoji", "title", "insight"}
    assert not payload[0]["insight"].startswith("Unknown")
    assert payload[1]["insight"] != "N/A"


def test_insights_bucket_in_store_tz():
    """A sample late on Sunday UTC is Monday morning in Brisbane."""
    store = FrameStore(
        [{"timestamp": "2024-09-29T15:00:00+00:00", "device": "fridge", "usage_kwh": 0.3}],
        tz="Australia/Brisbane",
    )
    top, peak, _, fridge = _texts(store)
    assert top == "fridge with 0.30 kWh"
    assert peak == "1:00"
    assert "around 1:00" in fridge


def test_zero_fridge_usage_has_no_peak_hour():
    store = _store(("2024-10-01 09:00", "fridge", 0.0))
    assert _texts(store)[3] is None
