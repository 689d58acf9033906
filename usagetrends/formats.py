"""JSON presentation of trend and insight results.

Rounding to 2 dp happens here and nowhere upstream.
"""

from __future__ import annotations
from typing import Iterable, List

from . import canon
from .aggregate import TrendResult
from .insights.types import Insight
from .types import InsightPayload, TrendPayload, TrendPoint


def _r2(x: float) -> float:
    return round(float(x), 2)


def to_trend_payload(result: TrendResult) -> TrendPayload:
    data: List[TrendPoint] = []
    for row in result.rows():
        point: TrendPoint = {"x": row["bucket_key"]}
        for d in canon.DEVICES:
            point[d.label] = _r2(row["per_device_totals"][d])
        data.append(point)

    return {
        "total_usage_kwh": f"{result.total_usage:.2f}",
        "device_breakdown": {
            d.label: _r2(result.device_breakdown[d]) for d in canon.DEVICES
        },
        "data": data,
    }


def to_insight_payload(insights: Iterable[Insight]) -> List[InsightPayload]:
    return [
        {"emoji": i.emoji, "title": i.title, "insight": i.insight} for i in insights
    ]
