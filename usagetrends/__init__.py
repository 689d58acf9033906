from . import (
    canon,
    exceptions,
    types,
    validate,
    ingest,
    buckets,
    store,
    aggregate,
    insights,
    formats,
)

__all__ = [
    "canon",
    "exceptions",
    "types",
    "validate",
    "ingest",
    "buckets",
    "store",
    "aggregate",
    "insights",
    "formats",
]
