"""Runtime settings for the usagetrends service."""

from __future__ import annotations
import os
from typing import List, Mapping, Optional

from pydantic import BaseModel

from . import canon

ENV_PREFIX = "USAGETRENDS_"


class Settings(BaseModel):
    """Store location, bucketing tz and HTTP binding."""

    db_path: str = "data/usage.db"
    tz: str = canon.DEFAULT_TZ

    host: str = "127.0.0.1"
    port: int = 3000
    # comma separated in the environment
    cors_origins: List[str] = []

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for name in cls.model_fields:
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is None:
                continue
            if name == "cors_origins":
                values[name] = [o.strip() for o in raw.split(",") if o.strip()]
            else:
                values[name] = raw
        return cls.model_validate(values)


settings = Settings.from_env()
