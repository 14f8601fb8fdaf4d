from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(slots=True)
class Settings:
    db_path: str = "offers.db"
    host: str = "0.0.0.0"
    port: int = 4000
    log_level: str = "INFO"
    # vendor `value` is reported in paise
    minor_units_per_major: int = 100
    rederive_facts: bool = True


def load_settings() -> Settings:
    return Settings(
        db_path=os.getenv("OFFER_AGENT_DB", "offers.db"),
        host=os.getenv("OFFER_AGENT_HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "4000")),
        log_level=os.getenv("OFFER_AGENT_LOG_LEVEL", "INFO").upper(),
        minor_units_per_major=int(os.getenv("OFFER_AGENT_MINOR_UNITS", "100")),
        rederive_facts=os.getenv("OFFER_AGENT_REDERIVE", "true").strip().lower() not in {"0", "false", "no"},
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
