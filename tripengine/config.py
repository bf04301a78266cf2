from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

_DEFAULT_PLACES_CSV = Path(__file__).resolve().parent / "data" / "places.csv"


@dataclass(frozen=True)
class EngineConfig:
    segment_cache_ttl: float = float(os.getenv("TRIPENGINE_SEGMENT_CACHE_TTL", "3600"))
    segment_cache_size: int = int(os.getenv("TRIPENGINE_SEGMENT_CACHE_SIZE", "500"))
    city_cache_ttl: float = float(os.getenv("TRIPENGINE_CITY_CACHE_TTL", "1800"))
    city_cache_size: int = int(os.getenv("TRIPENGINE_CITY_CACHE_SIZE", "50"))
    city_radius_m: int = int(os.getenv("TRIPENGINE_CITY_RADIUS_M", "15000"))
    places_csv: Path = Path(os.getenv("TRIPENGINE_PLACES_CSV", str(_DEFAULT_PLACES_CSV)))
    log_level: str = os.getenv("TRIPENGINE_LOG_LEVEL", "INFO")
    buffer_minutes: int = 15
    meal_minutes: int = 60
    cluster_walk_minutes: int = 15


DEFAULT_ENGINE_CONFIG = EngineConfig()
