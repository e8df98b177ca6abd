from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Load .env from project root
load_dotenv(_PROJECT_ROOT / ".env")


@dataclass(frozen=True)
class CacheConfig:
    root_dir: Path = Path(os.getenv("VIBEMATCH_CACHE_DIR", str(_PROJECT_ROOT / "cache")))
    venue_ttl: timedelta = timedelta(days=7)
    vibe_ttl: timedelta = timedelta(days=30)


DEFAULT_CACHE_CONFIG = CacheConfig()
