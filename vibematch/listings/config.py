from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class YelpConfig:
    api_key: str = os.getenv("YELP_API_KEY", "")
    base_url: str = "https://api.yelp.com/v3"
    timeout: float = 10.0
    max_retries: int = 3
    review_limit: int = 50
    radius: int = 5000


DEFAULT_YELP_CONFIG = YelpConfig()
