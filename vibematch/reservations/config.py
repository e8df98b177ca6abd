from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class ReservationConfig:
    opentable_api_key: str = os.getenv("OPENTABLE_API_KEY", "")
    resy_api_key: str = os.getenv("RESY_API_KEY", "")
    resy_auth_token: str = os.getenv("RESY_AUTH_TOKEN", "")
    sevenrooms_api_key: str = os.getenv("SEVENROOMS_API_KEY", "")
    timeout: float = 10.0


DEFAULT_RESERVATION_CONFIG = ReservationConfig()
