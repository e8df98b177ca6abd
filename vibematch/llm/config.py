from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class LLMConfig:
    api_key: str = os.getenv("GROQ_API_KEY", "")
    model: str = os.getenv("VIBEMATCH_LLM_MODEL", "llama-3.3-70b-versatile")
    timeout: float = 10.0
    max_tokens: int = 1024
    enabled: bool = os.getenv("VIBEMATCH_LLM_ENABLED", "true").lower() not in ("0", "false", "no")
    # Reviews quoted in the analysis prompt.
    review_limit: int = 5
    analysis_temperature: float = 0.7
    match_temperature: float = 0.3


DEFAULT_LLM_CONFIG = LLMConfig()
