"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build vibe-analysis prompts from venue details and reviews.
- Build vibe-matching prompts from a description and candidate profiles.
- Raise typed failures on unusable output so callers can fall back.
"""
