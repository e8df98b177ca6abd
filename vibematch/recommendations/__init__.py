"""
Recommendation engine.

Responsibilities:
- Define venue, vibe-profile, session and response models.
- Walk a caller-held swipe session through a candidate pool.
- Orchestrate listing lookups, vibe analysis and matching with fallbacks.
"""
