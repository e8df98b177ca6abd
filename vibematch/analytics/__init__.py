"""
Analytics layer.

Responsibilities:
- Record one event per recommendation flow in an in-process log.
- Summarise flow volumes, response times, vibe cache hits and fallback usage.
"""
