"""
Cache layer.

Responsibilities:
- Persist venue records and vibe analyses as one JSON file per key.
- Report records older than their namespace TTL as absent.
- Purge expired records on demand (``python -m vibematch.cache.sweep``).
"""
