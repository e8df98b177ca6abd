"""
Vibe layer.

Responsibilities:
- Read-through vibe profiles: cache hit, else generate and store.
- Heuristic profiles from categories and price when generation fails.
- Rank candidate venues against a free-text vibe description.
- Map vibe terms to listing search parameters.
"""
