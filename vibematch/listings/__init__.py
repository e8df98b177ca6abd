"""
Listings layer.

Responsibilities:
- Search venues and fetch enhanced venue details from Yelp Fusion.
- Provide deterministic synthetic venues when Yelp is unavailable.
"""
