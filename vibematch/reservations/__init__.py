"""
Reservations layer.

Responsibilities:
- Resolve a restaurant name to OpenTable, Resy and SevenRooms ids.
- Check table availability per platform and build booking links.
"""
