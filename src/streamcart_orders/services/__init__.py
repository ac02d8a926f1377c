"""
streamcart_orders.services

Service-layer package.

Responsibilities:
- User directory: registration, credential checks, identity lookups.
- Order workflow: ownership enforcement, totals, persistence, event hand-off.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services depend on small store protocols so they can be exercised with in-memory fakes.
