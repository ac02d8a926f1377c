"""
streamcart_orders.auth

Authentication package.

Responsibilities:
- Signed token issuing/validation.
- Password verifier hashing.
- Per-request identity resolution (middleware + FastAPI dependency).
"""

# Package marker.
