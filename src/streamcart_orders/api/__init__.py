"""
streamcart_orders.api

API package for the StreamCart order service.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring, error mapping and request/response models.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer should remain thin: request validation + identity + delegation to services.
