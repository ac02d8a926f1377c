"""
streamcart_orders.api.routers

HTTP routers: health probes, public auth endpoints, owner-scoped order endpoints.
"""

# Package marker.
