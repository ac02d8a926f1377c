"""
streamcart_orders.events

Downstream notification package.

Responsibilities:
- Order-created event schema.
- Best-effort, non-blocking publisher onto the partitioned event channel.
"""

# Package marker.
