"""
streamcart_orders.auth.models

Auth domain models.

Responsibilities:
- Define the caller identity value passed explicitly into every workflow call.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Identity:
    """
    Caller identity for exactly one request.

    Anonymous callers carry `subject=None`; authorization decisions are taken by the
    workflow layer, never by the code that builds this value.
    """

    subject: str | None
    is_authenticated: bool

    @classmethod
    def authenticated(cls, subject: str) -> Identity:
        return cls(subject=subject, is_authenticated=True)


ANONYMOUS = Identity(subject=None, is_authenticated=False)
