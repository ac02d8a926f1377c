"""
streamcart_orders.auth.passwords

One-way salted password verifier (bcrypt).

Responsibilities:
- Hash raw passwords for storage; raw values are never stored or logged.
- Verify a raw password against a stored hash.
- Provide an equal-cost comparison for logins against unknown usernames.
"""

from __future__ import annotations

import asyncio

import bcrypt

# bcrypt only considers the first 72 bytes of input.
_MAX_BCRYPT_BYTES = 72


def _encode(raw: str) -> bytes:
    return raw.encode("utf-8")[:_MAX_BCRYPT_BYTES]


class PasswordHasher:
    def __init__(self, *, rounds: int = 12) -> None:
        self._rounds = rounds
        # Throwaway hash at the configured cost, used to equalise login timing.
        self._dummy_hash = bcrypt.hashpw(b"streamcart-dummy-password", bcrypt.gensalt(rounds))

    async def hash(self, raw: str) -> str:
        hashed = await asyncio.to_thread(bcrypt.hashpw, _encode(raw), bcrypt.gensalt(self._rounds))
        return hashed.decode("ascii")

    async def verify(self, raw: str, hashed: str) -> bool:
        try:
            return await asyncio.to_thread(bcrypt.checkpw, _encode(raw), hashed.encode("ascii"))
        except ValueError:
            # Corrupt/unknown hash format in storage counts as a mismatch.
            return False

    async def verify_dummy(self, raw: str) -> None:
        await asyncio.to_thread(bcrypt.checkpw, _encode(raw), self._dummy_hash)
