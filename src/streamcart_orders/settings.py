"""
streamcart_orders.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide env-driven settings for the API, auth, persistence and event layers.
- Hide secrets from repr/logging (JWT signing secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STREAMCART_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "streamcart-orders"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Auth
    jwt_alg: str = "HS256"
    jwt_secret: str = Field(default="dev-secret-change-me-to-32-bytes-or-more", repr=False)
    token_ttl_minutes: int = 15
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./streamcart.db"

    # Event channel
    kafka_enabled: bool = True
    kafka_bootstrap_servers: str = "localhost:9092"
    kafka_client_id: str = "streamcart-orders"
    order_created_topic: str = "order.created"
    kafka_send_timeout_seconds: float = 10.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# The token lifetime is part of the public contract (clients refresh by logging in
# again); change `token_ttl_minutes` only together with client guidance.
