"""Runtime configuration, read from the environment.

    MARKETPLACE_TRANSPORT    "fake" (default) or "http"
    MARKETPLACE_API_URL      base URL of the marketplace API
    MARKETPLACE_USER         API user
    MARKETPLACE_PASSWORD     API password
    MARKETPLACE_TIMEOUT      request timeout in seconds (default 30)
    MARKETPLACE_MAX_WORKERS  tokens processed concurrently (default 1)
"""

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Endpoints:
    """URL templates, relative to the API base URL."""

    token: str = "/api/token"
    orders_by_status: str = "/api/orders/{status}"
    order_detail: str = "/api/orders/withoutShipmentDetail/{token}"
    order_acknowledge: str = "/api/orders/{token}/acknowledge"
    order_ship: str = "/api/orders/{token}/shipped"
    returns_by_status: str = "/api/returns/{status}"
    return_detail: str = "/api/returns/state/{token}"
    return_complete: str = "/api/returns/{token}/complete"
    refunds_by_status: str = "/api/refunds/{status}"
    refund_detail: str = "/api/refunds/state/{token}"
    refund_create: str = "/api/refunds/{token}/{alt_refund_id}"


@dataclass(frozen=True)
class Settings:
    transport: str = "fake"
    api_url: str = "https://merchant-api.example.com"
    user: str = ""
    password: str = ""
    timeout: float = 30.0
    max_workers: int = 1
    endpoints: Endpoints = field(default_factory=Endpoints)


def load_settings(environ=None) -> Settings:
    env = os.environ if environ is None else environ
    defaults = Settings()
    return Settings(
        transport=env.get("MARKETPLACE_TRANSPORT", defaults.transport),
        api_url=env.get("MARKETPLACE_API_URL", defaults.api_url).rstrip("/"),
        user=env.get("MARKETPLACE_USER", defaults.user),
        password=env.get("MARKETPLACE_PASSWORD", defaults.password),
        timeout=float(env.get("MARKETPLACE_TIMEOUT", defaults.timeout)),
        max_workers=max(1, int(env.get("MARKETPLACE_MAX_WORKERS", defaults.max_workers))),
    )
