"""Tests for environment-driven settings and logging setup."""

import logging

import structlog
from marketplace.config import Endpoints, load_settings
from marketplace.utils.logging import configure_logging, get_log_level


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings({})
        assert settings.transport == "fake"
        assert settings.timeout == 30.0
        assert settings.max_workers == 1
        assert settings.endpoints == Endpoints()

    def test_from_environment(self):
        settings = load_settings(
            {
                "MARKETPLACE_TRANSPORT": "http",
                "MARKETPLACE_API_URL": "https://merchant.example.test/",
                "MARKETPLACE_USER": "merchant",
                "MARKETPLACE_PASSWORD": "secret",
                "MARKETPLACE_TIMEOUT": "5",
                "MARKETPLACE_MAX_WORKERS": "4",
            }
        )
        assert settings.transport == "http"
        assert settings.api_url == "https://merchant.example.test"
        assert (settings.user, settings.password) == ("merchant", "secret")
        assert settings.timeout == 5.0
        assert settings.max_workers == 4

    def test_worker_count_is_at_least_one(self):
        assert load_settings({"MARKETPLACE_MAX_WORKERS": "0"}).max_workers == 1

    def test_endpoint_templates(self):
        endpoints = Endpoints()
        assert endpoints.order_ship.format(token="ord-1") == "/api/orders/ord-1/shipped"
        assert endpoints.refund_create.format(token="ord-1", alt_refund_id="a") == "/api/refunds/ord-1/a"


class TestLogging:
    def test_level_follows_environment(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("ENV", raising=False)
        monkeypatch.setenv("ENVIRONMENT", "production")
        assert get_log_level() == "INFO"

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        assert get_log_level() == "ERROR"

    def test_configure_logging(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        try:
            configure_logging(level="INFO", json=True)
            assert root.level == logging.INFO
            assert logging.getLogger("protean").level == logging.WARNING
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers = handlers
            root.setLevel(level)
            structlog.reset_defaults()
