"""Transport factory.

Provides get_transport() / set_transport() to swap implementations:
- FakeTransport for development and testing
- HttpTransport for a real marketplace
"""

from marketplace.config import load_settings
from marketplace.transport.port import Transport

_current_transport: Transport | None = None


def get_transport() -> Transport:
    """Return the current transport, created from settings on first use."""
    global _current_transport
    if _current_transport is None:
        settings = load_settings()
        if settings.transport == "fake":
            from marketplace.transport.fake_adapter import FakeTransport

            _current_transport = FakeTransport(settings.endpoints)
        elif settings.transport == "http":
            from marketplace.transport.http_adapter import HttpTransport

            _current_transport = HttpTransport.from_settings(settings)
        else:
            raise ValueError(f"Unknown transport: {settings.transport}")
    return _current_transport


def set_transport(transport: Transport) -> None:
    """Override the active transport (useful for tests)."""
    global _current_transport
    _current_transport = transport


def reset_transport() -> None:
    """Reset to the configured default."""
    global _current_transport
    _current_transport = None
