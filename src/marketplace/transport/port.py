"""Transport port for the authenticated HTTP collaborator.

Adapters own the base URL, credentials and auth headers. The core hands
them a path from ``Endpoints`` and a JSON-ready payload, and gets back a
``Response`` or a ``TransportError``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Response:
    """What came back from the marketplace."""

    status_code: int
    body: object = None
    headers: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class Transport(ABC):
    """Abstract transport interface."""

    @abstractmethod
    def get(self, url: str, headers: dict | None = None) -> Response:
        """Fetch ``url``. Raises ``TransportError`` if nothing came back."""
        ...

    @abstractmethod
    def post(self, url: str, payload, headers: dict | None = None) -> Response:
        """Post a JSON payload to ``url``."""
        ...

    @abstractmethod
    def put(self, url: str, payload, headers: dict | None = None) -> Response:
        """Put a JSON payload to ``url``."""
        ...
