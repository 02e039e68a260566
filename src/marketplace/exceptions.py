"""Error taxonomy for the marketplace context.

``ValidationError`` is protean's own: local builder and value-object failures
never leave the process. Everything below describes what happened on the wire.
"""

from protean.exceptions import ValidationError

__all__ = [
    "MarketplaceError",
    "NotFoundError",
    "ParseError",
    "RemoteRejectionError",
    "TransportError",
    "UnknownEnumValueError",
    "ValidationError",
]


class MarketplaceError(Exception):
    """Base class for errors raised while talking to the marketplace."""


class ParseError(MarketplaceError):
    """An inbound wire document could not be turned into an entity."""

    def __init__(self, message: str, document=None) -> None:
        super().__init__(message)
        self.document = document


class UnknownEnumValueError(ParseError):
    """A wire token does not belong to a closed vocabulary."""

    def __init__(self, vocabulary: str, token) -> None:
        super().__init__(f"Unknown {vocabulary} value: {token!r}")
        self.vocabulary = vocabulary
        self.token = token


class TransportError(MarketplaceError):
    """Network, timeout, authentication or server-side failure.

    Safe to retry with backoff; the remote system has not recorded anything.
    """

    def __init__(self, message: str, status_code: int | None = None, retryable: bool = True) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class RemoteRejectionError(MarketplaceError):
    """The marketplace answered with a well-formed error.

    Never retried automatically. ``payload`` is the remote diagnostic body,
    kept exactly as received.
    """

    def __init__(self, message: str, status_code: int, payload=None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class NotFoundError(MarketplaceError):
    """A token no longer resolves to an entity."""

    def __init__(self, kind: str, token: str) -> None:
        super().__init__(f"{kind} {token!r} not found")
        self.kind = kind
        self.token = token
