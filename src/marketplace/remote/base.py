"""Caller-facing API shared by every entity kind.

A remote module knows three things: how to poll tokens by status, how to
fetch one entity's detail, and how to submit a transition request. It turns
HTTP outcomes into the error taxonomy; the transport only reports what came
back.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from urllib.parse import quote

import structlog

from marketplace.codecs.common import validate
from marketplace.codecs.schemas import ErrorBody
from marketplace.config import Endpoints
from marketplace.exceptions import NotFoundError, ParseError, RemoteRejectionError, TransportError
from marketplace.lifecycle import EntityKind, Transition
from marketplace.shared.vocabulary import WireEnum
from marketplace.transport import get_transport
from marketplace.transport.port import Response, Transport

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Receipt:
    """What the marketplace acknowledged for one submitted transition."""

    token: str
    transition: Transition
    status_code: int
    reference: str | None = None
    warning: str | None = None


def error_message(response: Response) -> str:
    body = response.body
    if isinstance(body, dict):
        try:
            errors = validate(ErrorBody, body).errors
        except ParseError:
            errors = []
        if errors:
            return "; ".join(errors)
    if body:
        return str(body)
    return f"HTTP {response.status_code}"


def raise_for_status(response: Response, kind: EntityKind, token: str | None, action: str) -> None:
    """Classify a non-2xx response.

    404 on a token means it no longer resolves; other 4xx answers are
    rejections kept with their payload; 5xx is a retryable transport failure.
    """
    if response.ok:
        return
    code = response.status_code
    if code == 404 and token is not None:
        raise NotFoundError(kind.value, token)
    if 400 <= code < 500:
        raise RemoteRejectionError(
            f"Marketplace rejected {action} for {kind.value} {token}: {error_message(response)}",
            status_code=code,
            payload=response.body,
        )
    raise TransportError(
        f"Marketplace failed {action} for {kind.value} {token} with HTTP {code}",
        status_code=code,
        retryable=code >= 500,
    )


class RemoteEntity:
    """Base for the per-entity remote modules."""

    kind: EntityKind
    status_type: type[WireEnum]
    listing_endpoint: str
    detail_endpoint: str

    def __init__(self, transport: Transport | None = None, endpoints: Endpoints | None = None) -> None:
        self._transport = transport
        self.endpoints = endpoints or Endpoints()

    @property
    def transport(self) -> Transport:
        return self._transport or get_transport()

    def url(self, endpoint: str, **params) -> str:
        template = getattr(self.endpoints, endpoint)
        return template.format(**{name: quote(str(value), safe="") for name, value in params.items()})

    # Codec hooks
    def tokens_from_wire(self, document) -> list[str]:
        raise NotImplementedError

    def from_wire(self, document):
        raise NotImplementedError

    def poll_tokens(self, status, ascending: bool = True) -> Iterator[str]:
        """Tokens currently in ``status``.

        Lazy: nothing is requested until the first token is pulled, and every
        call queries the marketplace afresh.
        """
        status = self.status_type.from_wire(status)
        response = self.transport.get(self.url(self.listing_endpoint, status=status.to_wire()))
        raise_for_status(response, self.kind, None, f"poll {status.name}")

        tokens = self.tokens_from_wire(response.body)
        logger.debug("Polled tokens", kind=self.kind.value, status=status.name, count=len(tokens))
        yield from (tokens if ascending else reversed(tokens))

    def get_detail(self, token: str):
        response = self.transport.get(self.url(self.detail_endpoint, token=token))
        raise_for_status(response, self.kind, token, "fetch")
        return self.from_wire(response.body)

    def submit_transition(self, token: str, transition: Transition, request) -> Receipt:
        raise NotImplementedError

    def unsupported(self, transition: Transition):
        return ValueError(f"{type(self).__name__} cannot submit {transition.value}")
