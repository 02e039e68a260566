"""HTTP transport adapter (httpx).

Authenticates with the marketplace's token endpoint and attaches the bearer
token to every request. JSON responses are decoded with exact decimals so
money never passes through a binary float.
"""

import json
from decimal import Decimal

import httpx
import structlog

from marketplace.config import Settings
from marketplace.exceptions import TransportError
from marketplace.transport.port import Response, Transport

logger = structlog.get_logger(__name__)


def _encode(value):
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Cannot serialize {type(value).__name__}")


def _decode(response: httpx.Response):
    if not response.content:
        return None
    try:
        return json.loads(response.text, parse_float=Decimal)
    except ValueError:
        return response.text


class HttpTransport(Transport):
    """Transport backed by an ``httpx.Client``."""

    def __init__(
        self,
        base_url: str,
        user: str,
        password: str,
        token_path: str = "/api/token",
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.user = user
        self.password = password
        self.token_path = token_path
        self._token: str | None = None
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpTransport":
        return cls(
            base_url=settings.api_url,
            user=settings.user,
            password=settings.password,
            token_path=settings.endpoints.token,
            timeout=settings.timeout,
        )

    def authenticate(self) -> str:
        """Obtain a bearer token. Raises ``TransportError`` on bad credentials."""
        try:
            response = self._client.post(self.token_path, json={"user": self.user, "pass": self.password})
        except httpx.HTTPError as exc:
            raise TransportError(f"Authentication request failed: {exc}") from exc

        if response.status_code != 200:
            raise TransportError(
                f"Authentication failed with HTTP {response.status_code}",
                status_code=response.status_code,
                retryable=False,
            )
        body = _decode(response)
        token = body.get("id_token") if isinstance(body, dict) else None
        if not token:
            raise TransportError("Authentication response did not contain a token", retryable=False)

        self._token = token
        logger.info("Authenticated with marketplace", user=self.user)
        return token

    def _headers(self, headers: dict | None) -> dict:
        merged = {"Accept": "application/json", "Content-Type": "application/json"}
        if self._token:
            merged["Authorization"] = f"Bearer {self._token}"
        merged.update(headers or {})
        return merged

    def _send(self, method: str, url: str, payload=None, headers: dict | None = None) -> Response:
        if self._token is None:
            self.authenticate()

        content = None if payload is None else json.dumps(payload, default=_encode)
        for attempt in (1, 2):
            try:
                response = self._client.request(method, url, content=content, headers=self._headers(headers))
            except httpx.TimeoutException as exc:
                raise TransportError(f"{method} {url} timed out") from exc
            except httpx.HTTPError as exc:
                raise TransportError(f"{method} {url} failed: {exc}") from exc

            # Expired token: log in again once, then give up.
            if response.status_code == 401 and attempt == 1:
                logger.info("Marketplace token rejected, re-authenticating", url=url)
                self.authenticate()
                continue
            break

        if response.status_code in (401, 403):
            raise TransportError(
                f"{method} {url} not authorized (HTTP {response.status_code})",
                status_code=response.status_code,
                retryable=False,
            )

        logger.debug("Marketplace response", method=method, url=url, status_code=response.status_code)
        return Response(status_code=response.status_code, body=_decode(response), headers=dict(response.headers))

    def get(self, url: str, headers: dict | None = None) -> Response:
        return self._send("GET", url, headers=headers)

    def post(self, url: str, payload, headers: dict | None = None) -> Response:
        return self._send("POST", url, payload, headers)

    def put(self, url: str, payload, headers: dict | None = None) -> Response:
        return self._send("PUT", url, payload, headers)

    def close(self) -> None:
        self._client.close()
