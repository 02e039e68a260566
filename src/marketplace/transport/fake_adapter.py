"""Fake transport — an in-memory marketplace for testing and development.

Holds order, return and refund documents, answers status polls and detail
requests, and applies acknowledgments, shipments, return completions and
refund creations by moving documents to their next status. Rejections and
outages can be scripted per token.
"""

import copy
import re
from itertools import count
from urllib.parse import unquote

from marketplace.config import Endpoints
from marketplace.exceptions import TransportError
from marketplace.transport.port import Response, Transport

_ID_FIELDS = {
    "order": "merchant_order_id",
    "return": "merchant_return_authorization_id",
    "refund": "refund_authorization_id",
}
_STATUS_FIELDS = {
    "order": "status",
    "return": "return_status",
    "refund": "refund_status",
}


def _pattern(template: str) -> re.Pattern:
    regex = re.sub(r"\\\{(\w+)\\\}", r"(?P<\1>[^/]+)", re.escape(template))
    return re.compile(f"^{regex}$")


def _error(status_code: int, message: str) -> Response:
    return Response(status_code=status_code, body={"errors": [message]})


class FakeTransport(Transport):
    """Fake marketplace that succeeds by default."""

    def __init__(self, endpoints: Endpoints | None = None) -> None:
        self.endpoints = endpoints or Endpoints()
        self.should_succeed = True
        self.failure_reason = "Marketplace unavailable"
        self.requests: list[dict] = []
        self._documents: dict[str, dict[str, dict]] = {"order": {}, "return": {}, "refund": {}}
        self._rejections: dict[str, tuple[int, str]] = {}
        self._broken: set[str] = set()
        self._refund_ids = count(1)

        e = self.endpoints
        self._routes = [
            ("GET", _pattern(e.orders_by_status), self._poll_orders),
            ("GET", _pattern(e.order_detail), self._order_detail),
            ("PUT", _pattern(e.order_acknowledge), self._acknowledge),
            ("PUT", _pattern(e.order_ship), self._ship),
            ("GET", _pattern(e.returns_by_status), self._poll_returns),
            ("GET", _pattern(e.return_detail), self._return_detail),
            ("PUT", _pattern(e.return_complete), self._complete_return),
            ("GET", _pattern(e.refunds_by_status), self._poll_refunds),
            ("GET", _pattern(e.refund_detail), self._refund_detail),
            ("POST", _pattern(e.refund_create), self._create_refund),
        ]

    # -------------------------------------------------------------------
    # Test controls
    # -------------------------------------------------------------------
    def configure(self, should_succeed: bool = True, failure_reason: str = "Marketplace unavailable") -> None:
        """Switch the whole marketplace into (or out of) an outage."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def seed_order(self, document: dict) -> None:
        self._seed("order", document)

    def seed_return(self, document: dict) -> None:
        self._seed("return", document)

    def seed_refund(self, document: dict) -> None:
        self._seed("refund", document)

    def _seed(self, kind: str, document: dict) -> None:
        self._documents[kind][document[_ID_FIELDS[kind]]] = copy.deepcopy(document)

    def reject(self, token: str, message: str, status_code: int = 400) -> None:
        """Answer every transition request for ``token`` with an error body."""
        self._rejections[token] = (status_code, message)

    def break_token(self, token: str) -> None:
        """Fail every transition request for ``token`` at the network level."""
        self._broken.add(token)

    def resolve_refund(self, refund_id: str, accepted: bool = True) -> None:
        """Simulate the marketplace deciding on a refund."""
        self._documents["refund"][refund_id]["refund_status"] = "accepted" if accepted else "rejected"

    def document(self, kind: str, token: str) -> dict:
        return copy.deepcopy(self._documents[kind][token])

    def status_of(self, kind: str, token: str) -> str:
        return self._documents[kind][token][_STATUS_FIELDS[kind]]

    # -------------------------------------------------------------------
    # Transport interface
    # -------------------------------------------------------------------
    def get(self, url: str, headers: dict | None = None) -> Response:
        return self._dispatch("GET", url, None)

    def post(self, url: str, payload, headers: dict | None = None) -> Response:
        return self._dispatch("POST", url, payload)

    def put(self, url: str, payload, headers: dict | None = None) -> Response:
        return self._dispatch("PUT", url, payload)

    def _dispatch(self, method: str, url: str, payload) -> Response:
        self.requests.append({"method": method, "url": url, "payload": copy.deepcopy(payload)})
        if not self.should_succeed:
            raise TransportError(self.failure_reason)

        for route_method, pattern, handler in self._routes:
            match = pattern.match(url)
            if route_method == method and match:
                params = {name: unquote(value) for name, value in match.groupdict().items()}
                if method != "GET":
                    token = params["token"]
                    if token in self._broken:
                        raise TransportError(f"Connection reset while sending {method} {url}")
                    if token in self._rejections:
                        status_code, message = self._rejections[token]
                        return _error(status_code, message)
                return handler(payload=payload, **params)
        return _error(404, f"No route for {method} {url}")

    # -------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------
    def _listing(self, kind: str, status: str, key: str, template: str) -> Response:
        urls = [
            template.format(token=token)
            for token, document in self._documents[kind].items()
            if document[_STATUS_FIELDS[kind]] == status
        ]
        return Response(status_code=200, body={key: urls})

    def _detail(self, kind: str, token: str) -> Response:
        document = self._documents[kind].get(token)
        if document is None:
            return _error(404, f"{kind} {token} not found")
        return Response(status_code=200, body=copy.deepcopy(document))

    def _poll_orders(self, status, payload=None):
        return self._listing("order", status, "order_urls", self.endpoints.order_detail)

    def _poll_returns(self, status, payload=None):
        return self._listing("return", status, "return_urls", self.endpoints.return_detail)

    def _poll_refunds(self, status, payload=None):
        return self._listing("refund", status, "refund_urls", self.endpoints.refund_detail)

    def _order_detail(self, token, payload=None):
        return self._detail("order", token)

    def _return_detail(self, token, payload=None):
        return self._detail("return", token)

    def _refund_detail(self, token, payload=None):
        return self._detail("refund", token)

    def _acknowledge(self, token, payload):
        order = self._documents["order"].get(token)
        if order is None:
            return _error(404, f"order {token} not found")
        if order["status"] != "ready":
            return _error(400, f"Order {token} is {order['status']}, not ready")

        accepted = payload.get("acknowledgement_status") == "accepted"
        order["status"] = "acknowledged" if accepted else "canceled"
        order["acknowledgement_status"] = payload.get("acknowledgement_status")
        if payload.get("alt_order_id"):
            order["alt_order_id"] = payload["alt_order_id"]
        return Response(status_code=204)

    def _ship(self, token, payload):
        order = self._documents["order"].get(token)
        if order is None:
            return _error(404, f"order {token} not found")
        if order["status"] not in ("acknowledged", "inprogress"):
            return _error(400, f"Order {token} is {order['status']}, cannot ship")

        totals: dict[str, int] = {}
        for shipment in payload.get("shipments", []):
            for item in shipment.get("shipment_items", []):
                totals[item["merchant_sku"]] = totals.get(item["merchant_sku"], 0) + int(
                    item.get("response_shipment_sku_quantity", 0)
                )
        covered = all(item["merchant_sku"] in totals for item in order.get("order_items", []))
        if covered and order["status"] == "acknowledged" and not any(totals.values()):
            order["status"] = "canceled"
        elif covered:
            order["status"] = "complete"
        else:
            order["status"] = "inprogress"
        order.setdefault("shipments", []).extend(copy.deepcopy(payload.get("shipments", [])))
        return Response(status_code=204)

    def _complete_return(self, token, payload):
        document = self._documents["return"].get(token)
        if document is None:
            return _error(404, f"return {token} not found")
        if document["return_status"] not in ("created", "inprogress"):
            return _error(400, f"Return {token} is {document['return_status']}, cannot complete")

        document["return_status"] = "completed by merchant"
        document["agree_to_return_charge"] = payload["agree_to_return_charge"]
        document["return_charge_feedback"] = payload["return_charge_feedback"]
        if payload.get("alt_return_authorization_id"):
            document["alt_return_authorization_id"] = payload["alt_return_authorization_id"]
        return Response(status_code=204)

    def _create_refund(self, token, alt_refund_id, payload):
        order = self._documents["order"].get(token)
        if order is None:
            return _error(404, f"order {token} not found")
        if order["status"] != "complete":
            return _error(400, f"Order {token} is {order['status']}, cannot refund")

        refund_id = f"refund-{next(self._refund_ids):04d}"
        self._documents["refund"][refund_id] = {
            "refund_authorization_id": refund_id,
            "alt_refund_id": alt_refund_id,
            "merchant_order_id": token,
            "refund_status": "created",
            "items": copy.deepcopy(payload.get("items", [])),
        }
        return Response(
            status_code=201,
            body={"refund_authorization_id": refund_id, "refund_status": "created"},
        )
