"""Orders on the marketplace: poll, fetch, acknowledge, ship."""

import structlog

from marketplace.codecs import orders as codec
from marketplace.lifecycle import EntityKind, Transition
from marketplace.order.order import OrderStatus
from marketplace.remote.base import Receipt, RemoteEntity, raise_for_status

logger = structlog.get_logger(__name__)


class RemoteOrders(RemoteEntity):
    kind = EntityKind.ORDER
    status_type = OrderStatus
    listing_endpoint = "orders_by_status"
    detail_endpoint = "order_detail"

    def tokens_from_wire(self, document):
        return codec.tokens_from_wire(document)

    def from_wire(self, document):
        return codec.from_wire(document)

    def submit_transition(self, token, transition, request):
        if transition is Transition.ACKNOWLEDGE:
            url = self.url("order_acknowledge", token=token)
            payload = codec.acknowledgment_to_wire(request)
        elif transition in (Transition.SHIP, Transition.CANCEL):
            url = self.url("order_ship", token=token)
            payload = codec.ship_request_to_wire(request)
        else:
            raise self.unsupported(transition)

        response = self.transport.put(url, payload)
        raise_for_status(response, self.kind, token, transition.value)
        logger.debug("Order transition accepted", token=token, transition=transition.value)
        return Receipt(token=token, transition=transition, status_code=response.status_code)
