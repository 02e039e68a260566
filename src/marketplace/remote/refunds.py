"""Refunds on the marketplace: poll, fetch, create against an order."""

import structlog

from marketplace.codecs import refunds as codec
from marketplace.exceptions import ParseError
from marketplace.lifecycle import EntityKind, Transition
from marketplace.refunds.refund import RefundStatus
from marketplace.remote.base import Receipt, RemoteEntity, raise_for_status

logger = structlog.get_logger(__name__)


class RemoteRefunds(RemoteEntity):
    kind = EntityKind.REFUND
    status_type = RefundStatus
    listing_endpoint = "refunds_by_status"
    detail_endpoint = "refund_detail"

    def tokens_from_wire(self, document):
        return codec.tokens_from_wire(document)

    def from_wire(self, document):
        return codec.from_wire(document)

    def submit_transition(self, token, transition, request):
        """Create a refund. ``token`` is the order's token."""
        if transition is not Transition.CREATE_REFUND:
            raise self.unsupported(transition)

        url = self.url("refund_create", token=token, alt_refund_id=request.alt_refund_id)
        response = self.transport.post(url, codec.request_to_wire(request))
        raise_for_status(response, EntityKind.ORDER, token, transition.value)

        # The refund exists once the POST succeeded.
        try:
            refund_id, status = codec.created_from_wire(response.body)
        except ParseError as exc:
            logger.warning("Refund created, response unreadable", order_token=token, cause=str(exc))
            return Receipt(token=token, transition=transition, status_code=response.status_code, warning=str(exc))

        logger.info("Refund created", order_token=token, refund_id=refund_id, refund_status=status.name)
        return Receipt(token=token, transition=transition, status_code=response.status_code, reference=refund_id)
