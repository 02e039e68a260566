"""Returns on the marketplace: poll, fetch, complete."""

import structlog

from marketplace.codecs import returns as codec
from marketplace.lifecycle import EntityKind, Transition
from marketplace.remote.base import Receipt, RemoteEntity, raise_for_status
from marketplace.returns.returns import ReturnStatus

logger = structlog.get_logger(__name__)


class RemoteReturns(RemoteEntity):
    kind = EntityKind.RETURN
    status_type = ReturnStatus
    listing_endpoint = "returns_by_status"
    detail_endpoint = "return_detail"

    def tokens_from_wire(self, document):
        return codec.tokens_from_wire(document)

    def from_wire(self, document):
        return codec.from_wire(document)

    def submit_transition(self, token, transition, request):
        if transition is not Transition.COMPLETE_RETURN:
            raise self.unsupported(transition)

        response = self.transport.put(self.url("return_complete", token=token), codec.completion_to_wire(request))
        raise_for_status(response, self.kind, token, transition.value)
        logger.debug("Return completion accepted", token=token)
        return Receipt(token=token, transition=transition, status_code=response.status_code)
