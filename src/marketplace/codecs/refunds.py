"""Refund codec: refund detail in, refund creation out."""

from marketplace.codecs.common import (
    compact,
    entity_errors,
    refund_amount_from_wire,
    refund_amount_to_wire,
    token_from_url,
    validate,
)
from marketplace.codecs.schemas import RefundCreated, RefundDocument, RefundListing
from marketplace.refunds.refund import (
    Refund,
    RefundBuilder,
    RefundItem,
    RefundItemBuilder,
    RefundReason,
    RefundRequest,
    RefundStatus,
)
from marketplace.returns.returns import ReturnFeedback


def tokens_from_wire(document) -> list[str]:
    listing = validate(RefundListing, document)
    return [token_from_url(url) for url in listing.refund_urls]


def from_wire(document) -> Refund:
    wire = validate(RefundDocument, document)
    status = RefundStatus.from_wire(wire.refund_status)

    with entity_errors(document):
        items = [
            RefundItemBuilder(
                order_item_id=item.order_item_id,
                sku=item.merchant_sku,
                quantity=item.order_return_refund_qty,
                source_quantity=item.order_return_refund_qty if item.total_quantity is None else item.total_quantity,
                reason=RefundReason.from_wire(item.refund_reason),
                feedback=ReturnFeedback.from_wire(item.refund_feedback) if item.refund_feedback else None,
                notes=item.notes,
                refund_amount=refund_amount_from_wire(item.refund_amount),
            ).build()
            for item in wire.items
        ]
        return RefundBuilder(
            refund_id=wire.refund_authorization_id,
            order_token=wire.merchant_order_id,
            status=status,
            items=items,
            alt_refund_id=wire.alt_refund_id,
        ).build()


def created_from_wire(document) -> tuple[str, RefundStatus]:
    """Refund id and status from the creation response."""
    wire = validate(RefundCreated, document)
    return wire.refund_authorization_id, RefundStatus.from_wire(wire.refund_status)


def _item_to_wire(item: RefundItem) -> dict:
    return compact(
        {
            "order_item_id": item.order_item_id,
            "merchant_sku": item.sku,
            "total_quantity": item.source_quantity,
            "order_return_refund_qty": item.quantity,
            "refund_reason": item.reason,
            "refund_feedback": item.feedback,
            "notes": item.notes,
            "refund_amount": refund_amount_to_wire(item.refund_amount),
        }
    )


def request_to_wire(request: RefundRequest) -> dict:
    return {"items": [_item_to_wire(item) for item in request.items]}


def to_wire(refund: Refund) -> dict:
    return compact(
        {
            "refund_authorization_id": refund.refund_id,
            "alt_refund_id": refund.alt_refund_id,
            "merchant_order_id": refund.order_token,
            "refund_status": refund.status.to_wire(),
            "items": [_item_to_wire(item) for item in refund.items],
        }
    )
