"""Return codec: return detail in, return completion out."""

from marketplace.codecs.common import (
    address_from_wire,
    address_to_wire,
    compact,
    entity_errors,
    money,
    refund_amount_from_wire,
    refund_amount_to_wire,
    token_from_url,
    validate,
)
from marketplace.codecs.schemas import ReturnDocument, ReturnListing
from marketplace.returns.completion import ReturnCompletion
from marketplace.returns.returns import (
    ChargeFeedback,
    Return,
    ReturnBuilder,
    ReturnFeedback,
    ReturnItemBuilder,
    ReturnStatus,
)
from marketplace.shared.dates import format_date, parse_date
from marketplace.shared.vocabulary import ShippingCarrier


def tokens_from_wire(document) -> list[str]:
    listing = validate(ReturnListing, document)
    return [token_from_url(url) for url in listing.return_urls]


def from_wire(document) -> Return:
    wire = validate(ReturnDocument, document)
    status = ReturnStatus.from_wire(wire.return_status)
    feedback = ChargeFeedback.from_wire(wire.return_charge_feedback) if wire.return_charge_feedback else None
    carrier = ShippingCarrier.from_wire(wire.shipping_carrier)
    return_date = parse_date(wire.return_date) if wire.return_date else None

    with entity_errors(document):
        items = [
            ReturnItemBuilder(
                order_item_id=item.order_item_id,
                alt_order_item_id=item.alt_order_item_id,
                sku=item.merchant_sku,
                quantity=item.return_quantity,
                source_quantity=item.return_quantity,
                feedback=ReturnFeedback.from_wire(item.return_feedback) if item.return_feedback else None,
                notes=item.notes,
                refund_amount=refund_amount_from_wire(item.requested_refund_amount),
            ).build()
            for item in wire.return_merchant_SKUs
        ]
        return ReturnBuilder(
            return_id=wire.merchant_return_authorization_id,
            merchant_order_id=wire.merchant_order_id,
            status=status,
            merchant_return_charge=money(wire.merchant_return_charge),
            items=items,
            agree_to_return_charge=wire.agree_to_return_charge,
            refund_without_return=wire.refund_without_return,
            charge_feedback=feedback,
            reference_return_id=wire.reference_return_authorization_id,
            alt_return_id=wire.alt_return_authorization_id,
            reference_order_id=wire.reference_order_id,
            alt_order_id=wire.alt_order_id,
            return_date=return_date,
            carrier=carrier,
            tracking_number=wire.tracking_number,
            return_locations=[address_from_wire(location) for location in wire.return_location],
        ).build()


def completion_to_wire(completion: ReturnCompletion) -> dict:
    return compact(
        {
            "merchant_order_id": completion.merchant_order_id,
            "alt_return_authorization_id": completion.alt_return_id,
            "agree_to_return_charge": completion.agree_to_return_charge,
            "return_charge_feedback": completion.charge_feedback.to_wire(),
            "items": [
                compact(
                    {
                        "order_item_id": item.order_item_id,
                        "alt_order_item_id": item.alt_order_item_id,
                        "total_quantity_returned": item.source_quantity,
                        "order_return_refund_qty": item.quantity,
                        "return_refund_feedback": item.feedback,
                        "notes": item.notes,
                        "refund_amount": refund_amount_to_wire(item.refund_amount),
                    }
                )
                for item in completion.items
            ],
        }
    )


def to_wire(return_: Return) -> dict:
    return compact(
        {
            "merchant_return_authorization_id": return_.return_id,
            "reference_return_authorization_id": return_.reference_return_id,
            "alt_return_authorization_id": return_.alt_return_id,
            "merchant_order_id": return_.merchant_order_id,
            "reference_order_id": return_.reference_order_id,
            "alt_order_id": return_.alt_order_id,
            "return_status": return_.status.to_wire(),
            "merchant_return_charge": return_.merchant_return_charge.to_wire(),
            "agree_to_return_charge": return_.agree_to_return_charge,
            "refund_without_return": return_.refund_without_return,
            "return_charge_feedback": return_.charge_feedback.to_wire() if return_.charge_feedback else None,
            "return_date": format_date(return_.return_date) if return_.return_date else None,
            "shipping_carrier": return_.carrier.to_wire() or None,
            "tracking_number": return_.tracking_number,
            "return_location": [address_to_wire(location) for location in return_.return_locations],
            "return_merchant_SKUs": [
                compact(
                    {
                        "order_item_id": item.order_item_id,
                        "alt_order_item_id": item.alt_order_item_id,
                        "merchant_sku": item.sku,
                        "return_quantity": item.quantity,
                        "return_feedback": item.feedback,
                        "notes": item.notes,
                        "requested_refund_amount": refund_amount_to_wire(item.refund_amount),
                    }
                )
                for item in return_.items
            ],
        }
    )
