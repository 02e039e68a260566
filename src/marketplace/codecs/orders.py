"""Order codec — order detail in, acknowledgment and ship requests out."""

from marketplace.codecs.common import (
    address_from_wire,
    address_to_wire,
    compact,
    entity_errors,
    money,
    person_from_wire,
    token_from_url,
    validate,
)
from marketplace.codecs.schemas import OrderDocument, OrderListing
from marketplace.order.acknowledgment import Acknowledgment
from marketplace.order.order import Order, OrderBuilder, OrderItem, OrderStatus, ShippingRequest
from marketplace.order.shipment import Shipment, ShipRequest
from marketplace.shared.dates import format_date, parse_date


def tokens_from_wire(document) -> list[str]:
    listing = validate(OrderListing, document)
    return [token_from_url(url) for url in listing.order_urls]


def from_wire(document) -> Order:
    wire = validate(OrderDocument, document)
    status = OrderStatus.from_wire(wire.status)
    placed_at = parse_date(wire.order_placed_date) if wire.order_placed_date else None

    with entity_errors(document):
        items = [
            OrderItem(
                order_item_id=item.order_item_id,
                sku=item.merchant_sku,
                title=item.product_title,
                quantity_ordered=item.request_order_quantity,
                unit_price=money(item.item_price.base_price),
                item_tax=money(item.item_price.item_tax),
                fulfillment_node=wire.fulfillment_node,
            )
            for item in wire.order_items
        ]

        shipping = None
        if wire.shipping_to is not None or wire.order_detail is not None:
            shipping_to = wire.shipping_to
            detail = wire.order_detail
            shipping = ShippingRequest(
                carrier=detail.request_shipping_carrier if detail else None,
                method=detail.request_shipping_method if detail else None,
                ship_to=address_from_wire(shipping_to.address) if shipping_to else None,
                recipient=person_from_wire(shipping_to.recipient) if shipping_to else None,
            )

        return OrderBuilder(
            token=wire.merchant_order_id,
            merchant_order_id=wire.merchant_order_id,
            status=status,
            items=items,
            alt_order_id=wire.alt_order_id,
            reference_order_id=wire.reference_order_id,
            placed_at=placed_at,
            buyer=person_from_wire(wire.buyer),
            shipping=shipping,
        ).build()


def acknowledgment_to_wire(ack: Acknowledgment) -> dict:
    return compact(
        {
            "acknowledgement_status": ack.status.to_wire(),
            "alt_order_id": ack.alt_order_id,
            "order_items": [
                compact(
                    {
                        "order_item_acknowledgement_status": item.status,
                        "order_item_id": item.order_item_id,
                        "alt_order_item_id": item.alt_order_item_id,
                    }
                )
                for item in ack.items
            ],
        }
    )


def _shipment_to_wire(shipment: Shipment) -> dict:
    return compact(
        {
            "shipment_id": shipment.shipment_id,
            "alt_shipment_id": shipment.alt_shipment_id,
            "shipment_tracking_number": shipment.tracking_number,
            "response_shipment_date": format_date(shipment.shipped_at) if shipment.shipped_at else None,
            "expected_delivery_date": (
                format_date(shipment.expected_delivery) if shipment.expected_delivery else None
            ),
            "carrier_pick_up_date": format_date(shipment.pickup_at) if shipment.pickup_at else None,
            "ship_from_zip_code": shipment.ship_from_zip,
            "carrier": shipment.carrier.to_wire() or None,
            "shipment_items": [
                compact(
                    {
                        "merchant_sku": item.sku,
                        "response_shipment_sku_quantity": item.quantity,
                        "response_shipment_cancel_qty": item.cancel_quantity,
                        "RMA_number": item.rma_number,
                        "days_to_return": item.days_to_return,
                        "return_location": address_to_wire(item.return_to),
                    }
                )
                for item in shipment.items
            ],
        }
    )


def ship_request_to_wire(request: ShipRequest) -> dict:
    return compact(
        {
            "alt_order_id": request.alt_order_id,
            "shipments": [_shipment_to_wire(shipment) for shipment in request.shipments],
        }
    )


def to_wire(order: Order) -> dict:
    shipping = order.shipping
    document = {
        "merchant_order_id": order.merchant_order_id,
        "reference_order_id": order.reference_order_id,
        "alt_order_id": order.alt_order_id,
        "status": order.status.to_wire(),
        "order_placed_date": format_date(order.placed_at) if order.placed_at else None,
        "fulfillment_node": next((item.fulfillment_node for item in order.items if item.fulfillment_node), None),
        "buyer": compact({"name": order.buyer.name, "phone_number": order.buyer.phone}) if order.buyer else None,
        "order_items": [
            compact(
                {
                    "order_item_id": item.order_item_id,
                    "merchant_sku": item.sku,
                    "product_title": item.title,
                    "request_order_quantity": item.quantity_ordered,
                    "item_price": compact(
                        {
                            "base_price": item.unit_price.to_wire(),
                            "item_tax": item.item_tax.to_wire() if item.item_tax else None,
                        }
                    ),
                }
            )
            for item in order.items
        ],
    }
    if shipping is not None:
        recipient = shipping.recipient
        document["shipping_to"] = compact(
            {
                "recipient": compact({"name": recipient.name, "phone_number": recipient.phone}) if recipient else None,
                "address": address_to_wire(shipping.ship_to),
            }
        )
        document["order_detail"] = compact(
            {
                "request_shipping_carrier": shipping.carrier,
                "request_shipping_method": shipping.method,
            }
        )
    return compact(document)
