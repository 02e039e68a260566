"""Item conversion pipeline.

Turns a line item of one stage into a pre-filled builder for the next stage:

    OrderItem → AckItem
    OrderItem → ShipmentItem        (split: shipped + canceled == ordered)
    AckItem   → ShipmentItem        (split: acknowledged ships, rest cancels)
    OrderItem → RefundItem          (target quantity ≤ ordered)
    ShipmentItem → ReturnItem       (target quantity ≤ shipped)
    ReturnItem → ReturnItem         (completion overrides, quantity ≤ returned)
    ReturnItem → RefundItem         (target quantity ≤ returned)

Every conversion copies identity (sku, order item id) and the quantity
context the target builder needs to enforce conservation at ``build()``.
Callers override target-only fields on the returned builder.
"""

from collections.abc import Callable, Iterable

from marketplace.order.acknowledgment import AckItem, AckItemBuilder, AckItemStatus
from marketplace.order.order import OrderItem
from marketplace.order.shipment import ShipmentItem, ShipmentItemBuilder
from marketplace.refunds.refund import RefundItem, RefundItemBuilder
from marketplace.returns.returns import ReturnItem, ReturnItemBuilder
from marketplace.shared.builder import Builder
from marketplace.shared.money import RefundAmount

_CONVERSIONS: dict[tuple[type, type], Callable] = {}


def conversion(source: type, target: type):
    def register(func):
        _CONVERSIONS[(source, target)] = func
        return func

    return register


@conversion(OrderItem, AckItem)
def order_item_to_ack_item(item: OrderItem, status: AckItemStatus = AckItemStatus.FULFILLABLE) -> AckItemBuilder:
    builder = AckItemBuilder(
        order_item_id=item.order_item_id,
        sku=item.sku,
        quantity_ordered=item.quantity_ordered,
    )
    if status.is_fulfillable:
        return builder.fulfillable()
    return builder.nonfulfillable(status)


@conversion(OrderItem, ShipmentItem)
def order_item_to_shipment_item(item: OrderItem) -> ShipmentItemBuilder:
    return ShipmentItemBuilder(
        sku=item.sku,
        order_item_id=item.order_item_id,
        quantity_ordered=item.quantity_ordered,
        quantity=item.quantity_ordered,
        cancel_quantity=0,
    )


@conversion(AckItem, ShipmentItem)
def ack_item_to_shipment_item(item: AckItem) -> ShipmentItemBuilder:
    return ShipmentItemBuilder(
        sku=item.sku,
        order_item_id=item.order_item_id,
        quantity_ordered=item.quantity_ordered,
        quantity=item.quantity_acknowledged,
        cancel_quantity=item.quantity_ordered - item.quantity_acknowledged,
    )


@conversion(OrderItem, RefundItem)
def order_item_to_refund_item(item: OrderItem) -> RefundItemBuilder:
    return RefundItemBuilder(
        order_item_id=item.order_item_id,
        sku=item.sku,
        quantity=item.quantity_ordered,
        source_quantity=item.quantity_ordered,
    ).priced(RefundAmount(principal=item.line_total(), tax=item.item_tax), item.quantity_ordered)


@conversion(ShipmentItem, ReturnItem)
def shipment_item_to_return_item(item: ShipmentItem) -> ReturnItemBuilder:
    return ReturnItemBuilder(
        order_item_id=item.order_item_id,
        sku=item.sku,
        quantity=item.quantity,
        source_quantity=item.quantity,
    )


@conversion(ReturnItem, ReturnItem)
def return_item_to_return_item(item: ReturnItem) -> ReturnItemBuilder:
    source = item.quantity if item.source_quantity is None else item.source_quantity
    return ReturnItemBuilder(
        order_item_id=item.order_item_id,
        alt_order_item_id=item.alt_order_item_id,
        sku=item.sku,
        quantity=item.quantity,
        source_quantity=source,
        feedback=item.return_feedback,
        notes=item.notes,
        refund_amount=item.refund_amount,
    )


@conversion(ReturnItem, RefundItem)
def return_item_to_refund_item(item: ReturnItem) -> RefundItemBuilder:
    builder = RefundItemBuilder(
        order_item_id=item.order_item_id,
        sku=item.sku,
        quantity=item.quantity,
        source_quantity=item.quantity,
        feedback=item.return_feedback,
        notes=item.notes,
    )
    if item.refund_amount is not None:
        builder.priced(item.refund_amount, item.quantity)
    return builder


def convert(item, target: type, **options) -> Builder:
    """Pre-filled builder of ``target`` shape for ``item``."""
    try:
        func = _CONVERSIONS[(type(item), target)]
    except KeyError:
        raise TypeError(f"No conversion from {type(item).__name__} to {target.__name__}") from None
    return func(item, **options)


def convert_all(items: Iterable, target: type, **options) -> list[Builder]:
    return [convert(item, target, **options) for item in items]
