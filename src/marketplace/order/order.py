"""Order aggregate — a sale as the marketplace reports it.

Orders are never edited locally. Detail retrieval produces an ``Order``;
every later stage (acknowledgment, shipment, refund) derives new values from
it, and a status change is a new ``Order`` carrying the same identity.

Remote status flow:
    PLACED → READY → ACK → IN_PROGRESS → COMPLETE
    READY → CANCELED (rejected acknowledgment)
    ACK → CANCELED (cancel-only shipment)
"""

import dataclasses
from dataclasses import dataclass
from datetime import datetime

from protean.fields import Integer, String, ValueObject

from marketplace.domain import marketplace
from marketplace.shared.address import Address, Person
from marketplace.shared.builder import Builder, add_error
from marketplace.shared.money import Money
from marketplace.shared.vocabulary import ShippingCarrier, WireEnum


class OrderStatus(WireEnum):
    PLACED = "created"
    READY = "ready"
    ACK = "acknowledged"
    IN_PROGRESS = "inprogress"
    COMPLETE = "complete"
    CANCELED = "canceled"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object
class OrderItem:
    """A line of the order as placed by the customer."""

    order_item_id = String(required=True, max_length=64)
    sku = String(required=True, max_length=100)
    title = String(max_length=500)
    quantity_ordered = Integer(required=True, min_value=0)
    unit_price = ValueObject(Money, required=True)
    item_tax = ValueObject(Money)
    fulfillment_node = String(max_length=64)

    def line_total(self) -> Money:
        return self.unit_price.times(self.quantity_ordered)


@marketplace.value_object
class ShippingRequest:
    """How and where the customer asked the order to be shipped."""

    carrier = String(max_length=50)
    method = String(max_length=100)
    ship_to = ValueObject(Address)
    recipient = ValueObject(Person)

    @property
    def shipping_carrier(self) -> ShippingCarrier:
        return ShippingCarrier.from_wire(self.carrier)


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Order:
    token: str
    merchant_order_id: str
    status: OrderStatus
    items: tuple[OrderItem, ...]
    alt_order_id: str | None = None
    reference_order_id: str | None = None
    placed_at: datetime | None = None
    buyer: Person | None = None
    shipping: ShippingRequest | None = None

    def item(self, sku: str) -> OrderItem:
        for item in self.items:
            if item.sku == sku:
                return item
        raise KeyError(sku)

    def with_status(self, status: OrderStatus) -> "Order":
        return dataclasses.replace(self, status=status)


class OrderBuilder(Builder):
    fields = (
        "token",
        "merchant_order_id",
        "status",
        "items",
        "alt_order_id",
        "reference_order_id",
        "placed_at",
        "buyer",
        "shipping",
    )
    required = ("token", "merchant_order_id", "status", "items")

    def add_item(self, item: OrderItem) -> "OrderBuilder":
        self._values["items"] = (*self._values.get("items", ()), item)
        return self

    def check(self, values):
        errors = {}
        if not isinstance(values["status"], OrderStatus):
            add_error(errors, "status", f"Expected OrderStatus, got {values['status']!r}")

        seen = set()
        for item in values["items"]:
            if item.order_item_id in seen:
                add_error(errors, "items", f"Duplicate order item {item.order_item_id}")
            seen.add(item.order_item_id)

        currencies = {item.unit_price.currency for item in values["items"]}
        if len(currencies) > 1:
            add_error(errors, "items", f"Mixed currencies: {', '.join(sorted(currencies))}")
        return errors

    def construct(self, values):
        values["items"] = tuple(values["items"])
        return Order(**values)
