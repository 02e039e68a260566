"""Order acknowledgment — the merchant's accept/reject answer to a READY order.

An acknowledgment lists every order item with the quantity the merchant can
fulfil. The overall status must agree with the items: an order whose items
are all non-fulfillable can only be rejected.
"""

from dataclasses import dataclass

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Integer, String

from marketplace.domain import marketplace
from marketplace.shared.builder import Builder, add_error
from marketplace.shared.vocabulary import WireEnum


class AckStatus(WireEnum):
    ACCEPTED = "accepted"
    REJECTED = "rejected - item level error"
    REJECTED_SHIP_FROM = "rejected - ship from location not available"
    REJECTED_SHIPPING_METHOD = "rejected - shipping method not supported"
    REJECTED_ADDRESS = "rejected - unfulfillable address"

    @property
    def is_rejected(self) -> bool:
        return self is not AckStatus.ACCEPTED


class AckItemStatus(WireEnum):
    FULFILLABLE = "fulfillable"
    NONFULFILLABLE_INVALID_SKU = "nonfulfillable - invalid merchant SKU"
    NONFULFILLABLE_NO_INVENTORY = "nonfulfillable - no inventory"

    @property
    def is_fulfillable(self) -> bool:
        return self is AckItemStatus.FULFILLABLE


@marketplace.value_object
class AckItem:
    """Acknowledgment line for one order item."""

    order_item_id = String(required=True, max_length=64)
    alt_order_item_id = String(max_length=64)
    sku = String(required=True, max_length=100)
    quantity_ordered = Integer(required=True, min_value=0)
    quantity_acknowledged = Integer(required=True, min_value=0)
    status = String(required=True, max_length=50, choices=AckItemStatus)

    @property
    def item_status(self) -> AckItemStatus:
        return AckItemStatus.from_wire(self.status)

    @invariant.post
    def cannot_acknowledge_more_than_ordered(self):
        if None in (self.quantity_acknowledged, self.quantity_ordered):
            return
        if self.quantity_acknowledged > self.quantity_ordered:
            raise ValidationError(
                {
                    "quantity_acknowledged": [
                        f"Acknowledged {self.quantity_acknowledged} of {self.sku} but only "
                        f"{self.quantity_ordered} ordered"
                    ]
                }
            )

    @invariant.post
    def nonfulfillable_items_acknowledge_nothing(self):
        if self.status != AckItemStatus.FULFILLABLE.value and self.quantity_acknowledged:
            raise ValidationError({"quantity_acknowledged": [f"Non-fulfillable item {self.sku} must acknowledge 0"]})


class AckItemBuilder(Builder):
    fields = (
        "order_item_id",
        "alt_order_item_id",
        "sku",
        "quantity_ordered",
        "quantity_acknowledged",
        "status",
    )
    required = ("order_item_id", "sku", "quantity_ordered", "status")

    def fulfillable(self, quantity: int | None = None) -> "AckItemBuilder":
        return self.set(
            status=AckItemStatus.FULFILLABLE,
            quantity_acknowledged=self.get("quantity_ordered") if quantity is None else quantity,
        )

    def nonfulfillable(self, status: AckItemStatus = AckItemStatus.NONFULFILLABLE_NO_INVENTORY) -> "AckItemBuilder":
        return self.set(status=status, quantity_acknowledged=0)

    def check(self, values):
        errors = {}
        if not isinstance(values["status"], AckItemStatus):
            add_error(errors, "status", f"Expected AckItemStatus, got {values['status']!r}")
        return errors

    def construct(self, values):
        values["status"] = values["status"].value
        values.setdefault("quantity_acknowledged", 0)
        return AckItem(**values)


@dataclass(frozen=True)
class Acknowledgment:
    order_token: str
    status: AckStatus
    items: tuple[AckItem, ...]
    alt_order_id: str | None = None

    @property
    def is_rejected(self) -> bool:
        return self.status.is_rejected


class AcknowledgmentBuilder(Builder):
    """Builds the acknowledgment request.

    When no status is set, it is derived from the items: ACCEPTED if any item
    is fulfillable, REJECTED otherwise.
    """

    fields = ("order_token", "status", "items", "alt_order_id")
    required = ("order_token", "items")

    def add_item(self, item: AckItem) -> "AcknowledgmentBuilder":
        self._values["items"] = (*self._values.get("items", ()), item)
        return self

    def check(self, values):
        errors = {}
        items = values["items"]
        any_fulfillable = any(item.item_status.is_fulfillable for item in items)

        status = values.get("status")
        if status is not None and not isinstance(status, AckStatus):
            add_error(errors, "status", f"Expected AckStatus, got {status!r}")
        elif status is AckStatus.ACCEPTED and not any_fulfillable:
            add_error(errors, "status", "Cannot accept an order with no fulfillable items")

        seen = set()
        for item in items:
            if item.order_item_id in seen:
                add_error(errors, "items", f"Duplicate order item {item.order_item_id}")
            seen.add(item.order_item_id)
        return errors

    def construct(self, values):
        items = tuple(values["items"])
        status = values.get("status")
        if status is None:
            any_fulfillable = any(item.item_status.is_fulfillable for item in items)
            status = AckStatus.ACCEPTED if any_fulfillable else AckStatus.REJECTED
        return Acknowledgment(
            order_token=values["order_token"],
            status=status,
            items=items,
            alt_order_id=values.get("alt_order_id"),
        )
