"""Shipments — how an acknowledged order leaves the warehouse.

Every shipment item conserves quantity: what ships plus what is canceled is
exactly what was ordered. A shipment that ships nothing is a cancellation
and must carry an alternate shipment id.
"""

from dataclasses import dataclass
from datetime import datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Integer, String, ValueObject

from marketplace.domain import marketplace
from marketplace.shared.address import Address
from marketplace.shared.builder import Builder, add_error
from marketplace.shared.vocabulary import ShippingCarrier


@marketplace.value_object
class ShipmentItem:
    """One SKU inside a shipment.

    ``quantity_ordered`` is the conservation context carried over from the
    order item; it is not part of the wire document.
    """

    sku = String(required=True, max_length=100)
    order_item_id = String(max_length=64)
    quantity = Integer(min_value=0, default=0)
    cancel_quantity = Integer(min_value=0, default=0)
    quantity_ordered = Integer(min_value=0)
    return_to = ValueObject(Address)
    rma_number = String(max_length=64)
    days_to_return = Integer(min_value=0)

    @invariant.post
    def shipped_and_canceled_add_up_to_ordered(self):
        if self.quantity_ordered is None:
            return
        if self.quantity + self.cancel_quantity != self.quantity_ordered:
            raise ValidationError(
                {
                    "quantity": [
                        f"{self.sku}: shipped {self.quantity} + canceled {self.cancel_quantity} "
                        f"must equal ordered {self.quantity_ordered}"
                    ]
                }
            )

    @property
    def is_canceled(self) -> bool:
        return self.quantity == 0


class ShipmentItemBuilder(Builder):
    """Shipment line builder.

    Defaults to shipping everything that was ordered. ``split`` redistributes
    between shipped and canceled; the sum is only checked at ``build()``.
    """

    fields = (
        "sku",
        "order_item_id",
        "quantity",
        "cancel_quantity",
        "quantity_ordered",
        "return_to",
        "rma_number",
        "days_to_return",
    )
    required = ("sku", "quantity_ordered")

    def split(self, shipped: int, canceled: int) -> "ShipmentItemBuilder":
        return self.set(quantity=shipped, cancel_quantity=canceled)

    def ship_all(self) -> "ShipmentItemBuilder":
        return self.split(self.get("quantity_ordered"), 0)

    def cancel_all(self) -> "ShipmentItemBuilder":
        return self.split(0, self.get("quantity_ordered"))

    def return_to_address(
        self, address: Address, rma_number: str | None = None, days_to_return: int | None = None
    ) -> "ShipmentItemBuilder":
        return self.set(return_to=address, rma_number=rma_number, days_to_return=days_to_return)

    def construct(self, values):
        return ShipmentItem(**values)


@dataclass(frozen=True)
class Shipment:
    items: tuple[ShipmentItem, ...]
    shipment_id: str | None = None
    alt_shipment_id: str | None = None
    carrier: ShippingCarrier = ShippingCarrier.UNSPECIFIED
    tracking_number: str | None = None
    shipped_at: datetime | None = None
    expected_delivery: datetime | None = None
    pickup_at: datetime | None = None
    ship_from_zip: str | None = None

    @property
    def is_cancel_only(self) -> bool:
        return all(item.is_canceled for item in self.items)


class ShipmentBuilder(Builder):
    fields = (
        "items",
        "shipment_id",
        "alt_shipment_id",
        "carrier",
        "tracking_number",
        "shipped_at",
        "expected_delivery",
        "pickup_at",
        "ship_from_zip",
    )
    required = ("items",)

    def add_item(self, item: ShipmentItem) -> "ShipmentBuilder":
        self._values["items"] = (*self._values.get("items", ()), item)
        return self

    def check(self, values):
        errors = {}
        items = values["items"]

        seen = set()
        for item in items:
            if item.sku in seen:
                add_error(errors, "items", f"SKU {item.sku} appears twice in one shipment")
            seen.add(item.sku)

        # Every date goes on the wire, shipped or not.
        for name in ("shipped_at", "expected_delivery", "pickup_at"):
            value = values.get(name)
            if value is None:
                continue
            if not isinstance(value, datetime):
                add_error(errors, name, f"Expected a datetime, got {value!r}")
            elif value.tzinfo is None:
                add_error(errors, name, "must be timezone-aware")

        ship_from_zip = values.get("ship_from_zip")
        if ship_from_zip is not None and len(ship_from_zip) > 5:
            add_error(errors, "ship_from_zip", "Postal code must be at most 5 characters")

        if all(item.is_canceled for item in items):
            if not (values.get("alt_shipment_id") or "").strip():
                add_error(errors, "alt_shipment_id", "A shipment of only canceled items needs an alternate shipment id")
            return errors

        carrier = values.get("carrier", ShippingCarrier.UNSPECIFIED)
        if not isinstance(carrier, ShippingCarrier) or carrier is ShippingCarrier.UNSPECIFIED:
            add_error(errors, "carrier", "is required for shipped items")
        if not (values.get("tracking_number") or "").strip():
            add_error(errors, "tracking_number", "is required for shipped items")
        shipped_at = values.get("shipped_at")
        if shipped_at is None:
            add_error(errors, "shipped_at", "is required for shipped items")

        expected = values.get("expected_delivery")
        if "shipped_at" not in errors and "expected_delivery" not in errors and None not in (shipped_at, expected):
            if expected < shipped_at:
                add_error(errors, "expected_delivery", "cannot be before the ship date")
        return errors

    def construct(self, values):
        values["items"] = tuple(values["items"])
        return Shipment(**values)


@dataclass(frozen=True)
class ShipRequest:
    """The shipment notification for one order: one or more shipments."""

    order_token: str
    shipments: tuple[Shipment, ...]
    alt_order_id: str | None = None

    def quantities(self) -> dict[str, tuple[int, int]]:
        """Per-SKU (shipped, canceled) totals across all shipments."""
        totals: dict[str, tuple[int, int]] = {}
        for shipment in self.shipments:
            for item in shipment.items:
                shipped, canceled = totals.get(item.sku, (0, 0))
                totals[item.sku] = (shipped + item.quantity, canceled + item.cancel_quantity)
        return totals


class ShipRequestBuilder(Builder):
    """Builds a ship request, optionally checked against the source order.

    With an ``order`` attached, every SKU must belong to the order and may
    appear in at most one shipment of the request.
    """

    fields = ("order_token", "shipments", "alt_order_id")
    required = ("order_token", "shipments")

    def __init__(self, order=None, **values) -> None:
        self._order = order
        if order is not None:
            values.setdefault("order_token", order.token)
            if order.alt_order_id:
                values.setdefault("alt_order_id", order.alt_order_id)
        super().__init__(**values)

    def add_shipment(self, shipment: Shipment) -> "ShipRequestBuilder":
        self._values["shipments"] = (*self._values.get("shipments", ()), shipment)
        return self

    def check(self, values):
        errors = {}
        seen = set()
        for shipment in values["shipments"]:
            for item in shipment.items:
                if item.sku in seen:
                    add_error(errors, "shipments", f"SKU {item.sku} appears in more than one shipment")
                seen.add(item.sku)

        if self._order is not None:
            ordered = {item.sku: item.quantity_ordered for item in self._order.items}
            for sku in seen - set(ordered):
                add_error(errors, "shipments", f"SKU {sku} is not part of order {self._order.token}")
            for shipment in values["shipments"]:
                for item in shipment.items:
                    if item.sku in ordered and item.quantity + item.cancel_quantity != ordered[item.sku]:
                        add_error(
                            errors,
                            "shipments",
                            f"{item.sku}: shipped + canceled must equal ordered {ordered[item.sku]}",
                        )
        return errors

    def construct(self, values):
        values["shipments"] = tuple(values["shipments"])
        return ShipRequest(**values)
