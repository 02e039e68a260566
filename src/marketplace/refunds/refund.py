"""Refund aggregate — money sent back to the customer for an order.

Refund lines are never typed in by hand: each one is converted from an
order item (or a return item that traces to one), so every refunded unit
points at exactly one order line.

Remote status flow:
    CREATED → ACCEPTED | REJECTED
"""

from dataclasses import dataclass

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Integer, String, ValueObject

from marketplace.domain import marketplace
from marketplace.returns.returns import ReturnFeedback
from marketplace.shared.builder import Builder, add_error
from marketplace.shared.money import Money, RefundAmount
from marketplace.shared.vocabulary import WireEnum


class RefundStatus(WireEnum):
    CREATED = "created"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class RefundReason(WireEnum):
    NO_LONGER_WANTED = "No longer want this item"
    WRONG_ITEM = "Received the wrong item"
    INACCURATE_DESCRIPTION = "Website description is inaccurate"
    DEFECTIVE = "Product is defective / does not work"
    ARRIVED_DAMAGED = "Item arrived damaged"
    CHANGED_MIND = "Changed my mind"
    ACCIDENTAL_ORDER = "Accidental order"
    MISSING_PARTS = "Item is missing parts / accessories"
    NEVER_ARRIVED = "Package never arrived"
    ARRIVED_LATE = "Arrived too late"
    BETTER_PRICE = "Found better price elsewhere"


@marketplace.value_object
class RefundItem:
    """A refunded line, traced back to exactly one order item."""

    order_item_id = String(required=True, max_length=64)
    sku = String(required=True, max_length=100)
    quantity = Integer(required=True, min_value=0)
    source_quantity = Integer(min_value=0)
    reason = String(required=True, max_length=100, choices=RefundReason)
    feedback = String(max_length=100, choices=ReturnFeedback)
    notes = String(max_length=500)
    refund_amount = ValueObject(RefundAmount)

    @invariant.post
    def cannot_refund_more_than_source(self):
        if None not in (self.quantity, self.source_quantity) and self.quantity > self.source_quantity:
            raise ValidationError(
                {"quantity": [f"{self.sku}: cannot refund {self.quantity}, only {self.source_quantity} available"]}
            )

    @property
    def refund_reason(self) -> RefundReason:
        return RefundReason.from_wire(self.reason)


class RefundItemBuilder(Builder):
    """Builds a refund line.

    A converted line carries a pricing basis: the amount that ``of`` units
    are worth. At ``build()`` the refund amount is that basis scaled to the
    refunded quantity, unless an amount was set explicitly.
    """

    fields = (
        "order_item_id",
        "sku",
        "quantity",
        "source_quantity",
        "reason",
        "feedback",
        "notes",
        "refund_amount",
    )
    required = ("order_item_id", "sku", "quantity", "source_quantity", "reason")
    _basis: tuple[RefundAmount, int] | None = None

    def because(self, reason: RefundReason, notes: str | None = None) -> "RefundItemBuilder":
        return self.set(reason=reason, notes=notes)

    def priced(self, amount: RefundAmount, of: int) -> "RefundItemBuilder":
        self._basis = (amount, of)
        return self

    def check(self, values):
        errors = {}
        if not isinstance(values["reason"], RefundReason):
            add_error(errors, "reason", f"Expected RefundReason, got {values['reason']!r}")
        feedback = values.get("feedback")
        if feedback is not None and not isinstance(feedback, ReturnFeedback):
            add_error(errors, "feedback", f"Expected ReturnFeedback, got {feedback!r}")
        return errors

    def construct(self, values):
        values["reason"] = values["reason"].value
        if "refund_amount" not in values and self._basis is not None:
            amount, of = self._basis
            values["refund_amount"] = amount if of in (0, values["quantity"]) else amount.scaled(values["quantity"], of)
        if "feedback" in values:
            values["feedback"] = values["feedback"].value
        return RefundItem(**values)


@dataclass(frozen=True)
class Refund:
    refund_id: str
    order_token: str
    status: RefundStatus
    items: tuple[RefundItem, ...]
    alt_refund_id: str | None = None

    def total(self) -> Money | None:
        amounts = [item.refund_amount.total() for item in self.items if item.refund_amount is not None]
        if not amounts:
            return None
        total = amounts[0]
        for amount in amounts[1:]:
            total = total + amount
        return total


class RefundBuilder(Builder):
    fields = ("refund_id", "order_token", "status", "items", "alt_refund_id")
    required = ("refund_id", "order_token", "status")

    def check(self, values):
        errors = {}
        if not isinstance(values["status"], RefundStatus):
            add_error(errors, "status", f"Expected RefundStatus, got {values['status']!r}")
        return errors

    def construct(self, values):
        values["items"] = tuple(values.get("items", ()))
        return Refund(**values)


@dataclass(frozen=True)
class RefundRequest:
    """Request to open a refund against an order."""

    order_token: str
    alt_refund_id: str
    items: tuple[RefundItem, ...]


class RefundRequestBuilder(Builder):
    fields = ("order_token", "alt_refund_id", "items")
    required = ("order_token", "alt_refund_id", "items")

    def add_item(self, item: RefundItem) -> "RefundRequestBuilder":
        self._values["items"] = (*self._values.get("items", ()), item)
        return self

    def check(self, values):
        errors = {}
        seen = set()
        for item in values["items"]:
            if item.order_item_id in seen:
                add_error(errors, "items", f"Duplicate order item {item.order_item_id}")
            seen.add(item.order_item_id)
        if all(item.quantity == 0 for item in values["items"]):
            add_error(errors, "items", "A refund must refund at least one unit")
        return errors

    def construct(self, values):
        values["items"] = tuple(values["items"])
        return RefundRequest(**values)
