"""Return aggregate — a customer return authorization.

Remote status flow:
    CREATED → IN_PROGRESS → COMPLETED

A return only reaches COMPLETED through a ``ReturnCompletion`` that carries
the merchant's decision on the return charge.
"""

import dataclasses
from dataclasses import dataclass
from datetime import datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Integer, String, ValueObject

from marketplace.domain import marketplace
from marketplace.shared.address import Address
from marketplace.shared.builder import Builder, add_error
from marketplace.shared.money import Money, RefundAmount
from marketplace.shared.vocabulary import ShippingCarrier, WireEnum


class ReturnStatus(WireEnum):
    CREATED = "created"
    IN_PROGRESS = "inprogress"
    COMPLETED = "completed by merchant"


class ChargeFeedback(WireEnum):
    """Why the merchant disputes (or accepts) the return charge."""

    FRAUD = "Fraud"
    RETURN_FEE_NOT_CHARGED = "Return fee not charged"
    WRONG_ITEM = "Wrong item"
    OUTSIDE_MERCHANT_POLICY = "Outside merchant policy"
    NOT_MERCHANT_ERROR = "Not merchant error"
    OTHER = "Other"


class ReturnFeedback(WireEnum):
    """Condition of a returned item as assessed by the merchant."""

    ITEM_DAMAGED = "item damaged"
    NOT_IN_ORIGINAL_PACKAGING = "not shipped in original packaging"
    CUSTOMER_OPENED_ITEM = "customer opened item"
    MISSING_PARTS = "missing parts"
    OTHER = "other"


@marketplace.value_object
class ReturnItem:
    """A returned line, traced back to its order item."""

    order_item_id = String(required=True, max_length=64)
    alt_order_item_id = String(max_length=64)
    sku = String(required=True, max_length=100)
    quantity = Integer(required=True, min_value=0)
    source_quantity = Integer(min_value=0)
    feedback = String(max_length=100, choices=ReturnFeedback)
    notes = String(max_length=500)
    refund_amount = ValueObject(RefundAmount)

    @invariant.post
    def cannot_return_more_than_source(self):
        if None not in (self.quantity, self.source_quantity) and self.quantity > self.source_quantity:
            raise ValidationError(
                {"quantity": [f"{self.sku}: cannot return {self.quantity}, only {self.source_quantity} available"]}
            )

    @property
    def return_feedback(self) -> ReturnFeedback | None:
        return ReturnFeedback.from_wire(self.feedback) if self.feedback else None


class ReturnItemBuilder(Builder):
    fields = (
        "order_item_id",
        "alt_order_item_id",
        "sku",
        "quantity",
        "source_quantity",
        "feedback",
        "notes",
        "refund_amount",
    )
    required = ("order_item_id", "sku", "quantity", "source_quantity")

    def with_feedback(self, feedback: ReturnFeedback, notes: str | None = None) -> "ReturnItemBuilder":
        return self.set(feedback=feedback, notes=notes)

    def check(self, values):
        errors = {}
        feedback = values.get("feedback")
        if feedback is not None and not isinstance(feedback, ReturnFeedback):
            add_error(errors, "feedback", f"Expected ReturnFeedback, got {feedback!r}")
        return errors

    def construct(self, values):
        if "feedback" in values:
            values["feedback"] = values["feedback"].value
        return ReturnItem(**values)


@dataclass(frozen=True)
class Return:
    return_id: str
    merchant_order_id: str
    status: ReturnStatus
    merchant_return_charge: Money
    items: tuple[ReturnItem, ...] = ()
    agree_to_return_charge: bool = False
    refund_without_return: bool = False
    charge_feedback: ChargeFeedback | None = None
    reference_return_id: str | None = None
    alt_return_id: str | None = None
    reference_order_id: str | None = None
    alt_order_id: str | None = None
    return_date: datetime | None = None
    carrier: ShippingCarrier = ShippingCarrier.UNSPECIFIED
    tracking_number: str | None = None
    return_locations: tuple[Address, ...] = ()

    def replace(self, **changes) -> "Return":
        return dataclasses.replace(self, **changes)


class ReturnBuilder(Builder):
    fields = tuple(field.name for field in dataclasses.fields(Return))
    required = ("return_id", "merchant_order_id", "status")

    def check(self, values):
        errors = {}
        status = values["status"]
        if not isinstance(status, ReturnStatus):
            add_error(errors, "status", f"Expected ReturnStatus, got {status!r}")

        charge = values.get("merchant_return_charge")
        if charge is None:
            if values.get("agree_to_return_charge"):
                add_error(errors, "merchant_return_charge", "is required when agreeing to the return charge")
        elif charge.value < 0:
            add_error(errors, "merchant_return_charge", "cannot be negative")

        if status is ReturnStatus.COMPLETED and values.get("charge_feedback") is None:
            add_error(errors, "charge_feedback", "is required for a completed return")
        return errors

    def construct(self, values):
        values.setdefault("merchant_return_charge", Money.zero())
        for name in ("items", "return_locations"):
            if name in values:
                values[name] = tuple(values[name])
        return Return(**values)
