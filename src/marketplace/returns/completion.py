"""Return completion — the merchant closes a return and rules on the charge."""

from dataclasses import dataclass

from marketplace.returns.returns import ChargeFeedback, ReturnItem
from marketplace.shared.builder import Builder, add_error


@dataclass(frozen=True)
class ReturnCompletion:
    return_id: str
    merchant_order_id: str
    agree_to_return_charge: bool
    charge_feedback: ChargeFeedback
    items: tuple[ReturnItem, ...]
    alt_return_id: str | None = None


class ReturnCompletionBuilder(Builder):
    """Builds the completion request.

    ``agree_to_return_charge`` must be set explicitly: ``False`` means the
    merchant disputes the charge, which is a decision, not a default.
    """

    fields = (
        "return_id",
        "merchant_order_id",
        "agree_to_return_charge",
        "charge_feedback",
        "items",
        "alt_return_id",
    )
    required = ("return_id", "merchant_order_id", "agree_to_return_charge", "charge_feedback", "items")

    def __init__(self, return_=None, **values) -> None:
        if return_ is not None:
            values.setdefault("return_id", return_.return_id)
            values.setdefault("merchant_order_id", return_.merchant_order_id)
            if return_.alt_return_id:
                values.setdefault("alt_return_id", return_.alt_return_id)
        super().__init__(**values)

    def decide(self, agree_to_return_charge: bool, feedback: ChargeFeedback) -> "ReturnCompletionBuilder":
        return self.set(agree_to_return_charge=agree_to_return_charge, charge_feedback=feedback)

    def add_item(self, item: ReturnItem) -> "ReturnCompletionBuilder":
        self._values["items"] = (*self._values.get("items", ()), item)
        return self

    def check(self, values):
        errors = {}
        if not isinstance(values["agree_to_return_charge"], bool):
            add_error(errors, "agree_to_return_charge", "must be True or False")
        if not isinstance(values["charge_feedback"], ChargeFeedback):
            add_error(errors, "charge_feedback", f"Expected ChargeFeedback, got {values['charge_feedback']!r}")

        seen = set()
        for item in values["items"]:
            if not item.feedback:
                add_error(errors, "items", f"{item.sku}: feedback is required to complete a return")
            if item.order_item_id in seen:
                add_error(errors, "items", f"Duplicate order item {item.order_item_id}")
            seen.add(item.order_item_id)
        return errors

    def construct(self, values):
        values["items"] = tuple(values["items"])
        return ReturnCompletion(**values)
