"""Lifecycle rules — which transitions are legal, and what they produce.

The marketplace owns every status. These tables only let the client refuse
a request that cannot succeed and project the entity it expects back.

    Order:   PLACED → READY → ACK → (CANCELED | IN_PROGRESS → COMPLETE)
    Return:  CREATED → IN_PROGRESS → COMPLETED
    Refund:  CREATED → (ACCEPTED | REJECTED)
"""

from enum import Enum

from protean.exceptions import ValidationError

from marketplace.order.acknowledgment import Acknowledgment
from marketplace.order.order import Order, OrderStatus
from marketplace.order.shipment import ShipRequest
from marketplace.refunds.refund import RefundStatus
from marketplace.returns.completion import ReturnCompletion
from marketplace.returns.returns import Return, ReturnStatus


class EntityKind(Enum):
    ORDER = "order"
    RETURN = "return"
    REFUND = "refund"


class Transition(Enum):
    ACKNOWLEDGE = "acknowledge"
    SHIP = "ship"
    CANCEL = "cancel"
    COMPLETE_RETURN = "complete_return"
    CREATE_REFUND = "create_refund"
    FETCH = "fetch"


_ORDER_TRANSITIONS = {
    OrderStatus.PLACED: {OrderStatus.READY},
    OrderStatus.READY: {OrderStatus.ACK, OrderStatus.CANCELED},
    OrderStatus.ACK: {OrderStatus.IN_PROGRESS, OrderStatus.COMPLETE, OrderStatus.CANCELED},
    OrderStatus.IN_PROGRESS: {OrderStatus.IN_PROGRESS, OrderStatus.COMPLETE},
    OrderStatus.COMPLETE: set(),  # terminal
    OrderStatus.CANCELED: set(),  # terminal
}

_RETURN_TRANSITIONS = {
    ReturnStatus.CREATED: {ReturnStatus.IN_PROGRESS, ReturnStatus.COMPLETED},
    ReturnStatus.IN_PROGRESS: {ReturnStatus.COMPLETED},
    ReturnStatus.COMPLETED: set(),  # terminal
}

_REFUND_TRANSITIONS = {
    RefundStatus.CREATED: {RefundStatus.ACCEPTED, RefundStatus.REJECTED},
    RefundStatus.ACCEPTED: set(),  # terminal
    RefundStatus.REJECTED: set(),  # terminal
}

VALID_TRANSITIONS = {
    EntityKind.ORDER: _ORDER_TRANSITIONS,
    EntityKind.RETURN: _RETURN_TRANSITIONS,
    EntityKind.REFUND: _REFUND_TRANSITIONS,
}

# Where each outbound request may start from.
TRANSITION_SOURCES = {
    Transition.ACKNOWLEDGE: (EntityKind.ORDER, {OrderStatus.READY}),
    Transition.SHIP: (EntityKind.ORDER, {OrderStatus.ACK, OrderStatus.IN_PROGRESS}),
    Transition.CANCEL: (EntityKind.ORDER, {OrderStatus.ACK, OrderStatus.IN_PROGRESS}),
    Transition.COMPLETE_RETURN: (EntityKind.RETURN, {ReturnStatus.CREATED, ReturnStatus.IN_PROGRESS}),
    Transition.CREATE_REFUND: (EntityKind.ORDER, {OrderStatus.COMPLETE}),
}


def can_transition(kind: EntityKind, current, target) -> bool:
    return target in VALID_TRANSITIONS[kind].get(current, set())


def ensure_transition(kind: EntityKind, current, target) -> None:
    if not can_transition(kind, current, target):
        raise ValidationError({"status": [f"Cannot move {kind.value} from {current.name} to {target.name}"]})


def ensure_allowed(transition: Transition, current) -> None:
    """Refuse ``transition`` locally when the entity is in the wrong state."""
    kind, sources = TRANSITION_SOURCES[transition]
    if current not in sources:
        allowed = ", ".join(sorted(status.name for status in sources))
        raise ValidationError(
            {"status": [f"Cannot {transition.value} a {kind.value} in status {current.name} (expected {allowed})"]}
        )


def acknowledge(order: Order, ack: Acknowledgment) -> Order:
    """Order as it stands once ``ack`` has been accepted by the marketplace."""
    if ack.order_token != order.token:
        raise ValidationError({"order_token": [f"Acknowledgment is for {ack.order_token}, not {order.token}"]})
    ensure_allowed(Transition.ACKNOWLEDGE, order.status)

    target = OrderStatus.CANCELED if ack.is_rejected else OrderStatus.ACK
    ensure_transition(EntityKind.ORDER, order.status, target)
    return order.with_status(target)


def ship(order: Order, request: ShipRequest) -> Order:
    """Order as it stands once ``request`` has been recorded.

    Fully covered orders complete (or cancel, when nothing shipped); partly
    covered ones stay in progress.
    """
    if request.order_token != order.token:
        raise ValidationError({"order_token": [f"Ship request is for {request.order_token}, not {order.token}"]})
    transition = Transition.CANCEL if all(s.is_cancel_only for s in request.shipments) else Transition.SHIP
    ensure_allowed(transition, order.status)

    totals = request.quantities()
    covered = all(item.sku in totals for item in order.items)
    if covered and order.status is OrderStatus.ACK and all(shipped == 0 for shipped, _ in totals.values()):
        target = OrderStatus.CANCELED
    elif covered:
        target = OrderStatus.COMPLETE
    else:
        target = OrderStatus.IN_PROGRESS

    ensure_transition(EntityKind.ORDER, order.status, target)
    return order.with_status(target)


def complete(return_: Return, completion: ReturnCompletion) -> Return:
    """Return as it stands once ``completion`` has been accepted."""
    if completion.return_id != return_.return_id:
        raise ValidationError({"return_id": [f"Completion is for {completion.return_id}, not {return_.return_id}"]})
    if completion.merchant_order_id != return_.merchant_order_id:
        raise ValidationError({"merchant_order_id": ["Completion does not match the return's order"]})
    ensure_allowed(Transition.COMPLETE_RETURN, return_.status)
    ensure_transition(EntityKind.RETURN, return_.status, ReturnStatus.COMPLETED)

    return return_.replace(
        status=ReturnStatus.COMPLETED,
        agree_to_return_charge=completion.agree_to_return_charge,
        charge_feedback=completion.charge_feedback,
        items=completion.items,
        alt_return_id=completion.alt_return_id or return_.alt_return_id,
    )
