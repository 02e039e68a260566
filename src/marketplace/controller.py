"""Lifecycle controller — drive one batch of entities through a transition.

For every token a poll returns, the controller fetches the detail, lets the
caller prepare the transition request, checks it locally against the
lifecycle tables, submits it, and records the outcome. Each token is
isolated: a failure is recorded and the batch moves on. Nothing is kept
between runs; the marketplace is the source of truth for status, so a
re-poll never returns a token that has already moved on.
"""

import random
import threading
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from protean.exceptions import ValidationError

from marketplace import lifecycle
from marketplace.conversion import convert, convert_all
from marketplace.exceptions import (
    NotFoundError,
    ParseError,
    RemoteRejectionError,
    TransportError,
    UnknownEnumValueError,
)
from marketplace.lifecycle import EntityKind, Transition
from marketplace.order.acknowledgment import AckItem, AcknowledgmentBuilder
from marketplace.order.order import Order, OrderStatus
from marketplace.order.shipment import ShipmentBuilder, ShipmentItem, ShipRequestBuilder
from marketplace.refunds.refund import RefundBuilder, RefundItem, RefundReason, RefundRequestBuilder, RefundStatus
from marketplace.returns.completion import ReturnCompletionBuilder
from marketplace.returns.returns import ChargeFeedback, Return, ReturnFeedback, ReturnItem, ReturnStatus
from marketplace.utils.logging import get_logger

# Which entity kind's remote module accepts each transition.
_SUBMITTED_TO = {
    Transition.ACKNOWLEDGE: EntityKind.ORDER,
    Transition.SHIP: EntityKind.ORDER,
    Transition.CANCEL: EntityKind.ORDER,
    Transition.COMPLETE_RETURN: EntityKind.RETURN,
    Transition.CREATE_REFUND: EntityKind.REFUND,
}


@dataclass(frozen=True)
class TokenOutcome:
    """Result of processing one token."""

    kind: EntityKind
    token: str
    transition: Transition
    ok: bool
    error_kind: str | None = None
    cause: str | None = None
    diagnostic: object = None
    retryable: bool = False
    skipped: bool = False
    entity: object = None
    warning: str | None = None


@dataclass
class BatchResult:
    kind: EntityKind
    status: object
    transition: Transition
    outcomes: list[TokenOutcome] = field(default_factory=list)
    canceled: bool = False

    @property
    def succeeded(self) -> list[TokenOutcome]:
        return [outcome for outcome in self.outcomes if outcome.ok and not outcome.skipped]

    @property
    def skipped(self) -> list[TokenOutcome]:
        return [outcome for outcome in self.outcomes if outcome.skipped]

    @property
    def failures(self) -> list[TokenOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def retryable(self) -> list[str]:
        return [outcome.token for outcome in self.failures if outcome.retryable]

    def outcome(self, token: str) -> TokenOutcome:
        for outcome in self.outcomes:
            if outcome.token == token:
                return outcome
        raise KeyError(token)


def _unique(tokens: Iterable[str]) -> Iterator[str]:
    seen = set()
    for token in tokens:
        if token not in seen:
            seen.add(token)
            yield token


# ---------------------------------------------------------------------------
# Ready-made request preparers
# ---------------------------------------------------------------------------
def accept_all(order: Order):
    """Acknowledge every item of ``order`` as fulfillable."""
    builder = AcknowledgmentBuilder(order_token=order.token, alt_order_id=order.alt_order_id)
    for item in convert_all(order.items, AckItem):
        builder.add_item(item.build())
    return builder.build()


def decide_all(
    agree_to_return_charge: bool,
    charge_feedback: ChargeFeedback,
    item_feedback: ReturnFeedback = ReturnFeedback.OTHER,
) -> Callable[[Return], object]:
    """Preparer that completes every return with the same decision."""

    def decide(return_: Return):
        builder = ReturnCompletionBuilder(return_).decide(agree_to_return_charge, charge_feedback)
        for item in return_.items:
            converted = convert(item, ReturnItem)
            if converted.get("feedback") is None:
                converted.set(feedback=item_feedback)
            builder.add_item(converted.build())
        return builder.build()

    return decide


class LifecycleController:
    """Runs batches of lifecycle transitions against the marketplace.

    ``orders``, ``returns`` and ``refunds`` are the caller-facing remote
    modules. ``logger`` and ``rng`` are injected so runs are reproducible;
    the random source is only used for alternate ids.
    """

    def __init__(self, orders, returns, refunds, logger=None, rng: random.Random | None = None, max_workers: int = 1):
        self._remotes = {
            EntityKind.ORDER: orders,
            EntityKind.RETURN: returns,
            EntityKind.REFUND: refunds,
        }
        self.logger = logger or get_logger(__name__)
        self.rng = rng or random.Random()
        self.max_workers = max(1, max_workers)
        self._rng_lock = threading.Lock()
        self._cancel = threading.Event()

    @classmethod
    def connect(cls, registry, **options) -> "LifecycleController":
        return cls(
            registry.remote(EntityKind.ORDER),
            registry.remote(EntityKind.RETURN),
            registry.remote(EntityKind.REFUND),
            **options,
        )

    def alternate_id(self, prefix: str) -> str:
        with self._rng_lock:
            return f"{prefix}-{self.rng.getrandbits(48):012x}"

    def cancel(self) -> None:
        """Stop the running batch once the token in flight is done."""
        self._cancel.set()

    # -------------------------------------------------------------------
    # Generic core
    # -------------------------------------------------------------------
    def run(
        self, kind: EntityKind, status, transition: Transition, prepare=None, ascending: bool = True
    ) -> BatchResult:
        """Poll ``kind`` in ``status`` and apply ``transition`` to each token.

        ``prepare(entity)`` returns the transition request, or ``None`` to
        leave the entity alone. With ``Transition.FETCH`` nothing is
        submitted and each outcome carries the fetched entity.
        """
        self._cancel.clear()
        result = BatchResult(kind=kind, status=status, transition=transition)
        tokens = _unique(self._remotes[kind].poll_tokens(status, ascending))
        self.logger.info(
            "Starting batch",
            kind=kind.value,
            status=getattr(status, "name", status),
            transition=transition.value,
        )

        if self.max_workers == 1:
            for token in tokens:
                if self._cancel.is_set():
                    result.canceled = True
                    break
                result.outcomes.append(self._process(kind, token, transition, prepare))
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                futures = [pool.submit(self._guarded, kind, token, transition, prepare) for token in tokens]
                for future in futures:
                    outcome = future.result()
                    if outcome is None:
                        result.canceled = True
                    else:
                        result.outcomes.append(outcome)

        self.logger.info(
            "Batch complete",
            kind=kind.value,
            transition=transition.value,
            succeeded=len(result.succeeded),
            failed=len(result.failures),
            skipped=len(result.skipped),
            canceled=result.canceled,
        )
        return result

    def _guarded(self, kind, token, transition, prepare):
        if self._cancel.is_set():
            return None
        return self._process(kind, token, transition, prepare)

    def _process(self, kind: EntityKind, token: str, transition: Transition, prepare) -> TokenOutcome:
        def failed(error_kind, exc, diagnostic=None, retryable=False, exc_info=False):
            self.logger.warning(
                "Transition failed",
                kind=kind.value,
                token=token,
                transition=transition.value,
                error_kind=error_kind,
                cause=str(exc),
                **({"exc_info": exc} if exc_info else {}),
            )
            return TokenOutcome(
                kind=kind,
                token=token,
                transition=transition,
                ok=False,
                error_kind=error_kind,
                cause=str(exc),
                diagnostic=diagnostic,
                retryable=retryable,
            )

        try:
            entity = self._remotes[kind].get_detail(token)
            if transition is Transition.FETCH:
                return TokenOutcome(kind=kind, token=token, transition=transition, ok=True, entity=entity)

            request = prepare(entity)
            if request is None:
                self.logger.info("Skipped", kind=kind.value, token=token, transition=transition.value)
                return TokenOutcome(kind=kind, token=token, transition=transition, ok=True, skipped=True, entity=entity)

            projected = self._project(transition, entity, request)
            receipt = self._remotes[_SUBMITTED_TO[transition]].submit_transition(token, transition, request)
        except ValidationError as exc:
            return failed("validation", exc, diagnostic=exc.messages)
        except NotFoundError as exc:
            return failed("not_found", exc)
        except UnknownEnumValueError as exc:
            return failed("unknown_value", exc, diagnostic=exc.token)
        except ParseError as exc:
            return failed("parse", exc, diagnostic=exc.document)
        except RemoteRejectionError as exc:
            return failed("remote_rejection", exc, diagnostic=exc.payload)
        except TransportError as exc:
            return failed("transport", exc, retryable=exc.retryable)
        except Exception as exc:
            return failed("unexpected", exc, exc_info=True)

        # Submitted: from here on the marketplace has recorded the transition.
        warning = receipt.warning
        if transition is Transition.CREATE_REFUND:
            projected, warning = self._created_refund(token, request, receipt)

        self.logger.info(
            "Transition applied",
            kind=kind.value,
            token=token,
            transition=transition.value,
            **({"warning": warning} if warning else {}),
        )
        return TokenOutcome(kind=kind, token=token, transition=transition, ok=True, entity=projected, warning=warning)

    def _created_refund(self, token: str, request, receipt):
        """The refund as created, or ``None`` with the reason it cannot be shown."""
        if receipt.reference is None:
            return None, receipt.warning
        try:
            refund = RefundBuilder(
                refund_id=receipt.reference,
                order_token=token,
                status=RefundStatus.CREATED,
                items=request.items,
                alt_refund_id=request.alt_refund_id,
            ).build()
        except ValidationError as exc:
            self.logger.warning("Refund created, record incomplete", token=token, cause=str(exc))
            return None, str(exc)
        return refund, receipt.warning

    @staticmethod
    def _project(transition: Transition, entity, request):
        """Entity as expected after ``request``; refuses illegal transitions."""
        if transition is Transition.ACKNOWLEDGE:
            return lifecycle.acknowledge(entity, request)
        if transition is Transition.SHIP:
            return lifecycle.ship(entity, request)
        if transition is Transition.CANCEL:
            if not all(shipment.is_cancel_only for shipment in request.shipments):
                raise ValidationError({"shipments": ["A cancellation must not ship any units"]})
            return lifecycle.ship(entity, request)
        if transition is Transition.COMPLETE_RETURN:
            return lifecycle.complete(entity, request)
        if transition is Transition.CREATE_REFUND:
            lifecycle.ensure_allowed(transition, entity.status)
            if request.order_token != entity.token:
                raise ValidationError({"order_token": [f"Refund is for {request.order_token}, not {entity.token}"]})
            return None
        raise ValueError(f"Cannot project {transition.value}")

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------
    def acknowledge_orders(self, review=None, ascending: bool = True) -> BatchResult:
        """READY orders → acknowledged (or rejected)."""
        return self.run(EntityKind.ORDER, OrderStatus.READY, Transition.ACKNOWLEDGE, review or accept_all, ascending)

    def ship_orders(self, plan, status: OrderStatus = OrderStatus.ACK, ascending: bool = True) -> BatchResult:
        """Acknowledged (or in progress) orders → shipped."""
        return self.run(EntityKind.ORDER, status, Transition.SHIP, plan, ascending)

    def cancel_orders(self, select=None, ascending: bool = True) -> BatchResult:
        """Acknowledged orders → canceled, through a shipment that ships nothing."""

        def prepare(order: Order):
            if select is not None and not select(order):
                return None
            shipment = ShipmentBuilder(alt_shipment_id=self.alternate_id("cancel"))
            for item in convert_all(order.items, ShipmentItem):
                shipment.add_item(item.cancel_all().build())
            return ShipRequestBuilder(order).add_shipment(shipment.build()).build()

        return self.run(EntityKind.ORDER, OrderStatus.ACK, Transition.CANCEL, prepare, ascending)

    def complete_returns(
        self, decide, status: ReturnStatus = ReturnStatus.CREATED, ascending: bool = True
    ) -> BatchResult:
        """Open returns → completed by the merchant."""
        return self.run(EntityKind.RETURN, status, Transition.COMPLETE_RETURN, decide, ascending)

    def refund_orders(self, select, ascending: bool = True) -> BatchResult:
        """Complete orders → refund created.

        ``select(order)`` returns the ``RefundReason`` for a full refund of
        the order, or ``None`` to leave it alone.
        """

        def prepare(order: Order):
            reason = select(order)
            if reason is None:
                return None
            request = RefundRequestBuilder(order_token=order.token, alt_refund_id=self.alternate_id("refund"))
            for item in convert_all(order.items, RefundItem):
                request.add_item(item.because(RefundReason.from_wire(reason)).build())
            return request.build()

        return self.run(EntityKind.ORDER, OrderStatus.COMPLETE, Transition.CREATE_REFUND, prepare, ascending)

    def collect_refunds(self, status: RefundStatus = RefundStatus.CREATED, ascending: bool = True) -> BatchResult:
        """Fetch every refund in ``status``; nothing is submitted."""
        return self.run(EntityKind.REFUND, status, Transition.FETCH, ascending=ascending)
