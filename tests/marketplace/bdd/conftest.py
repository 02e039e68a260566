"""Shared BDD fixtures and step definitions for the marketplace lifecycles."""

from marketplace.lifecycle import EntityKind
from marketplace.order.order import OrderStatus
from pytest_bdd import given, parsers, then


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("the marketplace has {count:d} ready orders"), target_fixture="tokens")
def ready_orders(fake, order_doc, count):
    tokens = [f"ord-{index:03d}" for index in range(1, count + 1)]
    for token in tokens:
        fake.seed_order(order_doc(token))
    return tokens


@given(parsers.cfparse('the marketplace has an acknowledged order "{token}"'), target_fixture="tokens")
def acknowledged_order(fake, order_doc, token):
    fake.seed_order(order_doc(token, status="acknowledged"))
    return [token]


@given(parsers.cfparse('the marketplace will reject order "{token}" with "{message}"'))
def scripted_rejection(fake, token, message):
    fake.reject(token, message)


@given(parsers.cfparse('the marketplace is unreachable for order "{token}"'))
def scripted_outage(fake, token):
    fake.break_token(token)


@given(parsers.cfparse('the marketplace has a return "{token}" in status "{status}"'))
def open_return(fake, return_doc, token, status):
    overrides = {"return_charge_feedback": "Other"} if status == "completed by merchant" else {}
    fake.seed_return(return_doc(token, status=status, **overrides))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the batch reports {succeeded:d} succeeded and {failed:d} failed"))
def batch_counts(result, succeeded, failed):
    assert len(result.succeeded) == succeeded
    assert len(result.failures) == failed


@then(parsers.cfparse('the failure for "{token}" is a "{error_kind}" error'))
def failure_kind(result, token, error_kind):
    outcome = result.outcome(token)
    assert not outcome.ok
    assert outcome.error_kind == error_kind


@then(parsers.cfparse('the failure for "{token}" is retryable'))
def failure_retryable(result, token):
    assert result.outcome(token).retryable


@then(parsers.cfparse('the failure for "{token}" is not retryable'))
def failure_not_retryable(result, token):
    assert not result.outcome(token).retryable


@then(parsers.cfparse('order "{token}" is "{status}" on the marketplace'))
def order_status(fake, token, status):
    assert fake.status_of("order", token) == status


@then(parsers.cfparse('return "{token}" is "{status}" on the marketplace'))
def return_status(fake, token, status):
    assert fake.status_of("return", token) == status


@then("polling ready orders again returns nothing")
def nothing_left(registry):
    assert list(registry.poll_tokens(EntityKind.ORDER, OrderStatus.READY)) == []
