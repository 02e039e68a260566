import random

import pytest
from marketplace.controller import LifecycleController
from marketplace.remote.registry import StatusRegistry
from marketplace.transport import set_transport
from marketplace.transport.fake_adapter import FakeTransport
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield


# ---------------------------------------------------------------------------
# Wire documents
# ---------------------------------------------------------------------------
def order_document(token="ord-001", status="ready", items=None, **overrides):
    document = {
        "merchant_order_id": token,
        "reference_order_id": f"ref-{token}",
        "status": status,
        "order_placed_date": "2016-05-26T14:43:03.0000000-07:00",
        "fulfillment_node": "node-1",
        "buyer": {"name": "Pat Buyer", "phone_number": "555-0100"},
        "shipping_to": {
            "recipient": {"name": "Pat Buyer", "phone_number": "555-0100"},
            "address": {
                "address1": "1 Main St",
                "city": "Springfield",
                "state": "IL",
                "zip_code": "62701",
            },
        },
        "order_detail": {
            "request_shipping_carrier": "UPS",
            "request_shipping_method": "Ground",
        },
        "order_items": items
        if items is not None
        else [
            {
                "order_item_id": f"{token}-i1",
                "merchant_sku": "SKU-A",
                "product_title": "Kettle",
                "request_order_quantity": 2,
                "item_price": {"base_price": "44.99", "item_tax": "3.60"},
            },
            {
                "order_item_id": f"{token}-i2",
                "merchant_sku": "SKU-B",
                "product_title": "Mug",
                "request_order_quantity": 1,
                "item_price": {"base_price": "0.00"},
            },
        ],
    }
    document.update(overrides)
    return document


def return_document(token="ret-001", status="created", order_token="ord-001", **overrides):
    document = {
        "merchant_return_authorization_id": token,
        "merchant_order_id": order_token,
        "return_status": status,
        "merchant_return_charge": "5.00",
        "agree_to_return_charge": False,
        "refund_without_return": False,
        "return_date": "2016-06-02T09:00:00Z",
        "shipping_carrier": "FedEx",
        "tracking_number": "TRK-RET-1",
        "return_location": [
            {"address1": "9 Depot Rd", "city": "Reno", "state": "NV", "zip_code": "89501"},
        ],
        "return_merchant_SKUs": [
            {
                "order_item_id": f"{order_token}-i1",
                "merchant_sku": "SKU-A",
                "return_quantity": 1,
                "requested_refund_amount": {"principal": "44.99", "tax": "3.60"},
            }
        ],
    }
    document.update(overrides)
    return document


def refund_document(token="refund-0001", status="created", order_token="ord-001", **overrides):
    document = {
        "refund_authorization_id": token,
        "alt_refund_id": "alt-1",
        "merchant_order_id": order_token,
        "refund_status": status,
        "items": [
            {
                "order_item_id": f"{order_token}-i1",
                "merchant_sku": "SKU-A",
                "total_quantity": 2,
                "order_return_refund_qty": 1,
                "refund_reason": "Item arrived damaged",
                "refund_amount": {"principal": "44.99", "tax": "3.60"},
            }
        ],
    }
    document.update(overrides)
    return document


# ---------------------------------------------------------------------------
# Fake marketplace and controller
# ---------------------------------------------------------------------------
@pytest.fixture()
def fake():
    transport = FakeTransport()
    set_transport(transport)
    return transport


@pytest.fixture()
def registry(fake):
    return StatusRegistry.connect(fake, fake.endpoints)


@pytest.fixture()
def controller(registry):
    return LifecycleController.connect(registry, rng=random.Random(7))


@pytest.fixture()
def order_doc():
    return order_document


@pytest.fixture()
def return_doc():
    return return_document


@pytest.fixture()
def refund_doc():
    return refund_document
