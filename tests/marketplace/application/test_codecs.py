"""Tests for the wire codecs: strict inbound parsing, exact outbound money."""

from datetime import UTC, datetime, timedelta

import pytest
from marketplace.codecs import orders as order_codec
from marketplace.codecs import refunds as refund_codec
from marketplace.codecs import returns as return_codec
from marketplace.conversion import convert, convert_all
from marketplace.exceptions import ParseError, UnknownEnumValueError
from marketplace.order.acknowledgment import AckItem, AckItemStatus, AcknowledgmentBuilder
from marketplace.order.order import OrderStatus
from marketplace.order.shipment import ShipmentBuilder, ShipmentItem, ShipRequestBuilder
from marketplace.refunds.refund import RefundItem, RefundReason, RefundRequestBuilder, RefundStatus
from marketplace.returns.completion import ReturnCompletionBuilder
from marketplace.returns.returns import ChargeFeedback, ReturnFeedback, ReturnItem, ReturnStatus
from marketplace.shared.address import Address
from marketplace.shared.vocabulary import ShippingCarrier


class TestOrderFromWire:
    def test_detail(self, order_doc):
        order = order_codec.from_wire(order_doc())
        assert order.token == "ord-001"
        assert order.status is OrderStatus.READY
        assert order.reference_order_id == "ref-ord-001"
        assert order.placed_at.utcoffset() == timedelta(hours=-7)
        assert order.buyer.name == "Pat Buyer"
        assert order.shipping.shipping_carrier is ShippingCarrier.UPS
        assert order.shipping.ship_to.state == "IL"
        assert [item.sku for item in order.items] == ["SKU-A", "SKU-B"]
        assert order.items[0].unit_price.to_wire() == "44.99"
        assert order.items[0].item_tax.to_wire() == "3.60"
        assert order.items[0].fulfillment_node == "node-1"

    def test_money_survives_a_round_trip(self, order_doc):
        document = order_codec.to_wire(order_codec.from_wire(order_doc()))
        prices = [item["item_price"] for item in document["order_items"]]
        assert prices == [{"base_price": "44.99", "item_tax": "3.60"}, {"base_price": "0.00"}]

    def test_minimal_document(self, order_doc):
        document = order_doc()
        for key in ("buyer", "shipping_to", "order_detail", "order_placed_date", "reference_order_id"):
            del document[key]
        order = order_codec.from_wire(document)
        assert order.shipping is None
        assert order.buyer is None
        assert order.placed_at is None

    def test_unknown_status(self, order_doc):
        with pytest.raises(UnknownEnumValueError):
            order_codec.from_wire(order_doc(status="teleported"))

    def test_float_price_is_refused(self, order_doc):
        items = [
            {
                "order_item_id": "i1",
                "merchant_sku": "SKU-A",
                "request_order_quantity": 1,
                "item_price": {"base_price": 44.99},
            }
        ]
        with pytest.raises(ParseError):
            order_codec.from_wire(order_doc(items=items))

    def test_missing_items(self, order_doc):
        document = order_doc()
        del document["order_items"]
        with pytest.raises(ParseError) as exc:
            order_codec.from_wire(document)
        assert exc.value.document is document

    def test_invalid_address(self, order_doc):
        document = order_doc()
        document["shipping_to"]["address"]["state"] = "Illinois"
        with pytest.raises(ParseError):
            order_codec.from_wire(document)

    def test_malformed_date(self, order_doc):
        with pytest.raises(ParseError):
            order_codec.from_wire(order_doc(order_placed_date="26/05/2016"))

    def test_not_a_document(self):
        with pytest.raises(ParseError):
            order_codec.from_wire("<html>maintenance</html>")

    def test_tokens_are_last_path_segments(self):
        listing = {
            "order_urls": [
                "/api/orders/withoutShipmentDetail/ord-1",
                "/api/orders/withoutShipmentDetail/ord-2/",
            ]
        }
        assert order_codec.tokens_from_wire(listing) == ["ord-1", "ord-2"]


class TestOrderRequestsToWire:
    def test_acknowledgment(self, order_doc):
        order = order_codec.from_wire(order_doc())
        ack = AcknowledgmentBuilder(order_token=order.token, alt_order_id="alt-7")
        ack.add_item(convert(order.items[0], AckItem).build())
        ack.add_item(convert(order.items[1], AckItem, status=AckItemStatus.NONFULFILLABLE_NO_INVENTORY).build())
        document = order_codec.acknowledgment_to_wire(ack.build())
        assert document == {
            "acknowledgement_status": "accepted",
            "alt_order_id": "alt-7",
            "order_items": [
                {"order_item_acknowledgement_status": "fulfillable", "order_item_id": "ord-001-i1"},
                {"order_item_acknowledgement_status": "nonfulfillable - no inventory", "order_item_id": "ord-001-i2"},
            ],
        }

    def test_ship_request(self, order_doc):
        order = order_codec.from_wire(order_doc(status="acknowledged"))
        shipped_at = datetime(2016, 5, 27, 10, 0, tzinfo=UTC)
        address = Address(address1="9 Depot Rd", city="Reno", state="NV", zip_code="89501")
        shipment = ShipmentBuilder(
            carrier=ShippingCarrier.UPS,
            tracking_number="1Z999",
            shipped_at=shipped_at,
            expected_delivery=shipped_at + timedelta(days=2),
            ship_from_zip="89501",
        )
        first, second = convert_all(order.items, ShipmentItem)
        shipment.add_item(first.split(1, 1).return_to_address(address, "RMA-1", 30).build())
        shipment.add_item(second.build())
        request = ShipRequestBuilder(order).add_shipment(shipment.build()).build()

        document = order_codec.ship_request_to_wire(request)
        wire = document["shipments"][0]
        assert wire["carrier"] == "UPS"
        assert wire["shipment_tracking_number"] == "1Z999"
        assert wire["response_shipment_date"] == "2016-05-27T10:00:00.000000+00:00"
        assert wire["expected_delivery_date"] == "2016-05-29T10:00:00.000000+00:00"
        assert wire["shipment_items"][0] == {
            "merchant_sku": "SKU-A",
            "response_shipment_sku_quantity": 1,
            "response_shipment_cancel_qty": 1,
            "RMA_number": "RMA-1",
            "days_to_return": 30,
            "return_location": {"address1": "9 Depot Rd", "city": "Reno", "state": "NV", "zip_code": "89501"},
        }

    def test_cancel_only_shipment_has_no_carrier(self, order_doc):
        order = order_codec.from_wire(order_doc(status="acknowledged"))
        shipment = ShipmentBuilder(alt_shipment_id="cancel-1")
        for item in convert_all(order.items, ShipmentItem):
            shipment.add_item(item.cancel_all().build())
        request = ShipRequestBuilder(order).add_shipment(shipment.build()).build()
        wire = order_codec.ship_request_to_wire(request)["shipments"][0]
        assert "carrier" not in wire
        assert wire["alt_shipment_id"] == "cancel-1"


class TestReturnCodec:
    def test_detail(self, return_doc):
        return_ = return_codec.from_wire(return_doc())
        assert return_.return_id == "ret-001"
        assert return_.status is ReturnStatus.CREATED
        assert return_.merchant_return_charge.to_wire() == "5.00"
        assert return_.carrier is ShippingCarrier.FEDEX
        assert return_.return_locations[0].city == "Reno"
        assert return_.items[0].refund_amount.total().to_wire() == "48.59"

    def test_missing_carrier_is_unspecified(self, return_doc):
        assert return_codec.from_wire(return_doc(shipping_carrier=None)).carrier is ShippingCarrier.UNSPECIFIED

    def test_unknown_charge_feedback(self, return_doc):
        with pytest.raises(UnknownEnumValueError):
            return_codec.from_wire(return_doc(return_charge_feedback="Because"))

    def test_round_trip_keeps_money(self, return_doc):
        document = return_codec.to_wire(return_codec.from_wire(return_doc()))
        assert document["merchant_return_charge"] == "5.00"
        assert document["return_merchant_SKUs"][0]["requested_refund_amount"] == {"principal": "44.99", "tax": "3.60"}

    def test_completion(self, return_doc):
        return_ = return_codec.from_wire(return_doc())
        builder = ReturnCompletionBuilder(return_).decide(False, ChargeFeedback.OUTSIDE_MERCHANT_POLICY)
        builder.add_item(convert(return_.items[0], ReturnItem).with_feedback(ReturnFeedback.ITEM_DAMAGED).build())
        document = return_codec.completion_to_wire(builder.build())
        assert document["agree_to_return_charge"] is False
        assert document["return_charge_feedback"] == "Outside merchant policy"
        assert document["items"][0]["return_refund_feedback"] == "item damaged"
        assert document["items"][0]["refund_amount"] == {"principal": "44.99", "tax": "3.60"}


class TestRefundCodec:
    def test_detail(self, refund_doc):
        refund = refund_codec.from_wire(refund_doc())
        assert refund.refund_id == "refund-0001"
        assert refund.status is RefundStatus.CREATED
        assert refund.order_token == "ord-001"
        assert refund.items[0].refund_reason is RefundReason.ARRIVED_DAMAGED
        assert (refund.items[0].quantity, refund.items[0].source_quantity) == (1, 2)

    def test_unknown_reason(self, refund_doc):
        document = refund_doc()
        document["items"][0]["refund_reason"] = "Felt like it"
        with pytest.raises(UnknownEnumValueError):
            refund_codec.from_wire(document)

    def test_request(self, order_doc):
        order = order_codec.from_wire(order_doc(status="complete"))
        request = RefundRequestBuilder(order_token=order.token, alt_refund_id="alt-1")
        request.add_item(convert(order.items[0], RefundItem).because(RefundReason.CHANGED_MIND).set(quantity=1).build())
        document = refund_codec.request_to_wire(request.build())
        assert document["items"] == [
            {
                "order_item_id": "ord-001-i1",
                "merchant_sku": "SKU-A",
                "total_quantity": 2,
                "order_return_refund_qty": 1,
                "refund_reason": "Changed my mind",
                "refund_amount": {"principal": "44.99", "tax": "1.80"},
            }
        ]

    def test_created_response(self):
        assert refund_codec.created_from_wire({"refund_authorization_id": "r-1", "refund_status": "created"}) == (
            "r-1",
            RefundStatus.CREATED,
        )
