"""Tests for the item conversion pipeline and quantity conservation."""

import pytest
from marketplace.conversion import convert, convert_all
from marketplace.order.acknowledgment import AckItem, AckItemStatus
from marketplace.order.order import OrderItem
from marketplace.order.shipment import ShipmentBuilder, ShipmentItem
from marketplace.refunds.refund import RefundItem, RefundReason
from marketplace.returns.returns import ReturnFeedback, ReturnItem
from marketplace.shared.address import Address
from marketplace.shared.money import Money, RefundAmount
from protean.exceptions import ValidationError


def _order_item(quantity=3, sku="SKU-A", order_item_id="i1"):
    return OrderItem(
        order_item_id=order_item_id,
        sku=sku,
        quantity_ordered=quantity,
        unit_price=Money.parse("10.00"),
        item_tax=Money.parse("0.80"),
    )


class TestOrderItemToShipmentItem:
    def test_default_ships_everything(self):
        item = convert(_order_item(), ShipmentItem).build()
        assert (item.quantity, item.cancel_quantity) == (3, 0)
        assert item.sku == "SKU-A"
        assert item.order_item_id == "i1"

    @pytest.mark.parametrize("shipped,canceled", [(3, 0), (2, 1), (1, 2), (0, 3)])
    def test_any_split_that_adds_up_is_accepted(self, shipped, canceled):
        item = convert(_order_item(), ShipmentItem).split(shipped, canceled).build()
        assert item.quantity + item.cancel_quantity == item.quantity_ordered == 3

    @pytest.mark.parametrize("shipped,canceled", [(2, 0), (3, 1), (0, 0), (4, 0)])
    def test_split_that_does_not_add_up_fails_at_build(self, shipped, canceled):
        builder = convert(_order_item(), ShipmentItem).split(shipped, canceled)
        with pytest.raises(ValidationError) as exc:
            builder.build()
        assert "quantity" in exc.value.messages

    def test_return_to_override(self):
        address = Address(address1="9 Depot Rd", city="Reno", state="NV", zip_code="89501")
        item = convert(_order_item(), ShipmentItem).return_to_address(address, "RMA-1", 30).build()
        assert item.return_to == address
        assert item.rma_number == "RMA-1"
        assert item.days_to_return == 30

    def test_cancel_all(self):
        item = convert(_order_item(), ShipmentItem).cancel_all().build()
        assert item.is_canceled
        assert item.cancel_quantity == 3


class TestAckItemConversions:
    def test_order_item_to_fulfillable_ack_item(self):
        item = convert(_order_item(), AckItem).build()
        assert item.quantity_acknowledged == 3
        assert item.item_status is AckItemStatus.FULFILLABLE

    def test_order_item_to_nonfulfillable_ack_item(self):
        item = convert(_order_item(), AckItem, status=AckItemStatus.NONFULFILLABLE_NO_INVENTORY).build()
        assert item.quantity_acknowledged == 0

    def test_ack_item_to_shipment_item_cancels_the_rest(self):
        ack_item = convert(_order_item(), AckItem).fulfillable(2).build()
        item = convert(ack_item, ShipmentItem).build()
        assert (item.quantity, item.cancel_quantity, item.quantity_ordered) == (2, 1, 3)


class TestRefundAndReturnConversions:
    def test_order_item_to_refund_item_carries_pricing(self):
        item = convert(_order_item(), RefundItem).because(RefundReason.CHANGED_MIND, "too big").build()
        assert item.quantity == 3
        assert item.refund_amount.principal.to_wire() == "30.00"
        assert item.refund_amount.tax.to_wire() == "0.80"
        assert item.notes == "too big"

    def test_refund_quantity_cannot_exceed_ordered(self):
        builder = convert(_order_item(), RefundItem).because(RefundReason.CHANGED_MIND).set(quantity=4)
        with pytest.raises(ValidationError):
            builder.build()

    def test_partial_refund_scales_the_amount(self):
        item = convert(_order_item(), RefundItem).because(RefundReason.CHANGED_MIND).set(quantity=1).build()
        assert (item.quantity, item.source_quantity) == (1, 3)
        assert item.refund_amount.principal.to_wire() == "10.00"
        assert item.refund_amount.tax.to_wire() == "0.27"

    def test_refund_amount_set_explicitly_wins(self):
        amount = RefundAmount(principal=Money.parse("5.00"))
        item = (
            convert(_order_item(), RefundItem)
            .because(RefundReason.CHANGED_MIND)
            .set(quantity=1, refund_amount=amount)
            .build()
        )
        assert item.refund_amount == amount

    def test_shipment_item_to_return_item_limited_to_shipped(self):
        shipped = convert(_order_item(), ShipmentItem).split(2, 1).build()
        assert convert(shipped, ReturnItem).build().quantity == 2
        with pytest.raises(ValidationError):
            convert(shipped, ReturnItem).set(quantity=3).build()

    def test_return_item_to_return_item_keeps_identity_and_allows_feedback(self):
        original = convert(convert(_order_item(), ShipmentItem).build(), ReturnItem).set(quantity=1).build()
        item = convert(original, ReturnItem).with_feedback(ReturnFeedback.ITEM_DAMAGED).build()
        assert item.order_item_id == original.order_item_id
        assert item.return_feedback is ReturnFeedback.ITEM_DAMAGED

    def test_return_item_to_refund_item(self):
        returned = convert(convert(_order_item(), ShipmentItem).build(), ReturnItem).set(quantity=1).build()
        item = convert(returned, RefundItem).because(RefundReason.ARRIVED_DAMAGED).build()
        assert (item.quantity, item.source_quantity) == (1, 1)

    def test_return_item_to_refund_item_scales_requested_amount(self):
        returned = ReturnItem(
            order_item_id="i1",
            sku="SKU-A",
            quantity=2,
            refund_amount=RefundAmount(principal=Money.parse("20.00"), tax=Money.parse("1.61")),
        )
        item = convert(returned, RefundItem).because(RefundReason.ARRIVED_DAMAGED).set(quantity=1).build()
        assert item.refund_amount.principal.to_wire() == "10.00"
        assert item.refund_amount.tax.to_wire() == "0.81"

        whole = convert(returned, RefundItem).because(RefundReason.ARRIVED_DAMAGED).build()
        assert whole.refund_amount.total().to_wire() == "21.61"


class TestConvert:
    def test_unknown_pair_is_a_type_error(self):
        with pytest.raises(TypeError):
            convert(_order_item(), OrderItem)

    def test_convert_all(self):
        builders = convert_all([_order_item(), _order_item(sku="SKU-B", order_item_id="i2")], ShipmentItem)
        shipment = ShipmentBuilder(alt_shipment_id="alt-1")
        for builder in builders:
            shipment.add_item(builder.cancel_all().build())
        assert shipment.build().is_cancel_only


class TestCancelOnlyShipment:
    def test_requires_alternate_shipment_id(self):
        builder = ShipmentBuilder().add_item(convert(_order_item(), ShipmentItem).cancel_all().build())
        with pytest.raises(ValidationError) as exc:
            builder.build()
        assert "alt_shipment_id" in exc.value.messages

    def test_blank_alternate_shipment_id_fails(self):
        builder = ShipmentBuilder(alt_shipment_id="   ")
        builder.add_item(convert(_order_item(), ShipmentItem).cancel_all().build())
        with pytest.raises(ValidationError) as exc:
            builder.build()
        assert "alt_shipment_id" in exc.value.messages

    def test_with_alternate_shipment_id_needs_no_carrier(self):
        builder = ShipmentBuilder(alt_shipment_id="cancel-1")
        shipment = builder.add_item(convert(_order_item(), ShipmentItem).cancel_all().build()).build()
        assert shipment.is_cancel_only
        assert shipment.tracking_number is None
