"""Pydantic schemas for marketplace wire documents.

These are external contracts (anti-corruption layer): field names follow
the marketplace, not the domain. Enumerated values and dates stay strings
here and are parsed strictly by the codecs.
"""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, Field


def _exact(value):
    if isinstance(value, float | bool):
        raise ValueError("money must be a decimal string, not a binary float")
    return value


WireMoney = Annotated[Decimal, BeforeValidator(_exact)]


class WireModel(BaseModel):
    model_config = {"extra": "ignore"}


# ---------------------------------------------------------------------------
# Shared sub-documents
# ---------------------------------------------------------------------------
class AddressDocument(WireModel):
    address1: str
    address2: str | None = None
    city: str
    state: str
    zip_code: str


class PersonDocument(WireModel):
    name: str | None = None
    phone_number: str | None = None


class RefundAmountDocument(WireModel):
    principal: WireMoney
    tax: WireMoney | None = None
    shipping_cost: WireMoney | None = None
    shipping_tax: WireMoney | None = None


class ErrorBody(WireModel):
    errors: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Poll listings
# ---------------------------------------------------------------------------
class OrderListing(WireModel):
    order_urls: list[str] = Field(default_factory=list)


class ReturnListing(WireModel):
    return_urls: list[str] = Field(default_factory=list)


class RefundListing(WireModel):
    refund_urls: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class ItemPriceDocument(WireModel):
    base_price: WireMoney
    item_tax: WireMoney | None = None


class OrderItemDocument(WireModel):
    order_item_id: str
    merchant_sku: str
    product_title: str | None = None
    request_order_quantity: int = Field(ge=0)
    item_price: ItemPriceDocument


class ShippingToDocument(WireModel):
    recipient: PersonDocument | None = None
    address: AddressDocument | None = None


class OrderDetailDocument(WireModel):
    request_shipping_carrier: str | None = None
    request_shipping_method: str | None = None


class OrderDocument(WireModel):
    merchant_order_id: str
    reference_order_id: str | None = None
    alt_order_id: str | None = None
    status: str
    order_placed_date: str | None = None
    fulfillment_node: str | None = None
    buyer: PersonDocument | None = None
    shipping_to: ShippingToDocument | None = None
    order_detail: OrderDetailDocument | None = None
    order_items: list[OrderItemDocument]


# ---------------------------------------------------------------------------
# Returns
# ---------------------------------------------------------------------------
class ReturnItemDocument(WireModel):
    order_item_id: str
    alt_order_item_id: str | None = None
    merchant_sku: str
    return_quantity: int = Field(ge=0)
    return_feedback: str | None = None
    notes: str | None = None
    requested_refund_amount: RefundAmountDocument | None = None


class ReturnDocument(WireModel):
    merchant_return_authorization_id: str
    reference_return_authorization_id: str | None = None
    alt_return_authorization_id: str | None = None
    merchant_order_id: str
    reference_order_id: str | None = None
    alt_order_id: str | None = None
    return_status: str
    merchant_return_charge: WireMoney | None = None
    agree_to_return_charge: bool = False
    refund_without_return: bool = False
    return_charge_feedback: str | None = None
    return_date: str | None = None
    shipping_carrier: str | None = None
    tracking_number: str | None = None
    return_location: list[AddressDocument] = Field(default_factory=list)
    return_merchant_SKUs: list[ReturnItemDocument] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Refunds
# ---------------------------------------------------------------------------
class RefundItemDocument(WireModel):
    order_item_id: str
    merchant_sku: str
    total_quantity: int | None = Field(default=None, ge=0)
    order_return_refund_qty: int = Field(ge=0)
    refund_reason: str
    refund_feedback: str | None = None
    notes: str | None = None
    refund_amount: RefundAmountDocument | None = None


class RefundDocument(WireModel):
    refund_authorization_id: str
    alt_refund_id: str | None = None
    merchant_order_id: str
    refund_status: str
    items: list[RefundItemDocument] = Field(default_factory=list)


class RefundCreated(WireModel):
    refund_authorization_id: str
    refund_status: str
