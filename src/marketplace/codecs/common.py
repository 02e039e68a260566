"""Helpers shared by the per-entity codecs."""

from contextlib import contextmanager

import pydantic
from protean.exceptions import ValidationError

from marketplace.codecs.schemas import AddressDocument, PersonDocument, RefundAmountDocument
from marketplace.exceptions import ParseError
from marketplace.shared.address import Address, Person
from marketplace.shared.money import Money, RefundAmount


def validate(schema: type[pydantic.BaseModel], document):
    """Check ``document`` against ``schema`` or raise ``ParseError``."""
    try:
        return schema.model_validate(document)
    except pydantic.ValidationError as exc:
        raise ParseError(f"Malformed {schema.__name__}: {exc}", document) from exc


@contextmanager
def entity_errors(document):
    """Turn domain validation failures on inbound data into ``ParseError``."""
    try:
        yield
    except ValidationError as exc:
        raise ParseError(f"Invalid document: {exc.messages}", document) from exc


def token_from_url(url: str) -> str:
    """The token is the last path segment of a listing URL."""
    return url.rstrip("/").rsplit("/", 1)[-1]


def compact(document: dict) -> dict:
    """Drop keys whose value is ``None``."""
    return {key: value for key, value in document.items() if value is not None}


def money(value) -> Money | None:
    return None if value is None else Money.parse(value)


def wire_money(value: Money | None) -> str | None:
    return None if value is None else value.to_wire()


def address_from_wire(doc: AddressDocument | None) -> Address | None:
    if doc is None:
        return None
    return Address(
        address1=doc.address1,
        address2=doc.address2,
        city=doc.city,
        state=doc.state,
        zip_code=doc.zip_code,
    )


def address_to_wire(address: Address | None) -> dict | None:
    if address is None:
        return None
    return compact(
        {
            "address1": address.address1,
            "address2": address.address2,
            "city": address.city,
            "state": address.state,
            "zip_code": address.zip_code,
        }
    )


def person_from_wire(doc: PersonDocument | None) -> Person | None:
    if doc is None or not doc.name:
        return None
    return Person(name=doc.name, phone=doc.phone_number)


def refund_amount_from_wire(doc: RefundAmountDocument | None) -> RefundAmount | None:
    if doc is None:
        return None
    return RefundAmount(
        principal=Money.parse(doc.principal),
        tax=money(doc.tax),
        shipping_cost=money(doc.shipping_cost),
        shipping_tax=money(doc.shipping_tax),
    )


def refund_amount_to_wire(amount: RefundAmount | None) -> dict | None:
    if amount is None:
        return None
    return compact(
        {
            "principal": wire_money(amount.principal),
            "tax": wire_money(amount.tax),
            "shipping_cost": wire_money(amount.shipping_cost),
            "shipping_tax": wire_money(amount.shipping_tax),
        }
    )
