"""Closed vocabularies exchanged with the marketplace.

Every status, reason and feedback set is an ``Enum`` whose values are the
wire tokens. Parsing is strict: a token outside the set raises
``UnknownEnumValueError``. Only vocabularies whose schema defines an
"unspecified" member map the empty token to it.
"""

from enum import Enum

from marketplace.exceptions import UnknownEnumValueError


class WireEnum(Enum):
    """Enum whose values are marketplace wire tokens."""

    @classmethod
    def from_wire(cls, token):
        if isinstance(token, cls):
            return token
        if isinstance(token, str):
            wanted = token.strip().casefold()
            for member in cls:
                if member.value.casefold() == wanted:
                    return member
        raise UnknownEnumValueError(cls.__name__, token)

    def to_wire(self) -> str:
        return self.value


class ShippingCarrier(WireEnum):
    UNSPECIFIED = ""
    FEDEX = "FedEx"
    FEDEX_SMARTPOST = "FedEx SmartPost"
    FEDEX_FREIGHT = "FedEx Freight"
    UPS = "UPS"
    UPS_FREIGHT = "UPS Freight"
    UPS_MAIL_INNOVATIONS = "UPS Mail Innovations"
    UPS_SUREPOST = "UPS SurePost"
    ONTRAC = "OnTrac"
    USPS = "USPS"
    DHL = "DHL"
    LASERSHIP = "LaserShip"
    OTHER = "Other"

    @classmethod
    def from_wire(cls, token):
        if token is None:
            return cls.UNSPECIFIED
        return super().from_wire(token)
