"""Money value object: exact base-10 amounts with a currency.

Amounts are kept as their canonical decimal string so that what was parsed
is exactly what is serialized back ("44.99" stays "44.99", "0.00" stays
"0.00"). Arithmetic goes through ``decimal.Decimal``; binary floats are
refused outright.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String, ValueObject

from marketplace.domain import marketplace
from marketplace.exceptions import ParseError


def _to_decimal(value) -> Decimal:
    if isinstance(value, float | bool):
        raise ParseError(f"Money cannot be built from {type(value).__name__} {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ParseError(f"Invalid money amount: {value!r}") from None
    if not result.is_finite():
        raise ParseError(f"Invalid money amount: {value!r}")
    return result


@marketplace.value_object
class Money:
    """An exact monetary amount."""

    amount = String(required=True, max_length=32)
    currency = String(max_length=3, default="USD")

    @invariant.post
    def amount_must_be_a_finite_decimal(self):
        if self.amount is None:
            return
        try:
            value = Decimal(self.amount)
        except InvalidOperation:
            raise ValidationError({"amount": [f"Not a decimal amount: {self.amount!r}"]}) from None
        if not value.is_finite():
            raise ValidationError({"amount": [f"Not a decimal amount: {self.amount!r}"]})

    @invariant.post
    def currency_must_be_iso_code(self):
        if self.currency is None:
            return
        if not (len(self.currency) == 3 and self.currency.isalpha() and self.currency.isupper()):
            raise ValidationError({"currency": [f"Invalid currency code: {self.currency!r}"]})

    @classmethod
    def parse(cls, value, currency: str = "USD") -> "Money":
        """Parse a decimal string (or ``Decimal``/``int``) into Money.

        Raises ``ParseError`` for anything that is not an exact decimal.
        """
        return cls(amount=format(_to_decimal(value), "f"), currency=currency)

    @classmethod
    def zero(cls, currency: str = "USD") -> "Money":
        return cls(amount="0.00", currency=currency)

    @property
    def value(self) -> Decimal:
        return Decimal(self.amount)

    def to_wire(self) -> str:
        return self.amount

    def is_zero(self) -> bool:
        return self.value == 0

    def _same_currency(self, other: "Money") -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Cannot combine Money with {type(other).__name__}")
        if other.currency != self.currency:
            raise ValidationError({"currency": [f"Currency mismatch: {self.currency} vs {other.currency}"]})

    def __add__(self, other: "Money") -> "Money":
        self._same_currency(other)
        return Money.parse(self.value + other.value, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._same_currency(other)
        return Money.parse(self.value - other.value, self.currency)

    def times(self, quantity: int) -> "Money":
        return Money.parse(self.value * int(quantity), self.currency)

    # Equal amounts compare equal whatever their scale; ``amount`` keeps the
    # original string for serialization.
    def __eq__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return (self.value, self.currency) == (other.value, other.currency)

    def __hash__(self) -> int:
        return hash((self.value, self.currency))

    def __lt__(self, other: "Money") -> bool:
        self._same_currency(other)
        return self.value < other.value

    def __le__(self, other: "Money") -> bool:
        self._same_currency(other)
        return self.value <= other.value

    def __gt__(self, other: "Money") -> bool:
        self._same_currency(other)
        return self.value > other.value

    def __ge__(self, other: "Money") -> bool:
        self._same_currency(other)
        return self.value >= other.value


@marketplace.value_object
class RefundAmount:
    """Refund breakdown for one line item."""

    principal = ValueObject(Money, required=True)
    tax = ValueObject(Money)
    shipping_cost = ValueObject(Money)
    shipping_tax = ValueObject(Money)

    def total(self) -> Money:
        total = self.principal
        for part in (self.tax, self.shipping_cost, self.shipping_tax):
            if part is not None:
                total = total + part
        return total

    def scaled(self, quantity: int, of: int) -> "RefundAmount":
        """The share of this amount that ``quantity`` units out of ``of`` carry.

        Each part keeps its own scale, rounding half up.
        """

        def share(part):
            if part is None:
                return None
            exact = part.value * int(quantity) / int(of)
            return Money.parse(exact.quantize(part.value, rounding=ROUND_HALF_UP), part.currency)

        return RefundAmount(
            principal=share(self.principal),
            tax=share(self.tax),
            shipping_cost=share(self.shipping_cost),
            shipping_tax=share(self.shipping_tax),
        )
