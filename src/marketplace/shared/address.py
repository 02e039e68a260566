"""Address and contact value objects shared by orders and returns."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from marketplace.domain import marketplace


@marketplace.value_object
class Address:
    """A US postal address as the marketplace accepts it."""

    address1 = String(required=True, max_length=255)
    address2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=2)
    zip_code = String(required=True, max_length=5)

    @invariant.post
    def state_must_be_two_letters(self):
        if self.state is not None and len(self.state) != 2:
            raise ValidationError({"state": ["State must be a 2 character code"]})

    @invariant.post
    def zip_code_must_fit_five_characters(self):
        if self.zip_code is not None and len(self.zip_code) > 5:
            raise ValidationError({"zip_code": ["Postal code must be at most 5 characters"]})


@marketplace.value_object
class Person:
    """Buyer or recipient contact."""

    name = String(required=True, max_length=255)
    phone = String(max_length=50)
