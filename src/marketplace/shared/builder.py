"""Builder base. Accumulate now, validate once at ``build()``.

Setters never validate; ``build()`` checks required fields, then the
builder's cross-field rules, then hands the values to the immutable target.
A builder that fails leaves nothing half-built behind.
"""

from protean.exceptions import ValidationError


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list | tuple | set | frozenset | dict):
        return len(value) == 0
    return False


class Builder:
    """Base class for all entity and line-item builders."""

    fields: tuple[str, ...] = ()
    required: tuple[str, ...] = ()

    def __init__(self, **values) -> None:
        self._values: dict = {}
        self.set(**values)

    def set(self, **values) -> "Builder":
        unknown = set(values) - set(self.fields)
        if unknown:
            raise TypeError(f"{type(self).__name__} has no field(s): {', '.join(sorted(unknown))}")
        self._values.update(values)
        return self

    def get(self, name: str, default=None):
        return self._values.get(name, default)

    def check(self, values: dict) -> dict[str, list[str]]:
        """Cross-field rules. Return a ``{field: [messages]}`` dict."""
        return {}

    def construct(self, values: dict):
        raise NotImplementedError

    def build(self):
        values = {name: value for name, value in self._values.items() if value is not None}

        errors: dict[str, list[str]] = {}
        for name in self.required:
            if _is_blank(values.get(name)):
                errors.setdefault(name, []).append("is required")
        if errors:
            raise ValidationError(errors)

        errors = self.check(values)
        if errors:
            raise ValidationError(errors)

        return self.construct(values)


def add_error(errors: dict[str, list[str]], field: str, message: str) -> None:
    errors.setdefault(field, []).append(message)
