"""Order domain exceptions."""

from ordering.services.exceptions import ValidationError


class InvalidCounterValue(ValidationError, ValueError):
    """Order ID counter cannot be set to a negative number."""

    pass
