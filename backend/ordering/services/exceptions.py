"""Base service exceptions.

These exceptions are raised by the service layer and should be caught
by the calling layer (dashboard handlers, scripts) and presented to the user.
"""


class ServiceError(Exception):
    """Base service exception."""

    pass


class ValidationError(ServiceError):
    """Validation error."""

    pass
