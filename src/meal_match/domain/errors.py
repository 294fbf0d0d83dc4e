"""Error taxonomy shared by services, adapters and the API."""


class MealMatchError(Exception):
    """Base class for application errors."""


class ValidationError(MealMatchError):
    """Raised when a request is malformed or missing fields."""


class NotFoundError(MealMatchError):
    """Raised when a session, user or item is unknown."""


class ConflictError(MealMatchError):
    """Raised by storage when a uniqueness invariant would be violated.

    Services resolve this internally by returning the existing record.
    """


class TransientStoreError(MealMatchError):
    """Raised when the underlying persistence is unavailable."""
