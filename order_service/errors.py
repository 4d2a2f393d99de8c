"""
errors.py — Error Taxonomy of the Order Service

Every failure is scoped to a single request. The HTTP layer translates:
    - NotFoundError   → 404 (400 when the missing entity is the customer of a new order)
    - ValidationError → 400
    - ConflictError   → 409
"""


class OrderServiceError(Exception):
    """Base class for all business errors raised by the service layer."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(OrderServiceError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, key=None):
        self.entity = entity
        self.key = key
        if key is None:
            message = f"{entity.capitalize()} not found"
        else:
            message = f"{entity.capitalize()} {key} not found"
        super().__init__(message)


class ValidationError(OrderServiceError):
    """Input is well-formed JSON but violates a business rule (e.g. empty items)."""


class ConflictError(OrderServiceError):
    """The store rejected a write because of a uniqueness or reference constraint."""
