"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.

The second-level classes mirror how a request/response caller would map
them: ValidationError (400), EntityNotFoundError (404), ConflictError (409),
StateError (operation invalid for the current status) and UpstreamError
(persistence or payment provider unavailable).
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated by the caller's input."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


NotFoundError = EntityNotFoundError


class ConflictError(DomainException):
    """The operation lost a race or collides with existing state."""


class StateError(DomainException):
    """The operation is not allowed in the entity's current status."""


class UpstreamError(DomainException):
    """A collaborator (storage, payment provider) failed or is unreachable."""


# --- Specific errors ----------------------------------------------------------


class EmptyOrderError(ValidationError):
    """An order (or a pricing request) carries no nail sets."""

    def __init__(self) -> None:
        super().__init__("At least one nail set is required")


class MissingDesignInputError(ValidationError):
    def __init__(self, label: str) -> None:
        self.label = label
        super().__init__(
            f"Nail set {label} must include a design upload, description, "
            f"or be marked for follow-up"
        )


class PromoRejectedError(ValidationError):
    """A promo code did not pass validation.

    ``reason`` is the user-facing message produced by the validator.
    """

    def __init__(self, code: str, reason: str) -> None:
        self.code = code
        self.reason = reason
        super().__init__(reason)


class UnknownShapeError(EntityNotFoundError):
    def __init__(self, shape_id: str) -> None:
        self.shape_id = shape_id
        super().__init__(f"Unknown nail shape: '{shape_id}'")


class PaymentIntentMismatchError(ConflictError):
    def __init__(self, order_id: int, expected: str, received: str) -> None:
        self.order_id = order_id
        self.expected = expected
        self.received = received
        super().__init__(f"Payment intent mismatch for order #{order_id}")


class MaxUsesReachedError(ConflictError):
    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Promo code {code} has reached its maximum uses")


class CapacityFullError(ConflictError):
    def __init__(self, week_start, next_week_start) -> None:
        self.week_start = week_start
        self.next_week_start = next_week_start
        super().__init__(
            f"We are fully booked for the week of {week_start.isoformat()}; "
            f"new orders open on {next_week_start.isoformat()}"
        )


class ConcurrentModificationError(ConflictError):
    """A versioned save found the stored record changed since it was read."""
