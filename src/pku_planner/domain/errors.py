"""Errors surfaced by the planning core."""


class PlanningError(Exception):
    """Base class for hard failures inside the planning core."""


class InvalidReservationError(PlanningError, ValueError):
    """Raised when a pantry reservation asks for a non-positive amount."""

    def __init__(self, amount: object) -> None:
        self.amount = amount
        super().__init__(f"Reservation amount must be positive, got {amount}")


class MalformedCandidateError(PlanningError, TypeError):
    """Raised when a food reference is none of the known food variants."""

    def __init__(self, item: object) -> None:
        self.item = item
        super().__init__(
            f"Expected a product, custom product, dish or custom dish, "
            f"got {type(item).__name__}"
        )


class UnknownEntryTypeError(PlanningError, ValueError):
    """Raised for an entry-type discriminant that is not recognized."""

    def __init__(self, raw: object) -> None:
        self.raw = raw
        super().__init__(f"Unknown entry type: {raw!r}")
