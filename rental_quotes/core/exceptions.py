"""Exceptions raised by the quotation engine."""


class QuoteError(Exception):
    """Base exception for quotation errors."""
    pass


class InputValidationError(QuoteError):
    """Raised when quote inputs are missing or inconsistent, before any pricing."""
    pass


class AvailabilityLookupError(QuoteError):
    """Raised when vehicle or branch availability cannot be resolved for a category.

    The availability resolver handles this itself and reports the category as
    unavailable; it never reaches API callers.
    """

    def __init__(self, category_id, message: str):
        self.category_id = category_id
        super().__init__(message)


class PricingComputationError(QuoteError):
    """Raised when rates or fees cannot be computed; aborts the whole quote."""

    def __init__(self, message: str, category_name: str | None = None):
        self.category_name = category_name
        if category_name:
            message = f"{category_name}: {message}"
        super().__init__(message)


class PersistenceError(QuoteError):
    """Raised when a finalized quote cannot be saved."""
    pass
