"""Domain errors surfaced to API callers as HTTP 500 JSON bodies."""

from __future__ import annotations


class GrocerError(Exception):
    """Base class for failures a flow cannot degrade around."""

    code = "grocer_error"
    retryable = True

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ModelOutputError(GrocerError):
    """Model output could not be recovered where an empty result would mislead."""

    code = "model_output_error"


class PromotionsUnavailableError(GrocerError):
    """Promotions could not be generated and no cached copy exists."""

    code = "promotions_unavailable"
