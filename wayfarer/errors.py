"""Error taxonomy shared across the planning session."""

from __future__ import annotations


class WayfarerError(RuntimeError):
    """Base class for every error raised by Wayfarer."""


class ValidationError(WayfarerError, ValueError):
    """Raised synchronously when user input cannot be accepted."""


class GenerationError(WayfarerError):
    """Raised when a generation service fails to produce a result."""


class ParseError(GenerationError):
    """Raised when a generation service returns malformed structured output."""


class EmptyInputError(GenerationError):
    """Raised when there is nothing to generate from (e.g. a day without activities)."""


class EmptyResultError(GenerationError):
    """Raised when a generation call succeeds but returns no artifact."""


class NotFoundError(WayfarerError):
    """Raised when a location lookup does not identify anything."""


class DuplicateRequestError(WayfarerError):
    """Raised when a second request is issued for a key that already has one in flight."""


def format_generation_error(exc: BaseException, action: str = "generate the itinerary") -> str:
    """Return a traveller-facing message for a failed generation call."""

    base_message = f"Unable to {action}."
    details = str(exc).strip()
    if details:
        lowered = details.lower()
        if "openai_api_key" in lowered or any(
            token in lowered for token in ("api key", "401", "unauthorized")
        ):
            return (
                f"{base_message} Provide an API key via the "
                "OPENAI_API_KEY environment variable."
            )
        if "429" in lowered or "too many requests" in lowered:
            return f"{base_message} The API rate limit was hit. Wait a moment and try again."
        return f"{base_message} {details}"
    return f"{base_message} Check your configuration and try again."


__all__ = [
    "DuplicateRequestError",
    "EmptyInputError",
    "EmptyResultError",
    "GenerationError",
    "NotFoundError",
    "ParseError",
    "ValidationError",
    "WayfarerError",
    "format_generation_error",
]
