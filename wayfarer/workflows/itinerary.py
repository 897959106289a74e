"""The single consolidated itinerary-generation request."""

from __future__ import annotations

import logging
import time
from datetime import date

from pydantic import ValidationError as PydanticValidationError

from wayfarer.errors import ParseError, ValidationError
from wayfarer.schemas import GeneratedItinerary, TripConfig
from wayfarer.workflows.selection import SelectionSet
from wayfarer.workflows.services import TripServices

_LOGGER = logging.getLogger(__name__)


class ItineraryRequest:
    """Turns a trip configuration and its selections into a :class:`GeneratedItinerary`.

    There is no retry: a failure propagates and the caller decides whether to
    invoke again.
    """

    def __init__(self, services: TripServices) -> None:
        self.services = services

    @staticmethod
    def _check_selections(config: TripConfig, selections: SelectionSet) -> None:
        missing = [name for name in config.destination_names() if name not in selections]
        if missing:
            raise ValidationError(f"No selection entry for: {', '.join(missing)}")

    @staticmethod
    def _validate_result(result: object) -> GeneratedItinerary:
        if isinstance(result, GeneratedItinerary):
            return result
        try:
            return GeneratedItinerary.model_validate(result)
        except PydanticValidationError as exc:
            raise ParseError(f"Itinerary response is malformed: {exc}") from exc

    async def run(self, config: TripConfig, selections: SelectionSet) -> GeneratedItinerary:
        self._check_selections(config, selections)

        start = time.perf_counter()
        _LOGGER.info(
            "Requesting itinerary for %s (%d days, %d selections)",
            ", ".join(config.destination_names()),
            config.date_range.days(),
            selections.total_count(),
        )
        itinerary = self._validate_result(
            await self.services.build_itinerary(config, selections)
        )

        outside = [key for key in itinerary.keys() if date.fromisoformat(key) not in config.date_range]
        if outside:
            _LOGGER.warning("Itinerary includes days outside the trip dates: %s", ", ".join(outside))

        _LOGGER.info(
            "Itinerary with %d days generated in %.2fs",
            len(itinerary),
            time.perf_counter() - start,
        )
        return itinerary


__all__ = ["ItineraryRequest"]
