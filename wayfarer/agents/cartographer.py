"""Agent that draws illustrated maps for the trip and for single days."""

from __future__ import annotations

import logging
import time
from typing import List

from wayfarer.core import llm
from wayfarer.errors import EmptyInputError
from wayfarer.schemas import DayPlan, GeneratedItinerary

_LOGGER = logging.getLogger(__name__)


def _city_from_title(title: str) -> str:
    """Day titles usually read like ``"Art and Cafés in Paris"``."""

    _, separator, city = title.rpartition(" in ")
    return city.strip() if separator and city.strip() else title.strip()


class CartographerAgent:
    """Produces stylised map images as ``data:`` URLs."""

    prompt_version = "cartographer.v1"

    async def _draw(self, prompt: str, label: str) -> str:
        start = time.perf_counter()
        image = await llm.llm_image(prompt=prompt, prompt_version=self.prompt_version)
        _LOGGER.info(
            "%s map drawn in %.2fs [prompt_version=%s]",
            label,
            time.perf_counter() - start,
            self.prompt_version,
        )
        return image

    async def day_map(self, day: DayPlan) -> str:
        """Return a map tracing the day's activities in order."""

        stops = [f"{index}. {activity.activity}" for index, activity in enumerate(day.activities(), 1)]
        if not stops:
            raise EmptyInputError(f"No locations available for '{day.title}' to draw a map.")

        prompt = (
            f'Create a stylised, visually appealing tourist map for a day trip titled "{day.title}".\n'
            "Show the following locations in order, with a dotted line or arrows indicating "
            "the path between them:\n"
            + "\n".join(stops)
            + "\n\nLabel each location with its number. Use a colourful, illustrative, "
            "hand-drawn travel journal style rather than a realistic street map."
        )
        return await self._draw(prompt, "Day")

    async def overall_map(self, itinerary: GeneratedItinerary) -> str:
        """Return a map of the route between the trip's destinations."""

        cities: List[str] = []
        for _, day in itinerary.day_plans():
            city = _city_from_title(day.title)
            if city and city not in cities:
                cities.append(city)

        prompt = (
            "Create a stylised, visually appealing map for an entire trip.\n"
            "Show the travel route between the following destinations in order:\n"
            + "\n".join(f"{index}. {city}" for index, city in enumerate(cities, 1))
            + "\n\nIllustrate each destination with a small, iconic landmark and connect them "
            'with a dotted line. The overall title should be "My Epic Journey". Use a vintage '
            "travel poster style rather than a realistic satellite map."
        )
        return await self._draw(prompt, "Overall")

    async def region_map(self, region: str) -> str:
        """Return a clean, labelled map of ``region`` used to pick destinations."""

        prompt = (
            f"Create a simple, stylised map of {region} suitable for a travel planning app.\n"
            "Use a clean, modern style with a light background. Clearly label the major "
            "tourist cities with a legible font and draw major rivers as simple lines. "
            "Avoid clutter such as roads or provincial borders."
        )
        return await self._draw(prompt, "Region")


__all__ = ["CartographerAgent"]
