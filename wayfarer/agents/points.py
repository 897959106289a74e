"""Agent for listing attractions and restaurants inside a district."""

from __future__ import annotations

from typing import Optional

from wayfarer.agents import DEFAULT_AGENT_MODEL, call_llm_and_validate
from wayfarer.schemas import POIListing


class PointsOfInterestAgent:
    """Curates the top sights and places to eat for a neighbourhood."""

    system_prompt = (
        "You are a travel researcher. Recommend well-reviewed places and only emit JSON "
        "with two keys: 'attractions' and 'restaurants'."
    )
    prompt_version = "points.v1"

    def __init__(self, *, model: Optional[str] = None, limit: int = 5) -> None:
        self.model = model or DEFAULT_AGENT_MODEL
        self.limit = limit

    async def run(self, city: str, district: str) -> POIListing:
        """Return a :class:`POIListing` for ``district`` in ``city``."""

        prompt = (
            f"In the {district} district of {city}, list the top {self.limit} tourist "
            f"attractions and top {self.limit} highly-rated restaurants.\n"
            "For attractions, include a short description, an estimated visit duration "
            "(e.g. '1-2 hours') and a rating out of 5.\n"
            "For restaurants, include the cuisine type, a price range (e.g. $, $$, $$$) "
            "and whether reservations are recommended.\n"
            'Return a JSON object with two keys: "attractions" and "restaurants", each '
            "containing an array of the respective items."
        )

        return await call_llm_and_validate(
            schema=POIListing,
            prompt=prompt,
            system_prompt=self.system_prompt,
            prompt_version=self.prompt_version,
            model=self.model,
        )


__all__ = ["PointsOfInterestAgent"]
