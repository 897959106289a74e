"""Agent that assembles a multi-city, day-by-day itinerary from selected places."""

from __future__ import annotations

from typing import List, Mapping, Optional, Sequence

from wayfarer.agents import call_llm_and_validate, format_prompt_data
from wayfarer.core.config import planner_model
from wayfarer.schemas import GeneratedItinerary, PointOfInterest, TripConfig


class PlannerAgent:
    """Produces a structured itinerary from the trip configuration and selections."""

    system_prompt = (
        "You are a world-class travel planner. Allocate days sensibly across the "
        "destinations, group nearby places to minimise travel time and include realistic "
        "transit between activities. Respond with a single JSON object keyed by date."
    )
    prompt_version = "planner.v1"

    def __init__(
        self,
        *,
        model: Optional[str] = None,
        stop: Optional[Sequence[str]] = None,
    ) -> None:
        self.model = model or planner_model()
        self.stop = stop

    @staticmethod
    def _interests(
        config: TripConfig, selections: Mapping[str, Sequence[PointOfInterest]]
    ) -> List[str]:
        blocks: List[str] = []
        for name in config.destination_names():
            lines = [f"- {poi.name} ({poi.kind})" for poi in selections.get(name, ())]
            body = "\n".join(lines) if lines else "- No specific picks; suggest highlights."
            blocks.append(f"For {name}, the traveller is interested in:\n{body}")
        return blocks

    async def run(
        self,
        config: TripConfig,
        selections: Mapping[str, Sequence[PointOfInterest]],
    ) -> GeneratedItinerary:
        """Return a :class:`GeneratedItinerary` covering the configured dates."""

        date_range = config.date_range
        prompt = (
            "Create a detailed, optimised, day-by-day itinerary for a trip.\n"
            "\n"
            "# Trip Details\n"
            f"Destinations (in order): {', '.join(config.destination_names())}\n"
            f"Travel dates: {date_range.start.isoformat()} to {date_range.end.isoformat()} "
            f"({date_range.days()} days)\n"
            "\n"
            "# Traveller Interests\n"
            + "\n\n".join(self._interests(config, selections))
            + "\n"
            "\n"
            "# Format\n"
            "The root object has a key for each date in 'YYYY-MM-DD' format. Each value has "
            "'title', 'summary' and arrays 'morning', 'afternoon' and 'evening'. Each activity "
            "has 'time', 'activity', 'description' and 'location', and may include 'details' "
            "and 'travelToNext' with 'mode' and 'duration'.\n"
            "Suggest lunch and dinner spots from the selections or nearby highly-rated options.\n"
            "\n"
            "# Example Activity\n"
            f"{format_prompt_data(_EXAMPLE_ACTIVITY)}\n"
            "\n"
            "Respond with the raw JSON object only."
        )

        return await call_llm_and_validate(
            schema=GeneratedItinerary,
            prompt=prompt,
            system_prompt=self.system_prompt,
            prompt_version=self.prompt_version,
            model=self.model,
            stop=self.stop,
        )


_EXAMPLE_ACTIVITY = {
    "time": "10:00 AM - 1:00 PM",
    "activity": "Visit the Louvre Museum",
    "description": "Explore one of the world's largest art museums.",
    "location": "Rue de Rivoli, 75001 Paris, France",
    "travelToNext": {"mode": "Metro", "duration": "15 minutes"},
}


__all__ = ["PlannerAgent"]
