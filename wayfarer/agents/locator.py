"""Agent that reads a city name off a map image at a clicked point."""

from __future__ import annotations

from typing import Optional

from wayfarer.agents import DEFAULT_AGENT_MODEL
from wayfarer.core import llm

UNKNOWN_LOCATION = "Unknown"


class LocatorAgent:
    """Identifies the labelled city closest to a point on a map image."""

    system_prompt = "You read maps precisely and answer with a single place name."
    prompt_version = "locator.v1"

    def __init__(self, *, model: Optional[str] = None) -> None:
        self.model = model or DEFAULT_AGENT_MODEL

    async def run(self, map_image: str, x: int, y: int, width: int, height: int) -> str:
        """Return the city name, or ``"Unknown"`` when nothing is near the point."""

        prompt = (
            f"A user clicked the provided map at pixel ({x}, {y}). The image is "
            f"{width}x{height} pixels.\n"
            "Identify the major city label closest to this point. Respond with ONLY the "
            f"name of the city, for example 'Beijing'. If no city is nearby, respond with "
            f"'{UNKNOWN_LOCATION}'."
        )
        answer = await llm.llm_text(
            prompt=prompt,
            system=self.system_prompt,
            model=self.model,
            prompt_version=self.prompt_version,
            image_url=map_image,
        )
        answer = answer.strip().strip("'\".")
        if not answer or answer.lower() == UNKNOWN_LOCATION.lower():
            return UNKNOWN_LOCATION
        return answer


__all__ = ["LocatorAgent", "UNKNOWN_LOCATION"]
