"""Agent that lists the tourist districts of a city."""

from __future__ import annotations

from typing import List, Optional

from wayfarer.agents import DEFAULT_AGENT_MODEL, call_llm_and_validate
from wayfarer.errors import ValidationError
from wayfarer.schemas import District


class DistrictAgent:
    """Suggests neighbourhoods worth exploring in a destination."""

    system_prompt = (
        "You are a local guide with up-to-date knowledge of city neighbourhoods. "
        "Only emit JSON: an array of objects with 'name' and 'description'."
    )
    prompt_version = "districts.v1"

    def __init__(self, *, model: Optional[str] = None) -> None:
        self.model = model or DEFAULT_AGENT_MODEL

    async def run(self, city: str) -> List[District]:
        """Return the districts of ``city`` popular with visitors."""

        if not city.strip():
            raise ValidationError("A city name is required to list districts.")

        prompt = (
            f"For the city of {city}, list its main districts or neighbourhoods popular "
            "with tourists. For each one, provide a short, catchy description.\n"
            "Return the result as a JSON array of objects, where each object has "
            '"name" and "description" properties.'
        )

        return await call_llm_and_validate(
            schema=List[District],
            prompt=prompt,
            system_prompt=self.system_prompt,
            prompt_version=self.prompt_version,
            model=self.model,
        )


__all__ = ["DistrictAgent"]
