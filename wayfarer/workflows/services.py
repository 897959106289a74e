"""Generation services consumed by the planning workflows."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, List, Optional, Protocol

from wayfarer.agents import (
    CartographerAgent,
    DistrictAgent,
    LocatorAgent,
    PlannerAgent,
    PointsOfInterestAgent,
)
from wayfarer.core.config import region as configured_region
from wayfarer.schemas import DayPlan, District, GeneratedItinerary, POIListing, TripConfig

if TYPE_CHECKING:
    from wayfarer.workflows.selection import SelectionSet

_LOGGER = logging.getLogger(__name__)


class TripServices(Protocol):
    """Network-bound collaborators. Every call may be slow and may fail."""

    async def list_districts(self, city: str) -> List[District]:
        ...

    async def list_pois(self, city: str, district: str) -> POIListing:
        ...

    async def build_itinerary(
        self, config: TripConfig, selections: "SelectionSet"
    ) -> GeneratedItinerary:
        ...

    async def render_day_map(self, day: DayPlan) -> str:
        ...

    async def render_overall_map(self, itinerary: GeneratedItinerary) -> str:
        ...

    async def render_region_map(self) -> str:
        ...

    async def identify_location_at_point(
        self, map_image: str, x: int, y: int, width: int, height: int
    ) -> str:
        ...


def _log_stage(stage: str, duration: float, prompt_version: str) -> None:
    _LOGGER.info(
        "%s stage completed in %.2fs [prompt_version=%s]",
        stage.capitalize(),
        duration,
        prompt_version,
    )


class LLMTripServices:
    """:class:`TripServices` implementation backed by the LLM agents."""

    def __init__(
        self,
        *,
        districts: Optional[DistrictAgent] = None,
        points: Optional[PointsOfInterestAgent] = None,
        planner: Optional[PlannerAgent] = None,
        cartographer: Optional[CartographerAgent] = None,
        locator: Optional[LocatorAgent] = None,
        region: Optional[str] = None,
    ) -> None:
        self.districts = districts or DistrictAgent()
        self.points = points or PointsOfInterestAgent()
        self.planner = planner or PlannerAgent()
        self.cartographer = cartographer or CartographerAgent()
        self.locator = locator or LocatorAgent()
        self.region = region or configured_region()

    async def list_districts(self, city: str) -> List[District]:
        start = time.perf_counter()
        districts = await self.districts.run(city)
        _log_stage("districts", time.perf_counter() - start, self.districts.prompt_version)
        return districts

    async def list_pois(self, city: str, district: str) -> POIListing:
        start = time.perf_counter()
        listing = await self.points.run(city, district)
        _log_stage("points", time.perf_counter() - start, self.points.prompt_version)
        return listing

    async def build_itinerary(
        self, config: TripConfig, selections: "SelectionSet"
    ) -> GeneratedItinerary:
        start = time.perf_counter()
        itinerary = await self.planner.run(config, selections.as_dict())
        _log_stage("planner", time.perf_counter() - start, self.planner.prompt_version)
        return itinerary

    async def render_day_map(self, day: DayPlan) -> str:
        return await self.cartographer.day_map(day)

    async def render_overall_map(self, itinerary: GeneratedItinerary) -> str:
        return await self.cartographer.overall_map(itinerary)

    async def render_region_map(self) -> str:
        return await self.cartographer.region_map(self.region)

    async def identify_location_at_point(
        self, map_image: str, x: int, y: int, width: int, height: int
    ) -> str:
        return await self.locator.run(map_image, x, y, width, height)


__all__ = ["LLMTripServices", "TripServices"]
