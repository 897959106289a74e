"""Shared fixtures: controllable fake generation services and sample data."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any, DefaultDict, Dict, List, Tuple

import pytest

from wayfarer.schemas import (
    Attraction,
    District,
    GeneratedItinerary,
    POIListing,
    Restaurant,
)


class FakeServices:
    """Every call returns a future the test resolves explicitly."""

    def __init__(self) -> None:
        self.calls: DefaultDict[str, List[Tuple[Any, ...]]] = defaultdict(list)
        self.pending: DefaultDict[str, List["asyncio.Future[Any]"]] = defaultdict(list)

    def _defer(self, method: str, *args: Any) -> "asyncio.Future[Any]":
        future = asyncio.get_running_loop().create_future()
        self.calls[method].append(args)
        self.pending[method].append(future)
        return future

    async def list_districts(self, city):
        return await self._defer("list_districts", city)

    async def list_pois(self, city, district):
        return await self._defer("list_pois", city, district)

    async def build_itinerary(self, config, selections):
        return await self._defer("build_itinerary", config, selections.as_dict())

    async def render_day_map(self, day):
        return await self._defer("render_day_map", day)

    async def render_overall_map(self, itinerary):
        return await self._defer("render_overall_map", itinerary)

    async def render_region_map(self):
        return await self._defer("render_region_map")

    async def identify_location_at_point(self, map_image, x, y, width, height):
        return await self._defer("identify_location_at_point", map_image, x, y, width, height)

    def count(self, method: str) -> int:
        return len(self.calls[method])

    def resolve(self, method: str, value: Any, index: int = -1) -> None:
        self.pending[method][index].set_result(value)

    def fail(self, method: str, exc: BaseException, index: int = -1) -> None:
        self.pending[method][index].set_exception(exc)


async def settle(rounds: int = 10) -> None:
    """Let scheduled tasks run until they block on an unresolved future."""

    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def services() -> FakeServices:
    return FakeServices()


def districts_for(city: str) -> List[District]:
    return [
        District(name=f"{city} Old Town", description="Cobbled lanes and cafés."),
        District(name=f"{city} Riverside", description="Promenades and markets."),
    ]


def sample_listing() -> POIListing:
    return POIListing(
        attractions=[
            Attraction(name="Louvre Museum", description="Art.", duration="3 hours", rating=4.8),
            Attraction(name="Sainte-Chapelle", description="Glass.", duration="1 hour", rating=4.7),
        ],
        restaurants=[
            Restaurant(name="Le Comptoir", cuisine="French", price="$$", reservations="Recommended"),
        ],
    )


ITINERARY_PAYLOAD: Dict[str, Any] = {
    "2025-01-01": {
        "title": "Arrival in Paris",
        "summary": "Settle in and stroll the river.",
        "morning": [
            {
                "time": "9:00 AM - 11:00 AM",
                "activity": "Visit the Louvre Museum",
                "description": "Highlights tour.",
                "location": "Rue de Rivoli, Paris",
                "travelToNext": {"mode": "Walk", "duration": "10 minutes"},
            }
        ],
        "afternoon": [],
        "evening": [
            {
                "time": "7:00 PM",
                "activity": "Dinner at Le Comptoir",
                "description": "Bistro classics.",
                "location": "Carrefour de l'Odéon",
            }
        ],
    },
    "2025-01-02": {
        "title": "Rest day in Paris",
        "summary": "Nothing planned.",
        "morning": [],
        "afternoon": [],
        "evening": [],
    },
}


@pytest.fixture
def itinerary() -> GeneratedItinerary:
    return GeneratedItinerary.model_validate(ITINERARY_PAYLOAD)
