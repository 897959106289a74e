"""Cascading destination → district → point-of-interest browser.

Every network completion is tagged with the activation token that was current when
the request was issued. ``transition`` only applies a completion whose token still
matches, so a slow response for a destination or district the traveller has since
left can never overwrite fresher state. Superseded requests are not cancelled; their
results are simply inert.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple, Union

from wayfarer.errors import ValidationError
from wayfarer.schemas import District, POIListing, PointOfInterest
from wayfarer.workflows.requests import BackgroundTasks, InflightRequests
from wayfarer.workflows.selection import SelectionSet
from wayfarer.workflows.services import TripServices

_LOGGER = logging.getLogger(__name__)

LOADING_DISTRICTS = "districts"
LOADING_POIS = "pois"


@dataclass(frozen=True)
class BrowserState:
    """Snapshot of the browser pane."""

    destination: Optional[str] = None
    destination_token: int = 0
    districts: Tuple[District, ...] = ()
    district: Optional[str] = None
    district_token: int = 0
    listing: Optional[POIListing] = None
    loading: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class DestinationActivated:
    name: str


@dataclass(frozen=True)
class DistrictsLoaded:
    token: int
    districts: Tuple[District, ...]


@dataclass(frozen=True)
class DistrictsFailed:
    token: int
    message: str


@dataclass(frozen=True)
class DistrictActivated:
    name: str


@dataclass(frozen=True)
class PoisLoaded:
    token: int
    listing: POIListing


@dataclass(frozen=True)
class PoisFailed:
    token: int
    message: str


BrowserEvent = Union[
    DestinationActivated,
    DistrictsLoaded,
    DistrictsFailed,
    DistrictActivated,
    PoisLoaded,
    PoisFailed,
]


def transition(state: BrowserState, event: BrowserEvent) -> BrowserState:
    """Return the state that results from applying ``event`` to ``state``."""

    if isinstance(event, DestinationActivated):
        # Bumping the district token too makes any POI fetch of the old destination stale.
        return BrowserState(
            destination=event.name,
            destination_token=state.destination_token + 1,
            district_token=state.district_token + 1,
            loading=LOADING_DISTRICTS,
        )

    if isinstance(event, DistrictActivated):
        return replace(
            state,
            district=event.name,
            district_token=state.district_token + 1,
            listing=None,
            loading=LOADING_POIS,
            error=None,
        )

    if isinstance(event, (DistrictsLoaded, DistrictsFailed)):
        if event.token != state.destination_token:
            return state
        if isinstance(event, DistrictsFailed):
            return replace(state, districts=(), loading=None, error=event.message)
        return replace(state, districts=tuple(event.districts), loading=None, error=None)

    if isinstance(event, (PoisLoaded, PoisFailed)):
        if event.token != state.district_token:
            return state
        if isinstance(event, PoisFailed):
            return replace(state, listing=None, loading=None, error=event.message)
        return replace(state, listing=event.listing, loading=None, error=None)

    raise TypeError(f"Unsupported browser event: {event!r}")


class SelectionBrowser:
    """Drives the drill-down for the destinations of one trip."""

    def __init__(
        self,
        services: TripServices,
        destination_names: Sequence[str],
        selections: SelectionSet,
    ) -> None:
        self.services = services
        self.destination_names: List[str] = list(destination_names)
        self.selections = selections
        self._state = BrowserState()
        self._district_requests: InflightRequests[List[District]] = InflightRequests("district")
        self._poi_requests: InflightRequests[POIListing] = InflightRequests("points of interest")
        self._tasks = BackgroundTasks()

    @property
    def state(self) -> BrowserState:
        return self._state

    def _dispatch(self, event: BrowserEvent) -> BrowserState:
        self._state = transition(self._state, event)
        return self._state

    def select_destination(self, name: str) -> "asyncio.Task[BrowserState]":
        """Activate ``name`` and fetch its districts."""

        if name not in self.destination_names:
            raise ValidationError(f"{name} is not a destination of this trip.")

        token = self._dispatch(DestinationActivated(name)).destination_token
        request = self._district_requests.share(name, lambda: self.services.list_districts(name))
        return self._tasks.spawn(self._complete_districts(name, token, request))

    async def _complete_districts(
        self, name: str, token: int, request: "asyncio.Future[List[District]]"
    ) -> BrowserState:
        try:
            districts = await request
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001 - surfaced in the browser pane
            if token == self._state.destination_token:
                _LOGGER.warning("District fetch for %s failed: %s", name, exc)
            return self._dispatch(DistrictsFailed(token, f"Failed to load districts for {name}."))

        if token != self._state.destination_token:
            _LOGGER.debug(
                "Discarding stale districts for %s (token %d, current %d)",
                name,
                token,
                self._state.destination_token,
            )
        return self._dispatch(DistrictsLoaded(token, tuple(districts)))

    def select_district(self, name: str) -> "asyncio.Task[BrowserState]":
        """Activate district ``name`` of the active destination and fetch its places."""

        city = self._state.destination
        if city is None:
            raise ValidationError("Select a destination before choosing a district.")
        if name not in {district.name for district in self._state.districts}:
            raise ValidationError(f"{name} is not a listed district of {city}.")

        token = self._dispatch(DistrictActivated(name)).district_token
        request = self._poi_requests.share(
            (city, name), lambda: self.services.list_pois(city, name)
        )
        return self._tasks.spawn(self._complete_pois(city, name, token, request))

    async def _complete_pois(
        self, city: str, name: str, token: int, request: "asyncio.Future[POIListing]"
    ) -> BrowserState:
        try:
            listing = await request
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001 - surfaced in the browser pane
            if token == self._state.district_token:
                _LOGGER.warning("Point of interest fetch for %s, %s failed: %s", name, city, exc)
            return self._dispatch(
                PoisFailed(token, f"Failed to load points of interest for {name}.")
            )

        if token != self._state.district_token:
            _LOGGER.debug("Discarding stale points of interest for %s, %s", name, city)
        return self._dispatch(PoisLoaded(token, listing))

    def toggle(self, poi: PointOfInterest) -> bool:
        """Toggle ``poi`` for the active destination."""

        if self._state.destination is None:
            raise ValidationError("Select a destination before choosing places.")
        return self.selections.toggle(self._state.destination, poi)

    def is_selected(self, poi_name: str) -> bool:
        if self._state.destination is None:
            return False
        return self.selections.is_selected(self._state.destination, poi_name)

    async def drain(self) -> None:
        await self._tasks.drain()

    def close(self) -> None:
        """Stop applying outstanding completions and cancel their requests."""

        self._tasks.cancel_all()
        self._district_requests.cancel_all()
        self._poi_requests.cancel_all()


__all__ = [
    "BrowserState",
    "DestinationActivated",
    "DistrictActivated",
    "DistrictsFailed",
    "DistrictsLoaded",
    "PoisFailed",
    "PoisLoaded",
    "SelectionBrowser",
    "transition",
]
