"""Top-level planning wizard: configuring → selecting → reviewing."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence, Union

from wayfarer.errors import (
    GenerationError,
    NotFoundError,
    ValidationError,
    format_generation_error,
)
from wayfarer.schemas import Destination, GeneratedItinerary, PointOfInterest, TripConfig
from wayfarer.workflows.artifacts import OVERALL_KEY, ArtifactCache, ArtifactEntry
from wayfarer.workflows.browser import BrowserState, SelectionBrowser
from wayfarer.workflows.itinerary import ItineraryRequest
from wayfarer.workflows.picker import MapPicker
from wayfarer.workflows.requests import BackgroundTasks
from wayfarer.workflows.selection import (
    DateInput,
    DestinationInput,
    SelectionSet,
    build_trip_config,
    ensure_unique_name,
)
from wayfarer.workflows.services import TripServices

_LOGGER = logging.getLogger(__name__)


class WizardStep(str, Enum):
    CONFIGURING = "configuring"
    SELECTING = "selecting"
    REVIEWING = "reviewing"


@dataclass(frozen=True)
class WizardState:
    step: WizardStep = WizardStep.CONFIGURING
    config: Optional[TripConfig] = None
    itinerary: Optional[GeneratedItinerary] = None
    generating: bool = False
    active_view: Optional[str] = None
    validation_error: Optional[str] = None
    generation_error: Optional[str] = None
    epoch: int = 0


@dataclass(frozen=True)
class ConfigSubmitted:
    config: TripConfig


@dataclass(frozen=True)
class ValidationChanged:
    message: Optional[str]


@dataclass(frozen=True)
class GenerationStarted:
    pass


@dataclass(frozen=True)
class GenerationSucceeded:
    epoch: int
    itinerary: GeneratedItinerary


@dataclass(frozen=True)
class GenerationFailed:
    epoch: int
    message: str


@dataclass(frozen=True)
class ViewSelected:
    key: str


@dataclass(frozen=True)
class WizardReset:
    pass


WizardEvent = Union[
    ConfigSubmitted,
    ValidationChanged,
    GenerationStarted,
    GenerationSucceeded,
    GenerationFailed,
    ViewSelected,
    WizardReset,
]


def transition(state: WizardState, event: WizardEvent) -> WizardState:
    """Return the wizard state that results from applying ``event``."""

    if isinstance(event, WizardReset):
        return WizardState(epoch=state.epoch + 1)

    if isinstance(event, ValidationChanged):
        return replace(state, validation_error=event.message)

    if isinstance(event, ConfigSubmitted):
        if state.step is not WizardStep.CONFIGURING:
            return state
        return replace(
            state,
            step=WizardStep.SELECTING,
            config=event.config,
            validation_error=None,
            generation_error=None,
        )

    if isinstance(event, GenerationStarted):
        if state.step is not WizardStep.SELECTING or state.generating:
            return state
        return replace(state, generating=True, generation_error=None, validation_error=None)

    if isinstance(event, (GenerationSucceeded, GenerationFailed)):
        # A completion from before a reset belongs to a session that no longer exists.
        if event.epoch != state.epoch or not state.generating:
            return state
        if isinstance(event, GenerationFailed):
            return replace(state, generating=False, generation_error=event.message)
        return replace(
            state,
            step=WizardStep.REVIEWING,
            itinerary=event.itinerary,
            generating=False,
            active_view=OVERALL_KEY,
        )

    if isinstance(event, ViewSelected):
        if state.step is not WizardStep.REVIEWING:
            return state
        return replace(state, active_view=event.key)

    raise TypeError(f"Unsupported wizard event: {event!r}")


class WizardController:
    """Owns the trip configuration, selections, itinerary and map cache of one session."""

    def __init__(self, services: TripServices) -> None:
        self.services = services
        self.request = ItineraryRequest(services)
        self.picker = MapPicker(services)
        self._state = WizardState()
        self._tasks = BackgroundTasks()
        self.drafts: List[Destination] = []
        self.map_error: Optional[str] = None
        self.selections = SelectionSet()
        self.browser: Optional[SelectionBrowser] = None
        self.cache: Optional[ArtifactCache] = None

    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def step(self) -> WizardStep:
        return self._state.step

    @property
    def config(self) -> Optional[TripConfig]:
        return self._state.config

    @property
    def itinerary(self) -> Optional[GeneratedItinerary]:
        return self._state.itinerary

    def _dispatch(self, event: WizardEvent) -> WizardState:
        self._state = transition(self._state, event)
        return self._state

    def _reject(self, message: str) -> ValidationError:
        self._dispatch(ValidationChanged(message))
        return ValidationError(message)

    def _require(self, step: WizardStep) -> None:
        if self._state.step is not step:
            raise ValidationError(f"This action is only available while {step.value}.")

    # Configuring

    def add_destination(self, name: str) -> Destination:
        """Append ``name`` to the draft destination list."""

        self._require(WizardStep.CONFIGURING)
        try:
            ensure_unique_name(name, self.drafts)
        except ValidationError as exc:
            raise self._reject(str(exc)) from None
        destination = Destination(name=name.strip())
        self.drafts.append(destination)
        self._dispatch(ValidationChanged(None))
        return destination

    def remove_destination(self, destination_id: str) -> None:
        self._require(WizardStep.CONFIGURING)
        self.drafts = [item for item in self.drafts if item.id != destination_id]

    def load_map(self) -> "asyncio.Future[Optional[str]]":
        self._require(WizardStep.CONFIGURING)
        return self.picker.load()

    async def add_destination_at_point(
        self, x: int, y: int, width: int, height: int
    ) -> Optional[Destination]:
        """Add the city identified at the clicked point of the region map."""

        self._require(WizardStep.CONFIGURING)
        self.map_error = None
        try:
            city = await self.picker.identify(x, y, width, height)
        except (NotFoundError, GenerationError) as exc:
            _LOGGER.info("Map lookup failed: %s", exc)
            self.map_error = "Could not identify a city at this location. Please try again."
            return None
        if city is None or self._state.step is not WizardStep.CONFIGURING:
            return None

        if any(item.name.lower() == city.lower() for item in self.drafts):
            self.map_error = f"{city} is already in your itinerary."
            return None
        destination = Destination(name=city)
        self.drafts.append(destination)
        return destination

    def submit_config(
        self,
        destinations: Optional[Sequence[DestinationInput]] = None,
        start: DateInput = None,
        end: DateInput = None,
    ) -> "asyncio.Task[BrowserState]":
        """Validate the trip and move to selecting; returns the first district fetch."""

        self._require(WizardStep.CONFIGURING)
        chosen = list(self.drafts) if destinations is None else list(destinations)
        try:
            config = build_trip_config(chosen, start, end)
        except ValidationError as exc:
            raise self._reject(str(exc)) from None

        self.selections = SelectionSet.for_trip(config)
        self.browser = SelectionBrowser(self.services, config.destination_names(), self.selections)
        self._dispatch(ConfigSubmitted(config))
        _LOGGER.info(
            "Trip configured: %s, %s to %s",
            ", ".join(config.destination_names()),
            config.date_range.start.isoformat(),
            config.date_range.end.isoformat(),
        )
        return self.browser.select_destination(config.destinations[0].name)

    # Selecting

    def _browser(self) -> SelectionBrowser:
        self._require(WizardStep.SELECTING)
        if self.browser is None:
            raise ValidationError("No trip has been configured yet.")
        return self.browser

    def select_destination(self, name: str) -> "asyncio.Task[BrowserState]":
        return self._browser().select_destination(name)

    def select_district(self, name: str) -> "asyncio.Task[BrowserState]":
        return self._browser().select_district(name)

    def toggle(self, destination_name: str, poi: PointOfInterest) -> bool:
        self._require(WizardStep.SELECTING)
        selected = self.selections.toggle(destination_name, poi)
        self._dispatch(ValidationChanged(None))
        return selected

    def total_count(self) -> int:
        return self.selections.total_count()

    def can_generate(self) -> bool:
        return (
            self._state.step is WizardStep.SELECTING
            and not self._state.generating
            and self.total_count() > 0
        )

    def generate(self) -> "Optional[asyncio.Task[Optional[GeneratedItinerary]]]":
        """Request the itinerary. Returns ``None`` if a request is already outstanding."""

        self._require(WizardStep.SELECTING)
        if self._state.generating:
            _LOGGER.debug("Itinerary generation already in progress; ignoring request")
            return None
        if self.total_count() == 0:
            raise self._reject("Select at least one place before generating an itinerary.")

        config = self._state.config
        if config is None:
            raise ValidationError("No trip has been configured yet.")
        # Toggles made while the request is outstanding apply to the next one.
        selections = self.selections.copy()
        self._dispatch(GenerationStarted())
        return self._tasks.spawn(self._generate(self._state.epoch, config, selections))

    async def _generate(
        self, epoch: int, config: TripConfig, selections: SelectionSet
    ) -> Optional[GeneratedItinerary]:
        try:
            itinerary = await self.request.run(config, selections)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001 - surfaced on the generation step
            _LOGGER.warning("Itinerary generation failed: %s", exc)
            self._dispatch(GenerationFailed(epoch, format_generation_error(exc)))
            return None

        state = self._dispatch(GenerationSucceeded(epoch, itinerary))
        if state.itinerary is not itinerary:
            _LOGGER.debug("Discarding itinerary generated for a previous session")
            return None

        self.cache = ArtifactCache(self.services, itinerary)
        self.cache.ensure(OVERALL_KEY)
        return itinerary

    # Reviewing

    def select_view(self, key: str) -> ArtifactEntry:
        """Show the overall map or a day's map, generating it if needed."""

        self._require(WizardStep.REVIEWING)
        if self.cache is None:
            raise ValidationError("There is no itinerary to show maps for.")
        entry = self.cache.ensure(key)
        self._dispatch(ViewSelected(key))
        return entry

    def active_entry(self) -> Optional[ArtifactEntry]:
        if self.cache is None or self._state.active_view is None:
            return None
        return self.cache.entry(self._state.active_view)

    # Session

    def reset(self) -> None:
        """Return to configuring and forget the trip, its selections, itinerary and maps."""

        if self.cache is not None:
            self.cache.clear()
        self.cache = None
        self.browser = None
        self.selections = SelectionSet()
        self.drafts = []
        self.map_error = None
        self._dispatch(WizardReset())
        _LOGGER.info("Planning session reset")

    async def drain(self) -> None:
        """Wait until the current session has no outstanding work."""

        await self._tasks.drain()
        if self.browser is not None:
            await self.browser.drain()
        if self.cache is not None:
            await self.cache.drain()

    def close(self) -> None:
        """Cancel every outstanding request of this controller."""

        self._tasks.cancel_all()
        if self.browser is not None:
            self.browser.close()
        if self.cache is not None:
            self.cache.close()
        self.picker.close()


__all__ = [
    "ConfigSubmitted",
    "GenerationFailed",
    "GenerationStarted",
    "GenerationSucceeded",
    "ValidationChanged",
    "ViewSelected",
    "WizardController",
    "WizardReset",
    "WizardState",
    "WizardStep",
    "transition",
]
