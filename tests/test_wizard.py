"""End-to-end behaviour of the planning wizard."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from conftest import ITINERARY_PAYLOAD, districts_for, settle
from wayfarer.errors import GenerationError, ParseError, ValidationError
from wayfarer.schemas import GeneratedItinerary, PointOfInterest
from wayfarer.workflows.artifacts import OVERALL_KEY, ArtifactStatus
from wayfarer.workflows.selection import build_trip_config
from wayfarer.workflows.wizard import (
    ConfigSubmitted,
    GenerationStarted,
    GenerationSucceeded,
    WizardController,
    WizardReset,
    WizardState,
    WizardStep,
    transition,
)


LOUVRE = PointOfInterest(name="Louvre Museum", kind="attraction")


async def _selecting(services, names=("Paris", "Tokyo")) -> WizardController:
    wizard = WizardController(services)
    first = wizard.submit_config(list(names), date(2025, 1, 1), date(2025, 1, 2))
    await settle()
    services.resolve("list_districts", districts_for(names[0]))
    await first
    return wizard


async def _reviewing(services) -> WizardController:
    wizard = await _selecting(services)
    wizard.toggle("Paris", LOUVRE)
    task = wizard.generate()
    await settle()
    services.resolve("build_itinerary", GeneratedItinerary.model_validate(ITINERARY_PAYLOAD))
    await task
    return wizard


def test_transition_ignores_generation_from_previous_epoch(itinerary) -> None:
    state = WizardState()
    state = transition(state, ConfigSubmitted(config=_config()))
    state = transition(state, GenerationStarted())
    epoch = state.epoch
    state = transition(state, WizardReset())

    after = transition(state, GenerationSucceeded(epoch, itinerary))

    assert after.step is WizardStep.CONFIGURING
    assert after.itinerary is None


def _config():

    return build_trip_config(["Paris"], date(2025, 1, 1), date(2025, 1, 2))


async def test_submit_config_initialises_selection_and_activates_first_destination(services) -> None:
    wizard = await _selecting(services)

    assert wizard.step is WizardStep.SELECTING
    assert wizard.selections.as_dict() == {"Paris": [], "Tokyo": []}
    assert wizard.browser.state.destination == "Paris"
    assert len(wizard.browser.state.districts) == 2


async def test_submit_config_validation_error_is_recorded_and_cleared(services) -> None:
    wizard = WizardController(services)

    with pytest.raises(ValidationError):
        wizard.submit_config(["Paris"], date(2025, 1, 1), None)
    assert wizard.state.validation_error == "Please select a start and end date for your trip."
    assert wizard.step is WizardStep.CONFIGURING

    wizard.add_destination("Paris")
    assert wizard.state.validation_error is None


async def test_generate_requires_a_selection(services) -> None:
    wizard = await _selecting(services)

    assert wizard.can_generate() is False
    with pytest.raises(ValidationError):
        wizard.generate()
    assert services.count("build_itinerary") == 0


async def test_second_generate_while_pending_is_rejected(services) -> None:
    wizard = await _selecting(services)
    wizard.toggle("Paris", LOUVRE)

    first = wizard.generate()
    second = wizard.generate()
    await settle()

    assert first is not None
    assert second is None
    assert services.count("build_itinerary") == 1

    config, selections = services.calls["build_itinerary"][0]
    assert config.destination_names() == ["Paris", "Tokyo"]
    assert selections == {"Paris": [LOUVRE], "Tokyo": []}


async def test_successful_generation_moves_to_reviewing_and_requests_overall_map(services) -> None:
    wizard = await _reviewing(services)
    await settle()

    assert wizard.step is WizardStep.REVIEWING
    assert wizard.itinerary.sorted_dates() == ["2025-01-01", "2025-01-02"]
    assert wizard.state.active_view == OVERALL_KEY
    assert wizard.cache.entry(OVERALL_KEY).status is ArtifactStatus.PENDING
    assert services.count("render_overall_map") == 1


@pytest.mark.parametrize("exc", [GenerationError("model offline"), ParseError("bad json")])
async def test_failed_generation_stays_in_selecting(services, exc) -> None:
    wizard = await _selecting(services)
    wizard.toggle("Paris", LOUVRE)

    task = wizard.generate()
    await settle()
    services.fail("build_itinerary", exc)
    assert await task is None

    assert wizard.step is WizardStep.SELECTING
    assert wizard.state.generation_error.startswith("Unable to generate the itinerary.")
    assert wizard.selections.get("Paris") == [LOUVRE]

    retry = wizard.generate()
    assert retry is not None
    assert wizard.state.generation_error is None
    await settle()
    assert services.count("build_itinerary") == 2


async def test_select_view_generates_day_map_once(services) -> None:
    wizard = await _reviewing(services)

    wizard.select_view("2025-01-01")
    wizard.select_view(OVERALL_KEY)
    wizard.select_view("2025-01-01")
    await settle()

    assert wizard.state.active_view == "2025-01-01"
    assert services.count("render_day_map") == 1
    assert services.count("render_overall_map") == 1

    with pytest.raises(ValidationError):
        wizard.select_view("2030-01-01")


async def test_reset_clears_every_part_of_the_session(services) -> None:
    wizard = await _reviewing(services)
    cache = wizard.cache
    wizard.select_view("2025-01-01")
    await settle()
    services.resolve("render_overall_map", "data:image/png;base64,TRIP")
    await settle()

    wizard.reset()

    assert wizard.step is WizardStep.CONFIGURING
    assert wizard.config is None
    assert wizard.itinerary is None
    assert wizard.selections.as_dict() == {}
    assert wizard.cache is None
    assert all(entry.status is ArtifactStatus.ABSENT for entry in cache.entries().values())

    services.resolve("render_day_map", "data:image/png;base64,LATE")
    await settle()
    assert cache.entry("2025-01-01").status is ArtifactStatus.ABSENT


async def test_generation_completing_after_reset_is_discarded(services) -> None:
    wizard = await _selecting(services)
    wizard.toggle("Paris", LOUVRE)
    task = wizard.generate()
    await settle()

    wizard.reset()
    services.resolve("build_itinerary", GeneratedItinerary.model_validate(ITINERARY_PAYLOAD))
    assert await task is None

    assert wizard.step is WizardStep.CONFIGURING
    assert wizard.cache is None
    assert services.count("render_overall_map") == 0


async def test_actions_outside_their_step_are_rejected(services) -> None:
    wizard = WizardController(services)

    with pytest.raises(ValidationError):
        wizard.generate()
    with pytest.raises(ValidationError):
        wizard.select_view(OVERALL_KEY)
    with pytest.raises(ValidationError):
        wizard.toggle("Paris", LOUVRE)


async def test_draft_destinations_feed_submit(services) -> None:
    wizard = WizardController(services)
    paris = wizard.add_destination("Paris")
    wizard.add_destination("Lyon")
    with pytest.raises(ValidationError):
        wizard.add_destination("PARIS")
    wizard.remove_destination(paris.id)

    wizard.submit_config(start="2025-06-01", end="2025-06-03")
    await settle()

    assert wizard.config.destination_names() == ["Lyon"]
    assert services.calls["list_districts"] == [("Lyon",)]


async def test_destination_picked_on_map(services) -> None:
    wizard = WizardController(services)
    loading = wizard.load_map()
    await settle()
    services.resolve("render_region_map", "data:image/png;base64,MAP")
    await loading

    click = wizard.add_destination_at_point(120, 80, 800, 600)

    task = asyncio.ensure_future(click)
    await settle()
    services.resolve("identify_location_at_point", "Xi'an")
    added = await task

    assert added.name == "Xi'an"
    assert [d.name for d in wizard.drafts] == ["Xi'an"]
    assert services.calls["identify_location_at_point"][0] == (
        "data:image/png;base64,MAP",
        120,
        80,
        800,
        600,
    )


async def test_map_pick_of_unknown_or_duplicate_sets_error(services) -> None:

    wizard = WizardController(services)
    wizard.add_destination("Beijing")
    loading = wizard.load_map()
    await settle()
    services.resolve("render_region_map", "data:image/png;base64,MAP")
    await loading

    unknown = asyncio.ensure_future(wizard.add_destination_at_point(1, 1, 10, 10))
    await settle()
    services.resolve("identify_location_at_point", "Unknown")
    assert await unknown is None
    assert wizard.map_error == "Could not identify a city at this location. Please try again."

    duplicate = asyncio.ensure_future(wizard.add_destination_at_point(2, 2, 10, 10))
    await settle()
    services.resolve("identify_location_at_point", "beijing")
    assert await duplicate is None
    assert wizard.map_error == "beijing is already in your itinerary."
    assert len(wizard.drafts) == 1


async def test_toggle_after_generate_does_not_change_outstanding_request(services) -> None:
    wizard = await _selecting(services)
    wizard.toggle("Paris", LOUVRE)

    task = wizard.generate()
    assert wizard.toggle("Paris", LOUVRE) is False
    await settle()

    _, selections = services.calls["build_itinerary"][0]
    assert selections == {"Paris": [LOUVRE], "Tokyo": []}
    assert wizard.total_count() == 0

    services.resolve("build_itinerary", GeneratedItinerary.model_validate(ITINERARY_PAYLOAD))
    assert await task is not None


async def test_missing_session_parts_raise_validation_error(services) -> None:
    wizard = await _reviewing(services)
    wizard.cache = None

    with pytest.raises(ValidationError):
        wizard.select_view(OVERALL_KEY)

    selecting = await _selecting(services)
    selecting.browser = None
    with pytest.raises(ValidationError):
        selecting.select_destination("Tokyo")
