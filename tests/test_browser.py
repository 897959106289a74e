"""Cascading browser: staleness, shared requests and scoped failures."""

from __future__ import annotations

import pytest

from conftest import districts_for, sample_listing, settle
from wayfarer.errors import GenerationError, ValidationError
from wayfarer.schemas import PointOfInterest
from wayfarer.workflows.browser import (
    BrowserState,
    DestinationActivated,
    DistrictActivated,
    DistrictsLoaded,
    PoisLoaded,
    SelectionBrowser,
    transition,
)
from wayfarer.workflows.selection import SelectionSet


def _browser(services, names=("Paris", "Tokyo")) -> SelectionBrowser:
    return SelectionBrowser(services, list(names), SelectionSet(names))


def test_transition_discards_stale_district_results() -> None:
    state = transition(BrowserState(), DestinationActivated("Tokyo"))
    tokyo_token = state.destination_token
    state = transition(state, DestinationActivated("Paris"))

    stale = transition(state, DistrictsLoaded(tokyo_token, tuple(districts_for("Tokyo"))))

    assert stale == state
    assert stale.loading == "districts"


def test_transition_destination_change_invalidates_poi_fetch() -> None:
    state = transition(BrowserState(), DestinationActivated("Paris"))
    state = transition(state, DistrictsLoaded(state.destination_token, tuple(districts_for("Paris"))))
    state = transition(state, DistrictActivated("Paris Old Town"))
    poi_token = state.district_token

    state = transition(state, DestinationActivated("Tokyo"))
    after = transition(state, PoisLoaded(poi_token, sample_listing()))

    assert after.listing is None
    assert after.district is None
    assert after.districts == ()


async def test_out_of_order_district_response_is_discarded(services) -> None:
    browser = _browser(services)

    paris_first = browser.select_destination("Paris")
    tokyo = browser.select_destination("Tokyo")
    paris_again = browser.select_destination("Paris")
    await settle()

    services.resolve("list_districts", districts_for("Tokyo"), index=1)
    await tokyo
    assert browser.state.districts == ()
    assert browser.state.destination == "Paris"

    services.resolve("list_districts", districts_for("Paris"), index=0)
    await paris_first
    await paris_again

    assert [d.name for d in browser.state.districts] == ["Paris Old Town", "Paris Riverside"]
    assert browser.state.loading is None


async def test_reactivating_destination_joins_in_flight_request(services) -> None:
    browser = _browser(services)

    browser.select_destination("Paris")
    browser.select_destination("Tokyo")
    browser.select_destination("Paris")
    await settle()

    assert [call[0] for call in services.calls["list_districts"]] == ["Paris", "Tokyo"]


async def test_district_failure_sets_scoped_error_and_retry_reissues(services) -> None:
    browser = _browser(services)

    first = browser.select_destination("Paris")
    await settle()
    services.fail("list_districts", GenerationError("boom"))
    state = await first

    assert state.error == "Failed to load districts for Paris."
    assert state.districts == ()

    retry = browser.select_destination("Paris")
    await settle()
    assert services.count("list_districts") == 2
    services.resolve("list_districts", districts_for("Paris"))
    state = await retry

    assert state.error is None
    assert len(state.districts) == 2


async def test_stale_failure_does_not_set_error(services) -> None:
    browser = _browser(services)

    tokyo = browser.select_destination("Tokyo")
    paris = browser.select_destination("Paris")
    await settle()
    services.fail("list_districts", GenerationError("boom"), index=0)
    await tokyo

    assert browser.state.error is None
    services.resolve("list_districts", districts_for("Paris"), index=1)
    await paris
    assert browser.state.destination == "Paris"


async def test_select_district_loads_points_of_interest(services) -> None:
    browser = _browser(services)
    loaded = browser.select_destination("Paris")
    await settle()
    services.resolve("list_districts", districts_for("Paris"))
    await loaded

    task = browser.select_district("Paris Old Town")
    assert browser.state.loading == "pois"
    await settle()
    assert services.calls["list_pois"] == [("Paris", "Paris Old Town")]
    services.resolve("list_pois", sample_listing())
    state = await task

    assert state.listing == sample_listing()
    assert state.district == "Paris Old Town"


async def test_switching_district_discards_previous_listing(services) -> None:
    browser = _browser(services)
    loaded = browser.select_destination("Paris")
    await settle()
    services.resolve("list_districts", districts_for("Paris"))
    await loaded

    old_town = browser.select_district("Paris Old Town")
    riverside = browser.select_district("Paris Riverside")
    await settle()
    services.resolve("list_pois", sample_listing(), index=0)
    await old_town

    assert browser.state.listing is None
    assert browser.state.district == "Paris Riverside"

    services.fail("list_pois", GenerationError("down"), index=1)
    state = await riverside
    assert state.error == "Failed to load points of interest for Paris Riverside."


async def test_select_rejects_unknown_names(services) -> None:
    browser = _browser(services)

    with pytest.raises(ValidationError):
        browser.select_destination("Rome")
    with pytest.raises(ValidationError):
        browser.select_district("Paris Old Town")

    task = browser.select_destination("Paris")
    await settle()
    services.resolve("list_districts", districts_for("Paris"))
    await task
    with pytest.raises(ValidationError):
        browser.select_district("Montmartre")


async def test_toggle_applies_to_active_destination(services) -> None:
    browser = _browser(services)
    task = browser.select_destination("Tokyo")
    poi = PointOfInterest(name="Senso-ji", kind="attraction")

    assert browser.toggle(poi) is True
    assert browser.is_selected("Senso-ji")
    assert browser.selections.get("Paris") == []

    await settle()
    services.resolve("list_districts", [])
    await task
