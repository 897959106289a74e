"""Data schemas for the Wayfarer planning session."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, Iterable, Iterator, List, Literal, Optional, Tuple
from uuid import uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    field_validator,
    model_validator,
)


PoiKind = Literal["attraction", "restaurant"]


class Destination(BaseModel):
    """A city the traveller wants to visit."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str

    model_config = ConfigDict(frozen=True)


class DateRange(BaseModel):
    """Inclusive calendar range of the trip."""

    start: date
    end: date

    model_config = ConfigDict(frozen=True)

    def days(self) -> int:
        """Return the number of calendar days spanned, both endpoints included."""

        return (self.end - self.start).days + 1

    def dates(self) -> Iterator[date]:
        for offset in range(max(self.days(), 0)):
            yield self.start + timedelta(days=offset)

    def __contains__(self, value: object) -> bool:
        return isinstance(value, date) and self.start <= value <= self.end


class TripConfig(BaseModel):
    """Ordered destinations and the travel dates."""

    destinations: List[Destination]
    date_range: DateRange

    model_config = ConfigDict(frozen=True)

    def destination_names(self) -> List[str]:
        return [destination.name for destination in self.destinations]

    def find(self, name: str) -> Optional[Destination]:
        for destination in self.destinations:
            if destination.name == name:
                return destination
        return None


class PointOfInterest(BaseModel):
    """An attraction or restaurant chosen by the traveller."""

    name: str
    kind: PoiKind = Field(validation_alias=AliasChoices("kind", "type"))

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class District(BaseModel):
    """A neighbourhood of a destination city."""

    name: str
    description: str = ""

    model_config = ConfigDict(frozen=True)


class Attraction(BaseModel):
    """A sight suggested for a district."""

    name: str
    description: str = ""
    duration: Optional[str] = None
    rating: Optional[float] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("rating", mode="before")
    @classmethod
    def _coerce_rating(cls, value: object) -> object:
        """Accept ratings rendered as text such as ``"4.5/5"``."""

        if isinstance(value, str):
            candidate = value.split("/")[0].strip()
            try:
                return float(candidate)
            except ValueError:
                return None
        return value

    def as_point(self) -> PointOfInterest:
        return PointOfInterest(name=self.name, kind="attraction")


class Restaurant(BaseModel):
    """A place to eat suggested for a district."""

    name: str
    cuisine: str = ""
    price: Optional[str] = None
    reservations: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    def as_point(self) -> PointOfInterest:
        return PointOfInterest(name=self.name, kind="restaurant")


class POIListing(BaseModel):
    """Attractions and restaurants available in a district."""

    attractions: List[Attraction] = Field(
        default_factory=list,
        validation_alias=AliasChoices("attractions", "sights", "things_to_do"),
    )
    restaurants: List[Restaurant] = Field(
        default_factory=list,
        validation_alias=AliasChoices("restaurants", "dining", "food"),
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def points(self) -> Iterable[PointOfInterest]:
        """Iterate over every listed place as a selectable point of interest."""

        for attraction in self.attractions:
            yield attraction.as_point()
        for restaurant in self.restaurants:
            yield restaurant.as_point()


class Transit(BaseModel):
    """How to reach the next activity."""

    mode: str
    duration: str = ""

    model_config = ConfigDict(frozen=True)


class Activity(BaseModel):
    """An individual scheduled activity inside a day plan."""

    time: str
    activity: str
    description: str = ""
    location: str = ""
    details: Optional[str] = None
    transit: Optional[Transit] = Field(
        default=None,
        validation_alias=AliasChoices("transit", "travelToNext", "travel_to_next"),
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class DayPlan(BaseModel):
    """Plan for a single day of travel."""

    title: str
    summary: str = ""
    morning: List[Activity] = Field(default_factory=list)
    afternoon: List[Activity] = Field(default_factory=list)
    evening: List[Activity] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def activities(self) -> Iterator[Activity]:
        for slot in (self.morning, self.afternoon, self.evening):
            yield from slot


class GeneratedItinerary(RootModel[Dict[str, DayPlan]]):
    """Day plans keyed by ISO date string."""

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _unwrap_common_wrappers(cls, data: object) -> object:
        """Support common nesting variants returned by the LLM."""

        candidate = data
        for key in ("itinerary", "days", "trip"):
            while isinstance(candidate, dict) and len(candidate) == 1:
                nested = candidate.get(key)
                if not isinstance(nested, dict):
                    break
                candidate = nested
        return candidate

    @field_validator("root")
    @classmethod
    def _require_iso_dates(cls, value: Dict[str, DayPlan]) -> Dict[str, DayPlan]:
        if not value:
            raise ValueError("itinerary contains no days")
        for key in value:
            try:
                date.fromisoformat(key)
            except ValueError as exc:
                raise ValueError(f"itinerary key {key!r} is not an ISO date") from exc
        return value

    def __contains__(self, key: object) -> bool:
        return key in self.root

    def __getitem__(self, key: str) -> DayPlan:
        return self.root[key]

    def __len__(self) -> int:
        return len(self.root)

    def keys(self) -> List[str]:
        return list(self.root)

    def sorted_dates(self) -> List[str]:
        """Return the day keys in calendar order."""

        return sorted(self.root, key=date.fromisoformat)

    def day_plans(self) -> Iterator[Tuple[str, DayPlan]]:
        for key in self.sorted_dates():
            yield key, self.root[key]


__all__ = [
    "Activity",
    "Attraction",
    "DateRange",
    "DayPlan",
    "Destination",
    "District",
    "GeneratedItinerary",
    "POIListing",
    "PoiKind",
    "PointOfInterest",
    "Restaurant",
    "Transit",
    "TripConfig",
]
