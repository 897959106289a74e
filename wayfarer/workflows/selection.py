"""Trip configuration validation and the per-destination selection set."""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Union

from wayfarer.errors import ValidationError
from wayfarer.schemas import DateRange, Destination, PointOfInterest, TripConfig

MIN_TRIP_DAYS = 1
MAX_TRIP_DAYS = 90

DateInput = Union[date, str, None]
DestinationInput = Union[Destination, str]


def _coerce_date(value: DateInput, label: str) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    candidate = str(value).strip()
    if not candidate:
        return None
    try:
        return date.fromisoformat(candidate)
    except ValueError as exc:
        raise ValidationError(f"The {label} date '{candidate}' is not a valid date.") from exc


def _coerce_destination(value: DestinationInput) -> Destination:
    if isinstance(value, Destination):
        return value
    return Destination(name=str(value).strip())


def ensure_unique_name(name: str, existing: Iterable[Destination]) -> None:
    """Raise if ``name`` is blank or already present, ignoring case."""

    if not name.strip():
        raise ValidationError("Destination name cannot be empty.")
    lowered = name.strip().lower()
    if any(destination.name.lower() == lowered for destination in existing):
        raise ValidationError(f"{name.strip()} is already in your itinerary.")


def build_trip_config(
    destinations: Sequence[DestinationInput],
    start: DateInput,
    end: DateInput,
) -> TripConfig:
    """Validate raw input and return a :class:`TripConfig`."""

    if not destinations:
        raise ValidationError("Please add at least one destination.")

    accepted: List[Destination] = []
    for raw in destinations:
        destination = _coerce_destination(raw)
        ensure_unique_name(destination.name, accepted)
        accepted.append(destination)

    start_date = _coerce_date(start, "start")
    end_date = _coerce_date(end, "end")
    if start_date is None or end_date is None:
        raise ValidationError("Please select a start and end date for your trip.")

    date_range = DateRange(start=start_date, end=end_date)
    length = date_range.days()
    if length < MIN_TRIP_DAYS:
        raise ValidationError("The trip must be at least 1 day long.")
    if length > MAX_TRIP_DAYS:
        raise ValidationError(f"The trip cannot be longer than {MAX_TRIP_DAYS} days.")

    return TripConfig(destinations=accepted, date_range=date_range)


class SelectionSet:
    """Chosen points of interest per destination.

    The key set is closed: it is fixed to the destination names of the trip when the
    set is created, and any operation naming another destination is rejected.
    """

    def __init__(self, destination_names: Iterable[str] = ()) -> None:
        self._entries: Dict[str, List[PointOfInterest]] = {name: [] for name in destination_names}

    @classmethod
    def for_trip(cls, config: TripConfig) -> "SelectionSet":
        return cls(config.destination_names())

    def copy(self) -> "SelectionSet":
        clone = SelectionSet()
        clone._entries = self.as_dict()
        return clone

    def _entry(self, destination_name: str) -> List[PointOfInterest]:
        try:
            return self._entries[destination_name]
        except KeyError:
            raise ValidationError(f"{destination_name} is not a destination of this trip.") from None

    def toggle(self, destination_name: str, poi: PointOfInterest) -> bool:
        """Add ``poi`` or remove the entry with the same name. Returns the new membership."""

        entry = self._entry(destination_name)
        remaining = [item for item in entry if item.name != poi.name]
        if len(remaining) != len(entry):
            self._entries[destination_name] = remaining
            return False
        entry.append(poi)
        return True

    def is_selected(self, destination_name: str, poi_name: str) -> bool:
        return any(item.name == poi_name for item in self._entry(destination_name))

    def get(self, destination_name: str) -> List[PointOfInterest]:
        return list(self._entry(destination_name))

    def count(self, destination_name: str) -> int:
        return len(self._entry(destination_name))

    def total_count(self) -> int:
        return sum(len(entry) for entry in self._entries.values())

    def keys(self) -> List[str]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def as_dict(self) -> Dict[str, List[PointOfInterest]]:
        return {name: list(entry) for name, entry in self._entries.items()}

    def __contains__(self, destination_name: object) -> bool:
        return destination_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = [
    "MAX_TRIP_DAYS",
    "MIN_TRIP_DAYS",
    "SelectionSet",
    "build_trip_config",
    "ensure_unique_name",
]
