"""Workflow entry points for orchestrating a Wayfarer planning session."""

from .artifacts import OVERALL_KEY, ArtifactCache, ArtifactEntry, ArtifactStatus
from .browser import BrowserState, SelectionBrowser
from .itinerary import ItineraryRequest
from .picker import MapPicker
from .selection import MAX_TRIP_DAYS, SelectionSet, build_trip_config
from .services import LLMTripServices, TripServices
from .wizard import WizardController, WizardState, WizardStep

__all__ = [
    "ArtifactCache",
    "ArtifactEntry",
    "ArtifactStatus",
    "BrowserState",
    "ItineraryRequest",
    "LLMTripServices",
    "MAX_TRIP_DAYS",
    "MapPicker",
    "OVERALL_KEY",
    "SelectionBrowser",
    "SelectionSet",
    "TripServices",
    "WizardController",
    "WizardState",
    "WizardStep",
    "build_trip_config",
]
