"""Entry point for creating a configured planning session."""

from __future__ import annotations

from typing import Optional

from wayfarer.core import configure
from wayfarer.core.llm import LLMClient, set_client
from wayfarer.workflows import LLMTripServices, TripServices, WizardController


def create_wizard(services: Optional[TripServices] = None) -> WizardController:
    """Load configuration and return a wizard wired to the generation services."""

    configure()
    if services is None:
        # Rebuild the shared client so values loaded from .env take effect.
        set_client(LLMClient())
        services = LLMTripServices()
    return WizardController(services)


__all__ = ["create_wizard"]
