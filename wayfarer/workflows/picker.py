"""Pick destinations by clicking on a generated region map."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from wayfarer.agents.locator import UNKNOWN_LOCATION
from wayfarer.errors import NotFoundError, ValidationError
from wayfarer.workflows.requests import InflightRequests
from wayfarer.workflows.services import TripServices

_LOGGER = logging.getLogger(__name__)

_REGION_KEY = "region"


class MapPicker:
    """Holds the base map and resolves clicks on it to city names."""

    def __init__(self, services: TripServices) -> None:
        self.services = services
        self.image: Optional[str] = None
        self.error: Optional[str] = None
        self.identifying = False
        self._requests: InflightRequests[Optional[str]] = InflightRequests("region map")

    @property
    def loading(self) -> bool:
        return _REGION_KEY in self._requests

    def load(self) -> "asyncio.Future[Optional[str]]":
        """Generate the base map once; repeated calls share the running request."""

        if self.image is not None:
            done: "asyncio.Future[Optional[str]]" = asyncio.get_running_loop().create_future()
            done.set_result(self.image)
            return done
        return self._requests.share(_REGION_KEY, self._load)

    async def _load(self) -> Optional[str]:
        try:
            image = await self.services.render_region_map()
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001 - the picker falls back to text entry
            _LOGGER.warning("Region map generation failed: %s", exc)
            self.error = "Could not generate the interactive map. Please use text input."
            return None
        self.image = image
        self.error = None
        return image

    async def identify(self, x: int, y: int, width: int, height: int) -> Optional[str]:
        """Return the city at the clicked point, or ``None`` if a lookup is already running."""

        if self.image is None:
            raise ValidationError("The map has not been loaded yet.")
        if self.identifying:
            _LOGGER.debug("Ignoring map click while a lookup is running")
            return None
        if width <= 0 or height <= 0 or not (0 <= x <= width and 0 <= y <= height):
            raise ValidationError("The clicked point lies outside the map.")

        self.identifying = True
        try:
            city = await self.services.identify_location_at_point(self.image, x, y, width, height)
        finally:
            self.identifying = False

        city = city.strip()
        if not city or city.lower() == UNKNOWN_LOCATION.lower():
            raise NotFoundError(f"No city identified at ({x}, {y}).")
        return city

    def close(self) -> None:
        self._requests.cancel_all()


__all__ = ["MapPicker"]
