"""Wayfarer: multi-city trip planning with generated itineraries and maps."""

__version__ = "0.1.0"
