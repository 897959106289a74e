"""Core utilities for Wayfarer."""

from .config import configure
from .llm import LLMClient, clean_json_string

__all__ = ["LLMClient", "clean_json_string", "configure"]
