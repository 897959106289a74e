"""Shared utilities for Wayfarer's LLM-backed agents."""

from __future__ import annotations

import json
import os
from datetime import date, datetime
from typing import Any, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from wayfarer.core import llm
from wayfarer.errors import ParseError

T = TypeVar("T")


DEFAULT_AGENT_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, set):
        return sorted(value)
    return value


def format_prompt_data(data: Any) -> str:
    """Render arbitrary python data for inclusion in an LLM prompt."""

    return json.dumps(data, indent=2, default=_json_default)


async def call_llm_and_validate(
    *,
    schema: Type[T],
    prompt: str,
    system_prompt: str,
    prompt_version: str,
    model: Optional[str] = None,
    stop: Optional[Sequence[str]] = None,
) -> T:
    """Call the shared LLM helper and validate the JSON payload."""

    data = await llm.llm_json(
        prompt=prompt,
        system=system_prompt,
        model=model or DEFAULT_AGENT_MODEL,
        stop=stop,
        prompt_version=prompt_version,
    )
    try:
        return TypeAdapter(schema).validate_python(data)
    except PydanticValidationError as exc:
        name = getattr(schema, "__name__", str(schema))
        raise ParseError(f"LLM response could not be validated as {name}: {exc}") from exc


from .cartographer import CartographerAgent
from .districts import DistrictAgent
from .locator import LocatorAgent
from .planner import PlannerAgent
from .points import PointsOfInterestAgent

__all__ = [
    "CartographerAgent",
    "DEFAULT_AGENT_MODEL",
    "DistrictAgent",
    "LocatorAgent",
    "PlannerAgent",
    "PointsOfInterestAgent",
    "call_llm_and_validate",
    "format_prompt_data",
]
