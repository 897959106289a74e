"""Process-level configuration: environment loading and logging."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv


DEFAULT_REGION = "China"


def region() -> str:
    """Region drawn on the base map used to pick destinations."""

    return os.getenv("WAYFARER_REGION", DEFAULT_REGION)


def planner_model() -> str:
    return os.getenv("WAYFARER_PLANNER_MODEL") or os.getenv("OPENAI_MODEL", "gpt-4o")


def configure() -> None:
    """Load environment variables from ``.env`` and configure logging."""

    load_dotenv()
    level_name = os.getenv("WAYFARER_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = ["DEFAULT_REGION", "configure", "planner_model", "region"]
