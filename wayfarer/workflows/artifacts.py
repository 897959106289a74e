"""Lazily populated, deduplicated cache of generated map artifacts.

Valid keys are ``"overall"`` plus every date of the generated itinerary. An entry
moves ``absent → pending → ready | failed``; ``ensure`` issues a request only from
``absent`` or ``failed``, so a key never has two requests in flight and a ``ready``
artifact is never fetched again.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from wayfarer.errors import ValidationError
from wayfarer.schemas import GeneratedItinerary
from wayfarer.workflows.requests import InflightRequests
from wayfarer.workflows.services import TripServices

_LOGGER = logging.getLogger(__name__)

OVERALL_KEY = "overall"


class ArtifactStatus(str, Enum):
    ABSENT = "absent"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ArtifactEntry:
    """Cache slot for one map artifact."""

    key: str
    status: ArtifactStatus = ArtifactStatus.ABSENT
    content: Optional[str] = None
    reason: Optional[str] = None
    attempts: int = 0


@dataclass(frozen=True)
class CacheState:
    entries: Mapping[str, ArtifactEntry] = field(default_factory=lambda: MappingProxyType({}))
    epoch: int = 0

    def entry(self, key: str) -> ArtifactEntry:
        return self.entries.get(key) or ArtifactEntry(key=key)


@dataclass(frozen=True)
class ArtifactRequested:
    key: str


@dataclass(frozen=True)
class ArtifactReady:
    key: str
    epoch: int
    content: str


@dataclass(frozen=True)
class ArtifactFailed:
    key: str
    epoch: int
    reason: str


@dataclass(frozen=True)
class CacheCleared:
    pass


CacheEvent = Union[ArtifactRequested, ArtifactReady, ArtifactFailed, CacheCleared]


def _with_entry(state: CacheState, entry: ArtifactEntry) -> CacheState:
    entries: Dict[str, ArtifactEntry] = dict(state.entries)
    entries[entry.key] = entry
    return replace(state, entries=MappingProxyType(entries))


def transition(state: CacheState, event: CacheEvent) -> CacheState:
    """Return the cache state that results from applying ``event``."""

    if isinstance(event, CacheCleared):
        return CacheState(epoch=state.epoch + 1)

    current = state.entry(event.key)

    if isinstance(event, ArtifactRequested):
        if current.status in (ArtifactStatus.READY, ArtifactStatus.PENDING):
            return state
        return _with_entry(
            state,
            ArtifactEntry(
                key=event.key,
                status=ArtifactStatus.PENDING,
                attempts=current.attempts + 1,
            ),
        )

    # Completions from before a clear, or for an entry no longer pending, are inert.
    if event.epoch != state.epoch or current.status is not ArtifactStatus.PENDING:
        return state

    if isinstance(event, ArtifactReady):
        return _with_entry(
            state, replace(current, status=ArtifactStatus.READY, content=event.content, reason=None)
        )
    if isinstance(event, ArtifactFailed):
        return _with_entry(state, replace(current, status=ArtifactStatus.FAILED, reason=event.reason))

    raise TypeError(f"Unsupported cache event: {event!r}")


class ArtifactCache:
    """Map artifacts for one generated itinerary."""

    def __init__(self, services: TripServices, itinerary: GeneratedItinerary) -> None:
        self.services = services
        self.itinerary = itinerary
        self.valid_keys: FrozenSet[str] = frozenset({OVERALL_KEY, *itinerary.keys()})
        self._state = CacheState()
        self._requests: InflightRequests[ArtifactEntry] = InflightRequests("map")

    @property
    def state(self) -> CacheState:
        return self._state

    def keys(self) -> List[str]:
        """Valid keys in display order: the overall map first, then days by date."""

        return [OVERALL_KEY, *self.itinerary.sorted_dates()]

    def entry(self, key: str) -> ArtifactEntry:
        self._check_key(key)
        return self._state.entry(key)

    def entries(self) -> Dict[str, ArtifactEntry]:
        return {key: self._state.entry(key) for key in self.keys()}

    def _check_key(self, key: str) -> None:
        if key not in self.valid_keys:
            raise ValidationError(f"'{key}' is not a map of this itinerary.")

    def ensure(self, key: str) -> ArtifactEntry:
        """Make sure an artifact for ``key`` is ready or being generated."""

        self._check_key(key)
        before = self._state.entry(key)
        if before.status in (ArtifactStatus.READY, ArtifactStatus.PENDING):
            _LOGGER.debug("Map %s already %s", key, before.status.value)
            return before

        self._state = transition(self._state, ArtifactRequested(key))
        epoch = self._state.epoch
        self._requests.start((epoch, key), lambda: self._generate(key, epoch))
        return self._state.entry(key)

    async def get(self, key: str) -> ArtifactEntry:
        """Ensure ``key`` and wait for its outcome."""

        self.ensure(key)
        task = self._requests.get((self._state.epoch, key))
        if task is not None:
            await task
        return self._state.entry(key)

    async def _generate(self, key: str, epoch: int) -> ArtifactEntry:
        start = time.perf_counter()
        try:
            if key == OVERALL_KEY:
                content = await self.services.render_overall_map(self.itinerary)
            else:
                content = await self.services.render_day_map(self.itinerary[key])
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001 - recorded on the cache entry
            _LOGGER.warning("Map generation for %s failed: %s", key, exc)
            event: CacheEvent = ArtifactFailed(key, epoch, str(exc) or type(exc).__name__)
        else:
            _LOGGER.info("Map %s ready in %.2fs", key, time.perf_counter() - start)
            event = ArtifactReady(key, epoch, content)

        if epoch != self._state.epoch:
            _LOGGER.debug("Discarding map %s from a cleared cache", key)
        self._state = transition(self._state, event)
        return self._state.entry(key)

    def clear(self) -> None:
        """Drop every entry; completions of earlier requests are ignored."""

        self._state = transition(self._state, CacheCleared())

    def pending_keys(self) -> Tuple[str, ...]:
        return tuple(
            key for key, entry in self._state.entries.items() if entry.status is ArtifactStatus.PENDING
        )

    async def drain(self) -> None:
        await self._requests.drain()

    def close(self) -> None:
        self.clear()
        self._requests.cancel_all()


__all__ = [
    "ArtifactCache",
    "ArtifactEntry",
    "ArtifactFailed",
    "ArtifactReady",
    "ArtifactRequested",
    "ArtifactStatus",
    "CacheCleared",
    "CacheState",
    "OVERALL_KEY",
    "transition",
]
