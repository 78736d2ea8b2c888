"""
Trip Journal Event Bus & Event Types
====================================
Async pub/sub used between the view-model and the itinerary walker.

Event flow:
    Publisher -> EventBus dispatches to subscribers -> Handlers called concurrently
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable, Coroutine, Dict, List, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# Event Types
# =============================================================================

class EventType(Enum):
    TRIP_LOADED = auto()
    SELECTION_SUBMITTED = auto()
    LEG_SKIPPED = auto()
    WALK_COMPLETED = auto()
    CUSTOM = auto()


# =============================================================================
# Event Data Classes
# =============================================================================

@dataclass
class Event:
    """Base event published through the EventBus."""
    event_type: EventType = EventType.CUSTOM
    source: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    def __str__(self) -> str:
        return (
            f"[{self.event_type.name}] from={self.source or '-'} "
            f"id={self.event_id} at={self.timestamp:%H:%M:%S}"
        )


@dataclass
class TripLoadedEvent(Event):
    """Published when a trip was selected; ``trip`` is None if loading failed."""
    trip: Optional[Any] = None
    trip_name: str = ""

    def __post_init__(self):
        self.event_type = EventType.TRIP_LOADED


@dataclass
class SelectionSubmittedEvent(Event):
    """Published when the user submits the chips chosen for the current leg."""
    message_id: Optional[str] = None
    selected: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.event_type = EventType.SELECTION_SUBMITTED


@dataclass
class LegSkippedEvent(Event):
    """Published when a leg has no nearby places to ask about."""
    leg_index: int = -1

    def __post_init__(self):
        self.event_type = EventType.LEG_SKIPPED


@dataclass
class WalkCompletedEvent(Event):
    """Published after the last leg of a journey was handled."""
    journey: List[Any] = field(default_factory=list)
    visited: Dict[int, List[str]] = field(default_factory=dict)

    def __post_init__(self):
        self.event_type = EventType.WALK_COMPLETED


# =============================================================================
# Event Bus
# =============================================================================

# Handler signature: async (Event) -> None
EventHandler = Callable[[Event], Coroutine[Any, Any, None]]


class EventBus:
    """Async publish/subscribe bus."""

    def __init__(self) -> None:
        self._subscribers: Dict[EventType, List[EventHandler]] = {}
        self._event_log: List[Event] = []

    # -- subscriptions --------------------------------------------------------

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        self._subscribers.setdefault(event_type, []).append(handler)
        logger.debug("Subscribed handler %s to %s", handler, event_type.name)

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        handlers = self._subscribers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    # -- publishing -----------------------------------------------------------

    async def publish(self, event: Event) -> None:
        """Publish an event, dispatching to all subscribers concurrently."""
        self._event_log.append(event)
        logger.info("Event published: %s", event)

        handlers = list(self._subscribers.get(event.event_type, []))
        if not handlers:
            return

        results = await asyncio.gather(
            *(h(event) for h in handlers),
            return_exceptions=True,
        )
        for i, result in enumerate(results):
            if isinstance(result, Exception):
                logger.error(
                    "Handler %s raised %s for event %s",
                    handlers[i], result, event.event_id,
                )

    # -- introspection --------------------------------------------------------

    @property
    def event_log(self) -> List[Event]:
        return list(self._event_log)

    def get_events_by_type(self, event_type: EventType) -> List[Event]:
        return [e for e in self._event_log if e.event_type == event_type]
