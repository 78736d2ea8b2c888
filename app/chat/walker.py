"""
ItineraryWalker
===============
Steps through the legs of a loaded trip, one leg per user submission, and asks
about the nearby places of each leg.

States:
    Idle         cursor == -1, no active journey
    Walking(i)   cursor == i, prompt for leg i is on screen

Events are consumed from one ordered queue by a single task, so the cursor has
exactly one writer.
"""

import asyncio
import logging
from enum import Enum, auto
from typing import Optional

from tripjournal.agent import AgentConfig, BaseAgent
from tripjournal.events import (
    Event,
    EventBus,
    EventType,
    LegSkippedEvent,
    SelectionSubmittedEvent,
    TripLoadedEvent,
    WalkCompletedEvent,
)
from app.chat.state import ChatMessage, ChatStateStore, ChipDetails, ChipType, Participant
from app.prompts import NEARBY_PLACES_HEADER
from app.trip.models import Trip, TripLeg

logger = logging.getLogger(__name__)

IDLE = -1


class WalkerState(Enum):
    IDLE = auto()
    WALKING = auto()


def build_nearby_message(leg: TripLeg) -> ChatMessage:
    """Multiselect MODEL message offering one chip per nearby place of *leg*."""
    lines = [NEARBY_PLACES_HEADER]
    chips = []
    for i, place in enumerate(leg.nearby_places):
        lines.append(f"{i + 1}. {place.node_name}")
        chips.append(ChipDetails(
            id=f"id_{leg.location.node_name}_{i}",
            type=ChipType.TRIP,
            text=place.node_name,
        ))
    return ChatMessage(
        text="\n".join(lines),
        participant=Participant.MODEL,
        is_pending=False,
        chips=tuple(chips),
        is_multiselect=True,
    )


class ItineraryWalker(BaseAgent):
    """Walks a trip's journey, pushing a nearby-places prompt per leg."""

    def __init__(
        self,
        store: ChatStateStore,
        event_bus: EventBus,
        agent_config: AgentConfig | None = None,
    ) -> None:
        agent_cfg = agent_config or AgentConfig(
            agent_id="itinerary_walker",
            name="ItineraryWalker",
        )
        super().__init__(agent_cfg, event_bus)
        self.store = store
        self._journey: tuple[TripLeg, ...] = ()
        self._cursor = IDLE
        self._visited: dict[int, list[str]] = {}
        self._queue: asyncio.Queue[Event] = asyncio.Queue()

    # -- properties -----------------------------------------------------------

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def state(self) -> WalkerState:
        return WalkerState.IDLE if self._cursor == IDLE else WalkerState.WALKING

    @property
    def journey(self) -> tuple[TripLeg, ...]:
        return self._journey

    @property
    def current_leg(self) -> Optional[TripLeg]:
        if 0 <= self._cursor < len(self._journey):
            return self._journey[self._cursor]
        return None

    @property
    def visited(self) -> dict[int, list[str]]:
        return {k: list(v) for k, v in self._visited.items()}

    # -- BaseAgent lifecycle --------------------------------------------------

    async def setup(self) -> None:
        self.subscribe_to(EventType.TRIP_LOADED)
        self.subscribe_to(EventType.SELECTION_SUBMITTED)

    async def teardown(self) -> None:
        self.unsubscribe_from(EventType.TRIP_LOADED)
        self.unsubscribe_from(EventType.SELECTION_SUBMITTED)

    async def run(self) -> None:
        while self._running:
            event = await self._queue.get()
            try:
                await self.process(event)
            except Exception:
                logger.exception("Walker failed to process %s", event)
            finally:
                self._queue.task_done()

    async def handle_event(self, event: Event) -> None:
        self._queue.put_nowait(event)

    async def drain(self) -> None:
        """Wait until every queued event has been processed."""
        if self._running:
            await self._queue.join()

    # -- state machine --------------------------------------------------------

    async def process(self, event: Event) -> None:
        if isinstance(event, TripLoadedEvent):
            await self._on_trip_loaded(event.trip)
        elif isinstance(event, SelectionSubmittedEvent):
            await self._on_selection_submitted(event)
        else:
            logger.debug("Walker ignoring %s", event)

    async def _on_trip_loaded(self, trip: Optional[Trip]) -> None:
        if trip is None:
            logger.warning("Trip could not be loaded — walker state unchanged")
            return

        if self._cursor != IDLE:
            logger.info("New trip loaded during walk at leg %d, restarting", self._cursor)

        self._journey = tuple(trip.journey)
        self._visited = {}
        if not self._journey:
            logger.info("Trip has an empty journey — nothing to walk")
            self._cursor = IDLE
            return

        logger.info("Walking trip with %d legs", len(self._journey))
        self._cursor = 0
        await self._enter(0)

    async def _on_selection_submitted(self, event: SelectionSubmittedEvent) -> None:
        if self._cursor == IDLE:
            logger.debug("Selection submitted while idle — ignored")
            return

        self._visited[self._cursor] = list(event.selected)
        self._cursor += 1
        await self._enter(self._cursor)

    async def _enter(self, idx: int) -> None:
        while idx < len(self._journey):
            leg = self._journey[idx]
            if leg.nearby_places:
                self.store.add_message(build_nearby_message(leg))
                logger.debug("Prompted nearby places for leg %d (%s)", idx, leg.location.node_name)
                return

            logger.info("Leg %d (%s) has no nearby places, skipping", idx, leg.location.node_name)
            idx += 1
            self._cursor = idx
            await self.publish(LegSkippedEvent(leg_index=idx - 1))

        await self._complete()

    async def _complete(self) -> None:
        logger.info("Walk complete after %d legs", len(self._journey))
        journey = list(self._journey)
        visited = self.visited
        self._cursor = IDLE
        await self.publish(WalkCompletedEvent(journey=journey, visited=visited))
