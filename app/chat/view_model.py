import asyncio
import logging
from dataclasses import replace
from typing import Iterable, Optional

from langchain_core.messages import HumanMessage

from tripjournal.config import JournalConfig
from tripjournal.errors import UnknownTripError
from tripjournal.events import (
    EventBus,
    EventType,
    SelectionSubmittedEvent,
    TripLoadedEvent,
    WalkCompletedEvent,
)
from tripjournal.llm import create_chat_model
from app.chat.session import ChatSession, message_text
from app.chat.state import (
    ChatMessage,
    ChatStateStore,
    ChatUiState,
    ChipDetails,
    ChipType,
    Participant,
    StateObserver,
)
from app.chat.walker import ItineraryWalker
from app.prompts import TRIP_CHOICES, TRIP_FETCH_NOTICE, WALK_SUMMARY_PROMPT
from app.trip.loader import TripLoader
from app.trip.sources import DirectoryTripSource, MongoTripSource

logger = logging.getLogger(__name__)

SOURCE_ID = "chat_view_model"


def trip_choice_chips() -> tuple[ChipDetails, ...]:
    return tuple(
        ChipDetails(id=chip_id, type=ChipType(kind), text=text)
        for chip_id, kind, text in TRIP_CHOICES
    )


def build_walk_summary(journey: list, visited: dict[int, list[str]]) -> str:
    lines = []
    for i, leg in enumerate(journey):
        stop = f"- {leg.type} at {leg.location.node_name}"
        if leg.date:
            stop += f" ({leg.date})"
        places = visited.get(i)
        if places:
            stop += f": visited {', '.join(places)}"
        lines.append(stop)
    return WALK_SUMMARY_PROMPT.format(legs="\n".join(lines))


class ChatViewModel:
    """Holds the chat state and routes user commands.

    Commands: send_message, handle_chip_selection, toggle_chip, handle_submit.
    All of them must be called from the event loop that ran start().
    """

    def __init__(
        self,
        session: ChatSession,
        loader: TripLoader,
        config: JournalConfig | None = None,
        event_bus: EventBus | None = None,
    ):
        self.config = config or JournalConfig()
        self.session = session
        self.loader = loader
        self.event_bus = event_bus or EventBus()
        self.store = ChatStateStore(ChatUiState(self._initial_messages()))
        self.walker = ItineraryWalker(self.store, self.event_bus)
        self._background: set[asyncio.Task] = set()

    @classmethod
    def from_config(cls, config: JournalConfig) -> "ChatViewModel":
        config.validate()
        session = ChatSession.seeded(create_chat_model(config), config.greeting)
        if config.mongo_uri:
            source = MongoTripSource.from_uri(
                config.mongo_uri, config.mongo_db, config.mongo_collection
            )
        else:
            source = DirectoryTripSource(config.trips_dir)
        return cls(session, TripLoader(source), config=config)

    def _initial_messages(self) -> list[ChatMessage]:
        messages = []
        for content in self.session.history:
            is_user = isinstance(content, HumanMessage)
            messages.append(ChatMessage(
                text=message_text(content) or "",
                participant=Participant.USER if is_user else Participant.MODEL,
                is_pending=False,
                chips=() if is_user else trip_choice_chips(),
            ))
        return messages

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        await self.walker.start()
        if self.config.summarize_on_complete:
            self.event_bus.subscribe(EventType.WALK_COMPLETED, self._on_walk_completed)

    async def stop(self) -> None:
        self.event_bus.unsubscribe(EventType.WALK_COMPLETED, self._on_walk_completed)
        await self.walker.stop()
        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def settle(self) -> None:
        """Wait for the walker and any background chat turns to finish."""
        await self.walker.drain()
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def ui_state(self) -> ChatUiState:
        return self.store.value

    def add_observer(self, observer: StateObserver) -> None:
        self.store.add_observer(observer)

    def remove_observer(self, observer: StateObserver) -> None:
        self.store.remove_observer(observer)

    def subscribe(self) -> asyncio.Queue:
        return self.store.subscribe()

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self.store.unsubscribe(queue)

    def find_message(self, message_id: str) -> Optional[ChatMessage]:
        return self.store.value.find(message_id)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def send_message(self, user_message: str) -> None:
        self.store.add_message(ChatMessage(
            text=user_message,
            participant=Participant.USER,
            is_pending=True,
        ))

        try:
            if user_message in self.config.trip_resources:
                self.store.add_message(ChatMessage(
                    text=TRIP_FETCH_NOTICE.format(trip_name=user_message),
                    participant=Participant.MODEL,
                    is_pending=False,
                ))
            response = await self.session.send_message(user_message)
            self.store.replace_last_pending_message()

            if response.text is not None:
                self.store.add_message(ChatMessage(
                    text=response.text,
                    participant=Participant.MODEL,
                    is_pending=False,
                ))
        except Exception as e:
            logger.error("Chat model call failed: %s", e, exc_info=True)
            self.store.replace_last_pending_message()
            self.store.add_message(ChatMessage(
                text=str(e) or type(e).__name__,
                participant=Participant.ERROR,
            ))

    async def handle_chip_selection(self, chip: ChipDetails) -> None:
        logger.info("Chip selected: %s (%s)", chip.text, chip.type.value)
        handlers = {
            ChipType.TRIP: self._handle_trip,
            ChipType.FOOD: self._handle_trip,
            ChipType.SCENIC: self._handle_trip,
        }
        await handlers[chip.type](chip)

    def toggle_chip(self, message: ChatMessage, chip_id: str) -> ChatMessage:
        current = self.store.value.find(message.id) or message
        updated = current.with_chip_toggled(chip_id)
        self.store.replace_message(message.id, updated)
        return updated

    async def handle_submit(
        self,
        message: ChatMessage,
        selected: Optional[Iterable[str]] = None,
    ) -> ChatMessage:
        """Keep only the selected chips of *message* and move to the next leg.

        Selection flags are read from the stored copy of the message, since
        toggle_chip only updates the store. Passing *selected* (chip ids)
        overrides the flags.
        """
        current = self.store.value.find(message.id) or message
        if selected is not None:
            chosen = set(selected)
            current = replace(
                current,
                chips=tuple(replace(c, enabled=c.id in chosen) for c in current.chips),
            )
        submitted = current.with_selected_chips()
        self.store.replace_message(message.id, submitted)
        logger.info(
            "Submitted %d of %d chips for message %s",
            len(submitted.chips), len(current.chips), message.id,
        )
        await self.event_bus.publish(SelectionSubmittedEvent(
            source=SOURCE_ID,
            message_id=message.id,
            selected=[c.text for c in submitted.chips],
        ))
        return submitted

    # ------------------------------------------------------------------
    # Trip handling
    # ------------------------------------------------------------------

    async def _handle_trip(self, details: ChipDetails) -> None:
        resource_id = self.config.trip_resources.get(details.text)
        if resource_id is None:
            raise UnknownTripError(details.text)

        loop = asyncio.get_running_loop()
        trip = await loop.run_in_executor(None, self.loader.load, resource_id)
        await self.event_bus.publish(TripLoadedEvent(
            source=SOURCE_ID,
            trip=trip,
            trip_name=details.text,
        ))

    async def _on_walk_completed(self, event: WalkCompletedEvent) -> None:
        prompt = build_walk_summary(event.journey, event.visited)
        task = asyncio.create_task(self._send_summary(prompt))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _send_summary(self, prompt: str) -> None:
        """Ask the model for the trip write-up; only its reply enters the chat."""
        try:
            response = await self.session.send_message(prompt)
        except Exception as e:
            logger.error("Walk summary failed: %s", e, exc_info=True)
            self.store.add_message(ChatMessage(
                text=str(e) or type(e).__name__,
                participant=Participant.ERROR,
            ))
            return

        if response.text is not None:
            self.store.add_message(ChatMessage(
                text=response.text,
                participant=Participant.MODEL,
                is_pending=False,
            ))
