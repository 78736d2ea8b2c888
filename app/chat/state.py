import asyncio
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Participant(Enum):
    USER = "user"
    MODEL = "model"
    ERROR = "error"


class ChipType(Enum):
    TRIP = "Trip"
    FOOD = "Food"
    SCENIC = "Scenic"


@dataclass(frozen=True)
class ChipDetails:
    id: str
    type: ChipType
    text: str
    enabled: bool = False

    def toggled(self) -> "ChipDetails":
        return replace(self, enabled=not self.enabled)


@dataclass(frozen=True)
class ChatMessage:
    text: str = ""
    participant: Participant = Participant.USER
    is_pending: bool = False
    chips: tuple[ChipDetails, ...] = ()
    is_multiselect: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        object.__setattr__(self, "chips", tuple(self.chips))

    @property
    def selected_chips(self) -> tuple[ChipDetails, ...]:
        return tuple(c for c in self.chips if c.enabled)

    def with_selected_chips(self) -> "ChatMessage":
        """Copy of this message keeping only the enabled chips."""
        return replace(self, chips=self.selected_chips)

    def with_chip_toggled(self, chip_id: str) -> "ChatMessage":
        if not any(c.id == chip_id for c in self.chips):
            raise KeyError(chip_id)
        chips = []
        for chip in self.chips:
            if chip.id == chip_id:
                chip = chip.toggled()
            elif not self.is_multiselect and chip.enabled:
                chip = replace(chip, enabled=False)
            chips.append(chip)
        return replace(self, chips=tuple(chips))


@dataclass(frozen=True)
class ChatUiState:
    """Immutable snapshot of the conversation. Every change returns a new snapshot."""
    messages: tuple[ChatMessage, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "messages", tuple(self.messages))

    @property
    def last_message(self) -> Optional[ChatMessage]:
        return self.messages[-1] if self.messages else None

    def find(self, message_id: str) -> Optional[ChatMessage]:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def add_message(self, message: ChatMessage) -> "ChatUiState":
        return ChatUiState(self.messages + (message,))

    def replace_last_pending_message(self) -> "ChatUiState":
        """Clear the pending flag of the most recent pending message."""
        for i in range(len(self.messages) - 1, -1, -1):
            message = self.messages[i]
            if message.is_pending:
                updated = replace(message, is_pending=False)
                return ChatUiState(self.messages[:i] + (updated,) + self.messages[i + 1:])
        return self

    def replace_message(self, message_id: str, message: ChatMessage) -> "ChatUiState":
        for i, current in enumerate(self.messages):
            if current.id == message_id:
                return ChatUiState(self.messages[:i] + (message,) + self.messages[i + 1:])
        return self


StateObserver = Callable[[ChatUiState], None]


class ChatStateStore:
    """Single writer of ChatUiState snapshots.

    Observers see every snapshot in emission order. Callbacks run inline;
    queues from subscribe() get the current snapshot first, then each update.
    """

    def __init__(self, initial: Optional[ChatUiState] = None) -> None:
        self._state = initial or ChatUiState()
        self._version = 0
        self._observers: list[StateObserver] = []
        self._queues: list[asyncio.Queue] = []

    @property
    def value(self) -> ChatUiState:
        return self._state

    @property
    def version(self) -> int:
        return self._version

    # -- mutations ------------------------------------------------------------

    def add_message(self, message: ChatMessage) -> ChatUiState:
        logger.debug("Adding %s message %s", message.participant.value, message.id)
        return self._publish(self._state.add_message(message))

    def replace_last_pending_message(self) -> ChatUiState:
        return self._publish(self._state.replace_last_pending_message())

    def replace_message(self, message_id: str, message: ChatMessage) -> ChatUiState:
        return self._publish(self._state.replace_message(message_id, message))

    # -- observation ----------------------------------------------------------

    def add_observer(self, observer: StateObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: StateObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        queue.put_nowait(self._state)
        self._queues.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._queues:
            self._queues.remove(queue)

    def _publish(self, new_state: ChatUiState) -> ChatUiState:
        if new_state is self._state:
            return new_state
        self._state = new_state
        self._version += 1
        for observer in list(self._observers):
            try:
                observer(new_state)
            except Exception:
                logger.exception("State observer %s failed", observer)
        for queue in self._queues:
            queue.put_nowait(new_state)
        return new_state
