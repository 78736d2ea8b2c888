from app.chat.state import (
    ChatMessage,
    ChatStateStore,
    ChatUiState,
    ChipDetails,
    ChipType,
    Participant,
)
from app.chat.session import ChatResponse, ChatSession
from app.chat.walker import ItineraryWalker, WalkerState, build_nearby_message
from app.chat.view_model import ChatViewModel

__all__ = [
    "ChatMessage",
    "ChatStateStore",
    "ChatUiState",
    "ChipDetails",
    "ChipType",
    "Participant",
    "ChatResponse",
    "ChatSession",
    "ItineraryWalker",
    "WalkerState",
    "build_nearby_message",
    "ChatViewModel",
]
