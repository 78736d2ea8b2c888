"""
Trip Journal
============
Conversational trip-journal assistant: chat state, itinerary walking and
the event plumbing between them.

Components:
    - JournalConfig: environment-driven configuration
    - EventBus / Event types: ordered pub/sub between components
    - BaseAgent: lifecycle for long-lived event consumers
    - create_chat_model: langchain chat model for the configured provider
"""

from .config import JournalConfig, LLMProvider
from .errors import ConfigError, JournalError, TripSourceError, UnknownTripError
from .events import (
    Event,
    EventBus,
    EventType,
    LegSkippedEvent,
    SelectionSubmittedEvent,
    TripLoadedEvent,
    WalkCompletedEvent,
)
from .agent import AgentConfig, BaseAgent
from .llm import create_chat_model

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "JournalConfig",
    "LLMProvider",

    # Errors
    "JournalError",
    "ConfigError",
    "TripSourceError",
    "UnknownTripError",

    # Event system
    "EventBus",
    "Event",
    "EventType",
    "TripLoadedEvent",
    "SelectionSubmittedEvent",
    "LegSkippedEvent",
    "WalkCompletedEvent",

    # Agent framework
    "BaseAgent",
    "AgentConfig",

    # Models
    "create_chat_model",
]
