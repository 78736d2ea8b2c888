import sys
from pathlib import Path

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tripjournal.config import JournalConfig, LLMProvider  # noqa: E402
from app.chat.session import ChatSession  # noqa: E402
from app.chat.view_model import ChatViewModel  # noqa: E402
from app.trip.loader import TripLoader  # noqa: E402
from app.trip.models import Location, Trip, TripLeg  # noqa: E402
from app.trip.sources import DirectoryTripSource  # noqa: E402

TRIPS_DIR = project_root / "app" / "data" / "trips"


class FailingChatModel:
    """Stands in for a chat model whose API call always fails."""

    def __init__(self, error: Exception):
        self.error = error
        self.calls = 0

    async def ainvoke(self, messages):
        self.calls += 1
        raise self.error


def make_leg(name: str, nearby=(), **kwargs) -> TripLeg:
    return TripLeg(
        type=kwargs.pop("type", "stay"),
        location=Location(node_name=name),
        photos=kwargs.pop("photos", []),
        nearby_places=[Location(node_name=n) for n in nearby],
        **kwargs,
    )


def make_trip(*legs: TripLeg) -> Trip:
    return Trip(journey=list(legs))


def make_config(**overrides) -> JournalConfig:
    values = dict(
        llm_provider=LLMProvider.OPENAI,
        llm_model="gpt-4o-mini",
        openai_api_key="sk-test",
        trips_dir=TRIPS_DIR,
        mongo_uri=None,
        summarize_on_complete=False,
    )
    values.update(overrides)
    return JournalConfig(**values)


def make_view_model(llm=None, config=None, trips_dir=TRIPS_DIR) -> ChatViewModel:
    config = config or make_config()
    llm = llm or FakeListChatModel(responses=["Sounds like a great trip!"])
    session = ChatSession.seeded(llm, config.greeting)
    loader = TripLoader(DirectoryTripSource(trips_dir))
    return ChatViewModel(session, loader, config=config)


@pytest.fixture
def trips_dir() -> Path:
    return TRIPS_DIR
