"""
Trip Journal Configuration
==========================
Central configuration for the trip journal assistant.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional
from enum import Enum
from pathlib import Path
import os
from dotenv import load_dotenv

from .errors import ConfigError

load_dotenv()

DEFAULT_TRIPS_DIR = Path(__file__).resolve().parent.parent / "app" / "data" / "trips"


class LLMProvider(Enum):
    """Supported LLM providers"""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class JournalConfig:
    """Main trip journal configuration"""

    # LLM Settings
    llm_provider: LLMProvider = field(
        default_factory=lambda: LLMProvider(os.getenv("LLM_PROVIDER", "openai").lower())
    )
    llm_model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o"))
    llm_temperature: float = 0.7

    # API Keys (from environment)
    openai_api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("OPENAI_API_KEY")
    )
    anthropic_api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY")
    )
    google_api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("GOOGLE_API_KEY")
    )

    # Conversation
    greeting: str = "I found these trips in last 6 months. Choose one to create a blog."
    summarize_on_complete: bool = field(
        default_factory=lambda: _env_flag("SUMMARIZE_ON_COMPLETE")
    )

    # Trip data: chip text -> resource id
    trip_resources: Dict[str, str] = field(default_factory=lambda: {"Leh": "leh"})
    trips_dir: Path = field(
        default_factory=lambda: Path(os.getenv("TRIPS_DIR", str(DEFAULT_TRIPS_DIR)))
    )
    mongo_uri: Optional[str] = field(default_factory=lambda: os.getenv("MONGO_URI"))
    mongo_db: str = "trip_journal_db"
    mongo_collection: str = "trips"

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    log_file: str = field(default_factory=lambda: os.getenv("LOG_FILE", "tripjournal.log"))

    def api_key(self) -> Optional[str]:
        return {
            LLMProvider.OPENAI: self.openai_api_key,
            LLMProvider.ANTHROPIC: self.anthropic_api_key,
            LLMProvider.GOOGLE: self.google_api_key,
        }.get(self.llm_provider)

    def validate(self) -> bool:
        """Validate configuration"""
        if not self.api_key():
            raise ConfigError(
                f"{self.llm_provider.value} API key required but not set"
            )
        return True
