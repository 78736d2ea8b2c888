"""Chat model factory for the configured provider."""

import logging

from langchain_core.language_models.chat_models import BaseChatModel

from .config import JournalConfig, LLMProvider

logger = logging.getLogger(__name__)


def create_chat_model(config: JournalConfig) -> BaseChatModel:
    logger.info(
        "Creating chat model provider=%s model=%s",
        config.llm_provider.value, config.llm_model,
    )
    if config.llm_provider == LLMProvider.OPENAI:
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=config.llm_model,
            temperature=config.llm_temperature,
            api_key=config.openai_api_key,
        )
    elif config.llm_provider == LLMProvider.ANTHROPIC:
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(
            model=config.llm_model,
            temperature=config.llm_temperature,
            api_key=config.anthropic_api_key,
        )
    elif config.llm_provider == LLMProvider.GOOGLE:
        from langchain_google_genai import ChatGoogleGenerativeAI

        return ChatGoogleGenerativeAI(
            model=config.llm_model,
            temperature=config.llm_temperature,
            google_api_key=config.google_api_key,
        )
    else:
        raise ValueError(f"Unsupported LLM provider: {config.llm_provider}")
