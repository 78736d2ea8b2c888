import logging
from dataclasses import dataclass
from typing import Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

logger = logging.getLogger(__name__)


@dataclass
class ChatResponse:
    text: Optional[str] = None


def message_text(message: BaseMessage) -> Optional[str]:
    """Plain text of a langchain message, None when it carries no text."""
    content = message.content
    if isinstance(content, str):
        return content or None
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    text = "".join(parts)
    return text or None


class ChatSession:
    """Multi-turn conversation with a chat model.

    History starts with the seeded turns. A turn is only recorded once the
    model answered, so a failed call leaves the history untouched.
    """

    def __init__(self, llm, history: Optional[list[BaseMessage]] = None):
        self.llm = llm
        self._history: list[BaseMessage] = list(history or [])

    @classmethod
    def seeded(cls, llm, greeting: str) -> "ChatSession":
        return cls(llm, history=[AIMessage(content=greeting)])

    @property
    def history(self) -> list[BaseMessage]:
        return list(self._history)

    async def send_message(self, text: str) -> ChatResponse:
        prompt = HumanMessage(content=text)
        logger.info("Sending message to model: %s", text[:80])
        response = await self.llm.ainvoke(self._history + [prompt])
        self._history.extend([prompt, response])

        reply = message_text(response)
        logger.debug("Model response length=%d", len(reply or ""))
        return ChatResponse(text=reply)
