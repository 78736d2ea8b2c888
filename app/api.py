"""
Trip Journal — FastAPI + WebSocket API
======================================
Exposes the chat view-model to a web or mobile frontend.

Run:
    uvicorn app.api:app --host 0.0.0.0 --port 8000 --reload
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from tripjournal.config import JournalConfig
from tripjournal.errors import UnknownTripError
from tripjournal.log import setup_logging
from app.chat.state import ChatMessage, ChatUiState, ChipDetails, ChipType
from app.chat.view_model import ChatViewModel

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pydantic request / response models
# ---------------------------------------------------------------------------

class MessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)


class ChipRequest(BaseModel):
    text: str = Field(..., min_length=1)
    type: ChipType = ChipType.TRIP


class SubmitRequest(BaseModel):
    # Chip ids to mark selected before submitting; None keeps current flags
    selected: Optional[list[str]] = None


class ChipModel(BaseModel):
    id: str
    type: ChipType
    text: str
    enabled: bool

    @classmethod
    def from_chip(cls, chip: ChipDetails) -> "ChipModel":
        return cls(id=chip.id, type=chip.type, text=chip.text, enabled=chip.enabled)


class MessageModel(BaseModel):
    id: str
    text: str
    participant: str
    is_pending: bool
    is_multiselect: bool
    chips: list[ChipModel] = []

    @classmethod
    def from_message(cls, message: ChatMessage) -> "MessageModel":
        return cls(
            id=message.id,
            text=message.text,
            participant=message.participant.value,
            is_pending=message.is_pending,
            is_multiselect=message.is_multiselect,
            chips=[ChipModel.from_chip(c) for c in message.chips],
        )


class StateResponse(BaseModel):
    messages: list[MessageModel]
    walker_state: str
    walker_cursor: int


def _state_response(view_model: ChatViewModel, state: Optional[ChatUiState] = None) -> StateResponse:
    state = state or view_model.ui_state
    return StateResponse(
        messages=[MessageModel.from_message(m) for m in state.messages],
        walker_state=view_model.walker.state.name.lower(),
        walker_cursor=view_model.walker.cursor,
    )


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def _default_view_model() -> ChatViewModel:
    return ChatViewModel.from_config(JournalConfig())


def create_app(
    view_model_factory: Callable[[], ChatViewModel] = _default_view_model,
    configure_logging: bool = False,
) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if configure_logging:
            config = JournalConfig()
            setup_logging(config.log_level, config.log_file)

        view_model = view_model_factory()
        await view_model.start()
        app.state.view_model = view_model
        logger.info("Trip journal API started")

        yield

        await view_model.stop()
        logger.info("Trip journal API shut down")

    app = FastAPI(title="Trip Journal API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _message_or_404(view_model: ChatViewModel, message_id: str) -> ChatMessage:
        message = view_model.find_message(message_id)
        if message is None:
            raise HTTPException(status_code=404, detail=f"Unknown message: {message_id}")
        return message

    # -----------------------------------------------------------------------
    # Endpoints
    # -----------------------------------------------------------------------

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    @app.get("/api/state", response_model=StateResponse)
    async def get_state():
        return _state_response(app.state.view_model)

    @app.post("/api/messages", response_model=StateResponse)
    async def send_message(req: MessageRequest):
        """Send free text to the model; failures come back as ERROR messages."""
        view_model: ChatViewModel = app.state.view_model
        await view_model.send_message(req.message)
        return _state_response(view_model)

    @app.post("/api/chips", response_model=StateResponse)
    async def select_chip(req: ChipRequest):
        view_model: ChatViewModel = app.state.view_model
        chip = ChipDetails(id=req.text.lower(), type=req.type, text=req.text)
        try:
            await view_model.handle_chip_selection(chip)
        except UnknownTripError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        await view_model.settle()
        return _state_response(view_model)

    @app.post("/api/messages/{message_id}/chips/{chip_id}/toggle", response_model=StateResponse)
    async def toggle_chip(message_id: str, chip_id: str):
        view_model: ChatViewModel = app.state.view_model
        message = _message_or_404(view_model, message_id)
        try:
            view_model.toggle_chip(message, chip_id)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown chip: {chip_id}")
        return _state_response(view_model)

    @app.post("/api/messages/{message_id}/submit", response_model=StateResponse)
    async def submit(message_id: str, req: Optional[SubmitRequest] = None):
        view_model: ChatViewModel = app.state.view_model
        message = _message_or_404(view_model, message_id)
        selected = req.selected if req is not None else None
        await view_model.handle_submit(message, selected=selected)
        await view_model.settle()
        return _state_response(view_model)

    @app.websocket("/api/ws")
    async def websocket_endpoint(ws: WebSocket):
        """Pushes every state snapshot to the client."""
        view_model: ChatViewModel = app.state.view_model
        await ws.accept()
        queue = view_model.subscribe()

        async def _push() -> None:
            while True:
                state = await queue.get()
                await ws.send_text(_state_response(view_model, state).model_dump_json())

        push_task = asyncio.create_task(_push())
        logger.info("WebSocket client connected")
        try:
            while True:
                await ws.receive_text()
        except WebSocketDisconnect:
            logger.info("WebSocket client disconnected")
        finally:
            push_task.cancel()
            view_model.unsubscribe(queue)

    return app


app = create_app(configure_logging=True)
