"""Chat view-model: sending messages, chip selection and submission."""

import asyncio
import json

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from conftest import FailingChatModel, make_config, make_view_model

from tripjournal.errors import UnknownTripError
from tripjournal.events import EventType
from app.chat.state import ChipDetails, ChipType, Participant
from app.chat.walker import WalkerState


def _summary(state):
    return [(m.participant, m.text, m.is_pending) for m in state.messages]


def test_initial_state_is_greeting_with_trip_chips():
    view_model = make_view_model()

    messages = view_model.ui_state.messages
    assert len(messages) == 1
    greeting = messages[0]
    assert greeting.participant == Participant.MODEL
    assert greeting.text == "I found these trips in last 6 months. Choose one to create a blog."
    assert [(c.text, c.type) for c in greeting.chips] == [
        ("Vietnam", ChipType.TRIP),
        ("Leh", ChipType.SCENIC),
        ("Pondicherry", ChipType.TRIP),
    ]


def test_send_message_success():
    async def scenario():
        view_model = make_view_model(FakeListChatModel(responses=["Tell me more!"]))
        await view_model.send_message("I went hiking")
        return view_model

    view_model = asyncio.run(scenario())

    assert _summary(view_model.ui_state)[1:] == [
        (Participant.USER, "I went hiking", False),
        (Participant.MODEL, "Tell me more!", False),
    ]
    assert len(view_model.session.history) == 3


def test_pending_message_is_added_before_the_model_answers():
    seen = []

    class RecordingModel:
        async def ainvoke(self, messages):
            seen.append(_summary(view_model.ui_state)[-1])
            return await FakeListChatModel(responses=["ok"]).ainvoke(messages)

    view_model = make_view_model(RecordingModel())
    asyncio.run(view_model.send_message("hello"))

    assert seen == [(Participant.USER, "hello", True)]


def test_empty_response_adds_no_model_message():
    view_model = make_view_model(FakeListChatModel(responses=[""]))
    asyncio.run(view_model.send_message("hello"))

    assert _summary(view_model.ui_state)[1:] == [(Participant.USER, "hello", False)]


def test_leh_message_success_order():
    view_model = make_view_model(FakeListChatModel(responses=["Leh is lovely."]))
    asyncio.run(view_model.send_message("Leh"))

    assert _summary(view_model.ui_state)[1:] == [
        (Participant.USER, "Leh", False),
        (Participant.MODEL, "Fetching your Leh trip data...", False),
        (Participant.MODEL, "Leh is lovely.", False),
    ]


def test_leh_message_failure_order():
    llm = FailingChatModel(RuntimeError("quota exceeded"))
    view_model = make_view_model(llm)
    asyncio.run(view_model.send_message("Leh"))

    assert _summary(view_model.ui_state)[1:] == [
        (Participant.USER, "Leh", False),
        (Participant.MODEL, "Fetching your Leh trip data...", False),
        (Participant.ERROR, "quota exceeded", False),
    ]
    assert llm.calls == 1
    # failed turns are not recorded in the session history
    assert len(view_model.session.history) == 1


def test_error_without_description_uses_exception_name():
    view_model = make_view_model(FailingChatModel(TimeoutError()))
    asyncio.run(view_model.send_message("hello"))

    assert view_model.ui_state.last_message.participant == Participant.ERROR
    assert view_model.ui_state.last_message.text == "TimeoutError"


def test_selecting_leh_loads_trip_and_prompts_first_leg_with_places():
    async def scenario():
        view_model = make_view_model()
        await view_model.start()
        await view_model.handle_chip_selection(ChipDetails("leh", ChipType.TRIP, "Leh"))
        await view_model.settle()
        await view_model.stop()
        return view_model

    view_model = asyncio.run(scenario())

    # first leg (the airport) has no nearby places, so the walk starts on leg 1
    assert view_model.walker.state == WalkerState.WALKING
    assert view_model.walker.cursor == 1
    prompt = view_model.ui_state.last_message
    assert prompt.participant == Participant.MODEL
    assert prompt.is_multiselect
    assert [c.text for c in prompt.chips] == ["Leh Palace", "Shanti Stupa", "Namgyal Tsemo Gompa"]
    loaded = view_model.event_bus.get_events_by_type(EventType.TRIP_LOADED)
    assert loaded[0].trip_name == "Leh"
    assert len(loaded[0].trip.journey) == 5


@pytest.mark.parametrize("chip_type", list(ChipType))
def test_every_chip_category_routes_to_trip_loading(tmp_path, chip_type):
    doc = {"journey": [{
        "type": "stay",
        "location": {"nodeName": "Leh"},
        "photos": [],
        "nearbyPlaces": [{"nodeName": "Leh Palace"}],
    }]}
    (tmp_path / "leh.json").write_text(json.dumps(doc), encoding="utf-8")

    async def scenario():
        view_model = make_view_model(trips_dir=tmp_path)
        await view_model.start()
        await view_model.handle_chip_selection(ChipDetails("leh", chip_type, "Leh"))
        await view_model.settle()
        await view_model.stop()
        return view_model

    view_model = asyncio.run(scenario())

    assert view_model.walker.cursor == 0
    assert view_model.ui_state.last_message.chips[0].id == "id_Leh_0"


def test_unknown_chip_raises_without_chat_message():
    async def scenario():
        view_model = make_view_model()
        await view_model.start()
        try:
            with pytest.raises(UnknownTripError) as excinfo:
                await view_model.handle_chip_selection(ChipDetails("atlantis", ChipType.TRIP, "Atlantis"))
        finally:
            await view_model.stop()
        return view_model, excinfo.value

    view_model, error = asyncio.run(scenario())

    assert error.text == "Atlantis"
    assert len(view_model.ui_state.messages) == 1
    assert view_model.event_bus.event_log == []


def test_unloadable_trip_adds_no_message(tmp_path):
    async def scenario():
        view_model = make_view_model(trips_dir=tmp_path)
        await view_model.start()
        await view_model.handle_chip_selection(ChipDetails("leh", ChipType.SCENIC, "Leh"))
        await view_model.settle()
        await view_model.stop()
        return view_model

    view_model = asyncio.run(scenario())

    assert view_model.walker.state == WalkerState.IDLE
    assert len(view_model.ui_state.messages) == 1


def test_submit_keeps_selected_chips_and_advances():
    async def scenario():
        view_model = make_view_model()
        await view_model.start()
        await view_model.handle_chip_selection(ChipDetails("leh", ChipType.TRIP, "Leh"))
        await view_model.settle()

        prompt = view_model.ui_state.last_message
        prompt = view_model.toggle_chip(prompt, prompt.chips[0].id)
        submitted = await view_model.handle_submit(prompt)
        await view_model.settle()
        await view_model.stop()
        return view_model, prompt, submitted

    view_model, prompt, submitted = asyncio.run(scenario())

    assert [c.text for c in submitted.chips] == ["Leh Palace"]
    stored = view_model.find_message(prompt.id)
    assert [c.text for c in stored.chips] == ["Leh Palace"]
    # leg 2 has no nearby places; the walk moves on to leg 3
    assert view_model.walker.cursor == 3
    assert [c.text for c in view_model.ui_state.last_message.chips] == [
        "Hunder Sand Dunes", "Diskit Monastery",
    ]
    assert view_model.walker.visited == {1: ["Leh Palace"]}


def test_submit_reads_toggles_from_stored_message():
    async def scenario():
        view_model = make_view_model()
        await view_model.start()
        await view_model.handle_chip_selection(ChipDetails("leh", ChipType.TRIP, "Leh"))
        await view_model.settle()

        prompt = view_model.ui_state.last_message
        view_model.toggle_chip(prompt, prompt.chips[1].id)
        # submit the copy captured before toggling
        submitted = await view_model.handle_submit(prompt)
        await view_model.settle()
        await view_model.stop()
        return view_model, prompt, submitted

    view_model, prompt, submitted = asyncio.run(scenario())

    assert [c.text for c in submitted.chips] == ["Shanti Stupa"]
    assert [c.text for c in view_model.find_message(prompt.id).chips] == ["Shanti Stupa"]
    assert view_model.walker.visited == {1: ["Shanti Stupa"]}


def test_submit_with_explicit_selection_overrides_toggles():
    async def scenario():
        view_model = make_view_model()
        await view_model.start()
        await view_model.handle_chip_selection(ChipDetails("leh", ChipType.TRIP, "Leh"))
        await view_model.settle()

        prompt = view_model.ui_state.last_message
        view_model.toggle_chip(prompt, prompt.chips[0].id)
        submitted = await view_model.handle_submit(prompt, selected=[prompt.chips[2].id])
        await view_model.settle()
        await view_model.stop()
        return submitted

    submitted = asyncio.run(scenario())

    assert [c.text for c in submitted.chips] == ["Namgyal Tsemo Gompa"]


def test_summary_sent_when_walk_completes():
    config = make_config(summarize_on_complete=True)
    llm = FakeListChatModel(responses=["What a trip to Ladakh!"])

    async def scenario():
        view_model = make_view_model(llm, config=config)
        await view_model.start()
        await view_model.handle_chip_selection(ChipDetails("leh", ChipType.TRIP, "Leh"))
        await view_model.settle()
        for _ in range(3):
            prompt = view_model.ui_state.last_message
            prompt = view_model.toggle_chip(prompt, prompt.chips[0].id)
            await view_model.handle_submit(prompt)
            await view_model.settle()
        await view_model.stop()
        return view_model

    view_model = asyncio.run(scenario())

    assert view_model.walker.state == WalkerState.IDLE
    messages = view_model.ui_state.messages
    reply = messages[-1]
    assert reply.participant == Participant.MODEL
    assert reply.text == "What a trip to Ladakh!"
    # the summary prompt goes to the model only, never into the chat
    assert not any(m.participant == Participant.USER for m in messages)
    summary_prompt = view_model.session.history[-2].content
    assert "Leh Palace" in summary_prompt
    assert "Hunder Sand Dunes" in summary_prompt
    assert "Spangmik" in summary_prompt


def test_failed_summary_adds_only_an_error_message():
    config = make_config(summarize_on_complete=True)

    async def scenario():
        view_model = make_view_model(FailingChatModel(RuntimeError("model offline")), config=config)
        await view_model.start()
        await view_model.handle_chip_selection(ChipDetails("leh", ChipType.TRIP, "Leh"))
        await view_model.settle()
        for _ in range(3):
            await view_model.handle_submit(view_model.ui_state.last_message)
            await view_model.settle()
        await view_model.stop()
        return view_model

    view_model = asyncio.run(scenario())

    assert _summary(view_model.ui_state)[-1] == (Participant.ERROR, "model offline", False)
    assert not any(m.participant == Participant.USER for m in view_model.ui_state.messages)
    assert not any(m.is_pending for m in view_model.ui_state.messages)


def test_walk_completion_is_silent_by_default():
    async def scenario():
        view_model = make_view_model()
        await view_model.start()
        await view_model.handle_chip_selection(ChipDetails("leh", ChipType.TRIP, "Leh"))
        await view_model.settle()
        for _ in range(3):
            await view_model.handle_submit(view_model.ui_state.last_message)
            await view_model.settle()
        await view_model.stop()
        return view_model

    view_model = asyncio.run(scenario())

    assert view_model.walker.state == WalkerState.IDLE
    assert len(view_model.event_bus.get_events_by_type(EventType.WALK_COMPLETED)) == 1
    assert all(m.participant == Participant.MODEL for m in view_model.ui_state.messages)
