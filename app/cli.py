import asyncio

from tripjournal.config import JournalConfig
from tripjournal.errors import JournalError
from tripjournal.log import setup_logging
from app.chat import ChatMessage, ChatUiState, ChatViewModel, Participant

BANNER = """
========================================
  Trip Journal
========================================
  Commands:
    <text>          — chat with the assistant
    /chip <n>       — pick trip chip n from the greeting
    /toggle <n>     — select/unselect place n of the current prompt
    /submit         — submit the selected places
    /state          — show the whole conversation
    quit / exit     — shut down
========================================
"""

LABELS = {
    Participant.USER: "You",
    Participant.MODEL: "Journal",
    Participant.ERROR: "Error",
}


def _render(message: ChatMessage) -> str:
    label = LABELS[message.participant]
    pending = " (sending...)" if message.is_pending else ""
    lines = [f"{label}{pending}: {message.text}"]
    for i, chip in enumerate(message.chips, 1):
        mark = "x" if chip.enabled else " "
        lines.append(f"    [{mark}] {i}. {chip.text}")
    return "\n".join(lines)


def _last_chip_message(state: ChatUiState) -> ChatMessage | None:
    for message in reversed(state.messages):
        if message.chips and message.is_multiselect:
            return message
    return None


class Printer:
    """Prints each message the first time it appears in a snapshot."""

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def __call__(self, state: ChatUiState) -> None:
        for message in state.messages:
            if message.id in self._seen or message.is_pending:
                continue
            self._seen.add(message.id)
            print(f"\n{_render(message)}")


async def _handle_command(view_model: ChatViewModel, user_input: str) -> None:
    command, _, arg = user_input.partition(" ")
    state = view_model.ui_state

    if command == "/state":
        for message in state.messages:
            print(_render(message))
        return

    if command == "/chip":
        greeting = state.messages[0]
        try:
            chip = greeting.chips[int(arg) - 1]
        except (ValueError, IndexError):
            print("  Usage: /chip <n>")
            return
        try:
            await view_model.handle_chip_selection(chip)
        except JournalError as exc:
            print(f"  {exc}")
        await view_model.settle()
        return

    prompt = _last_chip_message(state)
    if prompt is None:
        print("  No places to choose from yet.")
        return

    if command == "/toggle":
        try:
            chip = prompt.chips[int(arg) - 1]
        except (ValueError, IndexError):
            print("  Usage: /toggle <n>")
            return
        updated = view_model.toggle_chip(prompt, chip.id)
        print(_render(updated))
    elif command == "/submit":
        await view_model.handle_submit(prompt)
        await view_model.settle()
    else:
        print(f"  Unknown command '{command}'.")


async def main():
    config = JournalConfig()
    setup_logging(config.log_level, config.log_file)

    view_model = ChatViewModel.from_config(config)
    printer = Printer()
    view_model.add_observer(printer)
    await view_model.start()

    print(BANNER)
    printer(view_model.ui_state)

    loop = asyncio.get_event_loop()

    try:
        while True:
            try:
                user_input = await loop.run_in_executor(None, input, "\nYou: ")
                user_input = user_input.strip()
            except (EOFError, KeyboardInterrupt):
                print("\nGoodbye!")
                break

            if user_input.lower() in ("quit", "exit"):
                print("Goodbye!")
                break
            if not user_input:
                continue

            if user_input.startswith("/"):
                await _handle_command(view_model, user_input)
                continue

            await view_model.send_message(user_input)

    finally:
        await view_model.stop()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
