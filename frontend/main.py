"""
NiceGUI frontend for the chat relay.
History lives in per-browser storage (last 20 turns) and the last 10 turns are
sent to the backend /chat endpoint with each message.
"""
from nicegui import app, ui

from chat_session import THINKING_TEXT, ChatSession, ChatTurn
from config import settings


def _render_turn(container: ui.column, turn: ChatTurn) -> ui.markdown | ui.label:
    """Append a chat bubble and return its text element."""
    with container:
        if turn.sender == "user":
            with ui.row().classes("w-full justify-end"):
                with ui.card().classes("max-w-[85%] sm:max-w-[80%] bg-primary text-white"):
                    return ui.label(turn.text).classes("whitespace-pre-wrap break-words")
        with ui.row().classes("w-full justify-start"):
            with ui.card().classes("max-w-[85%] sm:max-w-[80%] bg-gray-100"):
                return ui.markdown(turn.text).classes("break-words")


@ui.page("/")
def chat_page():
    session = ChatSession(app.storage.user, settings.chat_api, timeout=settings.chat_timeout)

    async def send_message():
        user_turn = session.begin(message_input.value or "")
        if user_turn is None:
            return
        message_input.value = ""
        message_input.set_enabled(False)
        send_button.set_enabled(False)

        _render_turn(chat_container, user_turn)
        with chat_container:
            thinking_row = ui.row().classes("w-full justify-start items-center gap-2")
            with thinking_row:
                ui.spinner("dots", size="sm")
                ui.label(THINKING_TEXT).classes("text-gray-500")
        scroll_area.scroll_to(percent=1.0)

        try:
            reply_turn = await session.finish()
        finally:
            chat_container.remove(thinking_row)
            message_input.set_enabled(True)
            send_button.set_enabled(True)
        _render_turn(chat_container, reply_turn)
        scroll_area.scroll_to(percent=1.0)

    def clear_chat():
        session.clear()
        chat_container.clear()

    with ui.header().classes("items-center justify-between shadow"):
        ui.label("Chat").classes("text-lg font-medium")
        ui.button("Clear", on_click=clear_chat).props("flat color=white no-caps")

    page_height = "calc(100vh - 4rem)"
    with ui.column().classes("w-full max-w-3xl mx-auto").style(
        f"height: {page_height}; min-height: 0; display: flex; flex-direction: column;"
    ):
        scroll_area = ui.scroll_area().classes("w-full").style("flex: 1 1 0; min-height: 0;")
        with scroll_area:
            chat_container = ui.column().classes("w-full gap-3 pt-4 px-3 sm:px-4")
        with ui.row().classes("w-full items-center gap-2 px-3 sm:px-4 pb-4").style("flex-shrink: 0;"):
            message_input = (
                ui.input(placeholder="Type a message...")
                .classes("flex-1 min-w-0")
                .props("outlined rounded dense")
                .on("keydown.enter", send_message)
            )
            send_button = ui.button("Send", on_click=send_message).props("rounded flat")

    # Restore the previous conversation
    for turn in session.turns:
        _render_turn(chat_container, turn)


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title="Chat",
        port=settings.ui_port,
        storage_secret=settings.storage_secret,
        reload=False,
    )
