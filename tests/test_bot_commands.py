import logging
from unittest.mock import AsyncMock, MagicMock, call

import pytest
from telegram import Update
from telegram.ext import ExtBot, MessageHandler

from courtside.bot.commands import (
    BOT_COMMANDS,
    HELP_TEXT,
    WELCOME_TEXT,
    help_command,
    log_error,
    start_command,
)
from courtside.bot.responder import build_application

TOKEN = "123456:TEST-TOKEN"


def _update(chat_id: int = 42):
    update = MagicMock()
    update.effective_chat.id = chat_id
    return update


def _context():
    context = MagicMock()
    context.bot.send_message = AsyncMock()
    return context


def _message_update(text: str, chat_id: int = 42) -> dict:
    return {
        "update_id": 1,
        "message": {
            "message_id": 1,
            "date": 1700000000,
            "chat": {"id": chat_id, "type": "private"},
            "text": text,
        },
    }


@pytest.fixture
def sent(monkeypatch):
    """Fängt ausgehende Nachrichten ab; kein Netzwerk, kein getMe."""
    send_message = AsyncMock()
    monkeypatch.setattr(ExtBot, "send_message", send_message)
    monkeypatch.setattr(ExtBot, "initialize", AsyncMock())
    monkeypatch.setattr(ExtBot, "shutdown", AsyncMock())
    return send_message


async def _dispatch(text: str) -> None:
    application = build_application(TOKEN, with_updater=False)
    await application.initialize()
    try:
        await application.process_update(Update.de_json(_message_update(text), application.bot))
    finally:
        await application.shutdown()


@pytest.mark.asyncio
async def test_start_yields_exactly_one_welcome_message(sent):
    await _dispatch("/start")
    sent.assert_awaited_once_with(chat_id=42, text=WELCOME_TEXT)


@pytest.mark.asyncio
async def test_help_yields_exactly_one_help_message(sent):
    await _dispatch("/help")
    sent.assert_awaited_once_with(chat_id=42, text=HELP_TEXT)


@pytest.mark.asyncio
async def test_command_anywhere_in_text_is_recognised(sent):
    await _dispatch("hi /start please")
    sent.assert_awaited_once_with(chat_id=42, text=WELCOME_TEXT)


@pytest.mark.asyncio
async def test_both_commands_in_one_message_get_both_replies(sent):
    await _dispatch("/start or /help?")
    assert sent.await_args_list == [
        call(chat_id=42, text=WELCOME_TEXT),
        call(chat_id=42, text=HELP_TEXT),
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["/booking", "/mybookings", "/cancel", "hello", "/Start"])
async def test_other_input_yields_no_message(sent, text):
    await _dispatch(text)
    sent.assert_not_awaited()


@pytest.mark.asyncio
async def test_start_handler_sends_to_originating_chat():
    context = _context()
    await start_command(_update(7), context)
    context.bot.send_message.assert_awaited_once_with(chat_id=7, text=WELCOME_TEXT)


@pytest.mark.asyncio
async def test_help_handler_sends_to_originating_chat():
    context = _context()
    await help_command(_update(7), context)
    context.bot.send_message.assert_awaited_once_with(chat_id=7, text=HELP_TEXT)


def test_help_lists_five_commands():
    listed = [line.split(" ")[0] for line in HELP_TEXT.splitlines() if line.startswith("/")]
    assert listed == ["/start", "/help", "/booking", "/mybookings", "/cancel"]


def test_application_registers_two_message_handlers():
    application = build_application(TOKEN, with_updater=False)

    assert sorted(application.handlers) == [0, 1]
    handlers = [handler for group in application.handlers.values() for handler in group]
    assert len(handlers) == 2
    assert all(isinstance(handler, MessageHandler) for handler in handlers)
    assert [handler.callback for handler in handlers] == [start_command, help_command]
    assert log_error in application.error_handlers
    assert application.updater is None


def test_application_with_updater_for_polling():
    application = build_application(TOKEN)
    assert application.updater is not None


def test_menu_only_contains_answered_commands():
    assert [command.command for command in BOT_COMMANDS] == ["start", "help"]


@pytest.mark.asyncio
async def test_send_failures_are_logged(caplog):
    context = MagicMock()
    context.error = RuntimeError("Forbidden: bot was blocked by the user")

    with caplog.at_level(logging.ERROR):
        await log_error("update-1", context)

    assert "bot was blocked by the user" in caplog.text
