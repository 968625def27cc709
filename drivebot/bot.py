# bot.py
import asyncio
import logging
from typing import List, Optional

from telegram import Message, Update
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from .commands import HELP_TEXT, CommandDispatcher, CommandType, parse_command
from .exceptions import CommandParseError
from .operations import AttachmentPayload

TELEGRAM_MAX_MESSAGE_LENGTH = 4096
GENERIC_FAILURE = "❌ An error occurred while processing your request."


def split_message(text: str, limit: int = TELEGRAM_MAX_MESSAGE_LENGTH) -> List[str]:
    """Splits a reply into Telegram-sized chunks, preferring line breaks."""
    chunks = []
    while len(text) > limit:
        cut = text.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(text[:cut])
        text = text[cut:].lstrip("\n")
    if text.strip():
        chunks.append(text)
    return chunks


async def _reply(message: Message, text: str):
    for chunk in split_message(text):
        await message.reply_text(chunk)


async def download_attachment(message: Message, bot) -> Optional[AttachmentPayload]:
    """Downloads the document or photo sent with a message, if any."""
    if message.document:
        file_id = message.document.file_id
        filename = message.document.file_name or "document"
    elif message.photo:
        photo = message.photo[-1]  # largest size
        file_id = photo.file_id
        filename = f"photo_{photo.file_unique_id}.jpg"
    else:
        return None

    logging.info(f"Downloading attachment '{filename}' from Telegram...")
    tg_file = await bot.get_file(file_id)
    data = await tg_file.download_as_bytearray()
    return AttachmentPayload(data=bytes(data), filename=filename)


async def on_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Receives a chat message, runs the command in a worker thread and replies."""
    message = update.effective_message
    if message is None:
        return
    text = message.text or message.caption or ""
    dispatcher: CommandDispatcher = context.bot_data["dispatcher"]

    try:
        try:
            command = parse_command(text)
        except CommandParseError as e:
            await _reply(message, e.usage)
            return
        if command is None:
            return

        notice = dispatcher.pending_notice(command)
        if notice:
            await _reply(message, notice)

        attachment = None
        if command.type is CommandType.UPLOAD and dispatcher.storage is not None:
            attachment = await download_attachment(message, context.bot)

        reply = await asyncio.to_thread(dispatcher.execute, command, attachment)
        await _reply(message, reply)
    except Exception as e:
        logging.error(f"Error handling message '{text}': {e}", exc_info=True)
        await message.reply_text(GENERIC_FAILURE)


async def on_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.effective_message:
        await update.effective_message.reply_text(HELP_TEXT)


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logging.error(f"Telegram update failed: {context.error}", exc_info=context.error)


def build_application(token: str, dispatcher: CommandDispatcher) -> Application:
    """Builds the Telegram application with all handlers registered."""
    app = Application.builder().token(token.strip()).build()
    app.bot_data["dispatcher"] = dispatcher
    app.add_handler(CommandHandler(["start", "help"], on_help))
    app.add_handler(MessageHandler((filters.TEXT | filters.CAPTION) & ~filters.COMMAND, on_message))
    app.add_error_handler(on_error)
    return app
