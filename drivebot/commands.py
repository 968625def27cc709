# commands.py
import logging
import shlex
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel

from . import operations
from .exceptions import CommandParseError
from .operations import AttachmentPayload, Summarize
from .resolver import split_file_path
from .storage.base import StorageClient

DELETE_USAGE = "Invalid DELETE command. Use: DELETE /Folder/file.pdf"
MOVE_USAGE = 'Invalid MOVE command. Use: MOVE /Folder/file.pdf /Archive (wrap names with spaces in double quotes: "/My Folder/My file.pdf")'
RENAME_USAGE = 'Invalid RENAME command. Use: RENAME /Folder oldfile.pdf newfile.pdf (wrap names with spaces in double quotes: "My file.pdf")'
UPLOAD_USAGE = "Invalid UPLOAD command. Send file with message: UPLOAD filename.pdf to /Folder"
ATTACHMENT_REQUIRED = "Please attach a file with the UPLOAD command."
STORAGE_UNAVAILABLE = "⚠️ Google Drive is not connected. Check the server logs."
SUMMARY_PENDING = "⏳ Generating summaries... This may take a moment."

HELP_TEXT = """🤖 Google Drive Assistant

Available commands:

📋 LIST /FolderName
   Lists all files in the specified folder

🗑️ DELETE /Folder/file.pdf
   Deletes the specified file

📦 MOVE /Folder/file.pdf /Archive
   Moves file to another folder

✏️ RENAME /Folder oldfile.pdf newfile.pdf
   Renames a file

📤 UPLOAD filename.pdf to /Folder
   Upload attached file (send with file attachment)

📝 SUMMARY /FolderName
   Generates AI summaries of documents in folder

❓ HELP
   Shows this help message

Wrap names that contain spaces in double quotes:
   RENAME /Reports "old name.txt" "new name.txt"
"""


class CommandType(Enum):
    LIST = "LIST"
    DELETE = "DELETE"
    MOVE = "MOVE"
    RENAME = "RENAME"
    SUMMARY = "SUMMARY"
    UPLOAD = "UPLOAD"
    HELP = "HELP"


class Command(BaseModel):
    type: CommandType
    args: Tuple[str, ...] = ()


def _tokenize(text: str) -> List[str]:
    """
    Splits on whitespace. Only double quotes group words, so apostrophes
    in names ("John's notes.txt") stay literal.
    """
    lexer = shlex.shlex(text, posix=True)
    lexer.whitespace_split = True
    lexer.quotes = '"'
    lexer.commenters = ""
    return list(lexer)


def _split_arguments(text: str, count: int, usage: str) -> List[str]:
    """Tokenizes the arguments and requires exactly `count` of them."""
    try:
        tokens = _tokenize(text)
    except ValueError as e:
        logging.info(f"Could not tokenize arguments '{text}': {e}")
        raise CommandParseError(usage) from e
    if len(tokens) != count:
        raise CommandParseError(usage)
    return tokens


def parse_command(text: str) -> Optional[Command]:
    """
    Classifies a chat message by its command prefix.
    Returns None for messages that are not commands.

    :raises CommandParseError: If a command's arguments are malformed.
    """
    text = text.strip()

    if text.startswith("LIST "):
        return Command(type=CommandType.LIST, args=(text[len("LIST "):].strip(),))

    if text.startswith("DELETE "):
        folder_path, file_name = split_file_path(text[len("DELETE "):].strip())
        if not file_name:
            raise CommandParseError(DELETE_USAGE)
        return Command(type=CommandType.DELETE, args=(folder_path, file_name))

    if text.startswith("MOVE "):
        source, dest = _split_arguments(text[len("MOVE "):], 2, MOVE_USAGE)
        return Command(type=CommandType.MOVE, args=(source, dest))

    if text.startswith("RENAME "):
        folder_path, old_name, new_name = _split_arguments(text[len("RENAME "):], 3, RENAME_USAGE)
        return Command(type=CommandType.RENAME, args=(folder_path, old_name, new_name))

    if text.startswith("SUMMARY "):
        return Command(type=CommandType.SUMMARY, args=(text[len("SUMMARY "):].strip(),))

    if text.startswith("UPLOAD "):
        parts = text[len("UPLOAD "):].split(" to ")
        if len(parts) != 2:
            raise CommandParseError(UPLOAD_USAGE)
        file_name, dest = (part.strip() for part in parts)
        return Command(type=CommandType.UPLOAD, args=(file_name, dest))

    if text.lower() == "help":
        return Command(type=CommandType.HELP)

    return None


class CommandDispatcher:
    """
    Runs parsed commands against remote storage and formats the replies.
    Holds no per-message state; the storage client is shared read-only.
    """

    def __init__(
        self,
        storage: Optional[StorageClient],
        summarize: Summarize,
        buffer_dir: Path,
    ):
        self.storage = storage
        self.summarize = summarize
        self.buffer_dir = buffer_dir

    def pending_notice(self, command: Command) -> Optional[str]:
        """A reply to send before a slow command starts."""
        if command.type is CommandType.SUMMARY and self.storage is not None:
            return SUMMARY_PENDING
        return None

    def execute(self, command: Command, attachment: Optional[AttachmentPayload] = None) -> str:
        if command.type is CommandType.HELP:
            return HELP_TEXT
        if self.storage is None:
            return STORAGE_UNAVAILABLE

        logging.info(f"Executing {command.type.value} with arguments {command.args}")
        if command.type is CommandType.LIST:
            return operations.list_files(self.storage, *command.args)
        if command.type is CommandType.DELETE:
            return operations.delete_file(self.storage, *command.args)
        if command.type is CommandType.MOVE:
            return operations.move_file(self.storage, *command.args)
        if command.type is CommandType.RENAME:
            return operations.rename_file(self.storage, *command.args)
        if command.type is CommandType.SUMMARY:
            return operations.summarize_folder(self.storage, command.args[0], self.summarize)
        if command.type is CommandType.UPLOAD:
            if attachment is None:
                return ATTACHMENT_REQUIRED
            requested_name, dest = command.args
            payload = AttachmentPayload(
                data=attachment.data, filename=requested_name or attachment.filename
            )
            return operations.upload_file(self.storage, payload, dest, self.buffer_dir)
        raise ValueError(f"Unsupported command type: {command.type}")
