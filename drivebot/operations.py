# operations.py
import logging
import uuid
from enum import Enum
from pathlib import Path
from typing import Callable, NamedTuple, Optional

from pydantic import BaseModel

from .exceptions import StorageError, SummaryError
from .resolver import PathResolver, split_file_path
from .storage.base import StorageClient
from .storage.dto import (
    GOOGLE_DOC_MIME_TYPE,
    PDF_MIME_TYPE,
    PLAIN_TEXT_MIME_TYPE,
    RemoteEntry,
)

MAX_SUMMARY_FILES = 5
MAX_CONTENT_CHARS = 10_000
SUMMARY_FALLBACK = "Unable to generate summary."
SUMMARY_MIME_TYPES = (PDF_MIME_TYPE, GOOGLE_DOC_MIME_TYPE, PLAIN_TEXT_MIME_TYPE)

Summarize = Callable[[str, str], str]


class AttachmentPayload(BaseModel):
    """Binary content received with a chat message."""

    data: bytes
    filename: str


class ContentStatus(Enum):
    EXTRACTED = "extracted"
    SKIPPED = "skipped"  # kind is accepted but has no text extraction
    FAILED = "failed"


class DocumentContent(NamedTuple):
    status: ContentStatus
    text: Optional[str] = None


def _format_size(size: Optional[int]) -> str:
    return f"{size / 1024:.2f} KB" if size is not None else "N/A"


def list_files(storage: StorageClient, folder_path: str) -> str:
    """Lists a folder's entries ordered by name."""
    try:
        folder_id = PathResolver(storage).resolve_folder(folder_path)
        if folder_id is None:
            return f'Folder "{folder_path}" not found.'

        entries = storage.list_children(folder_id, order_by="name")
        if not entries:
            return f'No files found in "{folder_path}".'

        lines = [f'📁 Files in "{folder_path}":', ""]
        for index, entry in enumerate(entries, start=1):
            lines.append(f"{index}. {entry.name}")
            lines.append(f"   Type: {entry.mime_type}")
            lines.append(f"   Size: {_format_size(entry.size)}")
            lines.append("")
        return "\n".join(lines)
    except StorageError as e:
        logging.error(f"Error listing files in '{folder_path}': {e}")
        return f"Error listing files: {e}"


def delete_file(storage: StorageClient, folder_path: str, file_name: str) -> str:
    try:
        file_id = PathResolver(storage).resolve_file(folder_path, file_name)
        if file_id is None:
            return f'File "{file_name}" not found in "{folder_path}".'

        storage.delete_file(file_id)
        return f'✅ Successfully deleted "{file_name}" from "{folder_path}".'
    except StorageError as e:
        logging.error(f"Error deleting '{file_name}' from '{folder_path}': {e}")
        return f"Error deleting file: {e}"


def move_file(storage: StorageClient, source_path: str, dest_folder: str) -> str:
    """
    Moves "<folder>/<file>" into another folder. The previous parents are
    replaced by the destination in a single update call.
    """
    resolver = PathResolver(storage)
    source_folder, file_name = split_file_path(source_path)
    try:
        file_id = resolver.resolve_file(source_folder, file_name)
        if file_id is None:
            return f"File not found: {source_path}"

        dest_folder_id = resolver.resolve_folder(dest_folder)
        if dest_folder_id is None:
            return f'Destination folder "{dest_folder}" not found.'

        previous_parents = storage.get_parents(file_id)
        storage.update_parents(file_id, dest_folder_id, previous_parents)
        return f'✅ Successfully moved "{file_name}" to "{dest_folder}".'
    except StorageError as e:
        logging.error(f"Error moving '{source_path}' to '{dest_folder}': {e}")
        return f"Error moving file: {e}"


def rename_file(storage: StorageClient, folder_path: str, old_name: str, new_name: str) -> str:
    try:
        file_id = PathResolver(storage).resolve_file(folder_path, old_name)
        if file_id is None:
            return f'File "{old_name}" not found in "{folder_path}".'

        storage.rename_file(file_id, new_name)
        return f'✅ Successfully renamed "{old_name}" to "{new_name}".'
    except StorageError as e:
        logging.error(f"Error renaming '{old_name}' in '{folder_path}': {e}")
        return f"Error renaming file: {e}"


def _cleanup_local_file(path: Path):
    """Removes a temporary local file."""
    try:
        path.unlink()
    except FileNotFoundError:
        logging.warning(f"Could not remove temporary file {path} as it was not found.")


def upload_file(
    storage: StorageClient,
    payload: AttachmentPayload,
    dest_folder: str,
    buffer_dir: Path,
) -> str:
    """
    Uploads an attachment into a folder. The bytes are staged in a uniquely
    named file under `buffer_dir` that is removed on every exit path.
    """
    filename = payload.filename
    try:
        folder_id = PathResolver(storage).resolve_folder(dest_folder)
        if folder_id is None:
            return f'Folder "{dest_folder}" not found.'
    except StorageError as e:
        logging.error(f"Error resolving upload folder '{dest_folder}': {e}")
        return f"Error uploading file: {e}"

    local_path = buffer_dir / f"upload_{uuid.uuid4().hex}_{Path(filename).name}"
    try:
        local_path.write_bytes(payload.data)
        created = storage.upload_file(local_path, folder_id, filename)
        return (
            f'✅ Successfully uploaded "{filename}" to "{dest_folder}".\n'
            f"Link: {created.web_view_link}"
        )
    except StorageError as e:
        logging.error(f"Error uploading '{filename}' to '{dest_folder}': {e}")
        return f"Error uploading file: {e}"
    finally:
        _cleanup_local_file(local_path)


def extract_content(storage: StorageClient, entry: RemoteEntry) -> DocumentContent:
    """
    Fetches a document's text. PDFs pass the summary filter but have no
    text extraction, so they come back as SKIPPED.
    """
    try:
        if entry.mime_type == GOOGLE_DOC_MIME_TYPE:
            return DocumentContent(ContentStatus.EXTRACTED, storage.export_text(entry.id))
        if entry.mime_type == PLAIN_TEXT_MIME_TYPE:
            return DocumentContent(ContentStatus.EXTRACTED, storage.download_text(entry.id))
    except StorageError as e:
        logging.error(f"Error getting content of '{entry.name}': {e}")
        return DocumentContent(ContentStatus.FAILED)
    logging.info(f"Skipping '{entry.name}': no text extraction for {entry.mime_type}.")
    return DocumentContent(ContentStatus.SKIPPED)


def _summarize_document(summarize: Summarize, text: str, file_name: str) -> str:
    try:
        return summarize(text[:MAX_CONTENT_CHARS], file_name)
    except SummaryError as e:
        logging.error(f"Error generating summary for '{file_name}': {e}")
        return SUMMARY_FALLBACK


def summarize_folder(storage: StorageClient, folder_path: str, summarize: Summarize) -> str:
    """
    Summarizes up to MAX_SUMMARY_FILES supported documents of a folder,
    in backend list order. Documents without text are left out.
    """
    try:
        folder_id = PathResolver(storage).resolve_folder(folder_path)
        if folder_id is None:
            return f'Folder "{folder_path}" not found.'

        entries = storage.list_children(folder_id, mime_types=SUMMARY_MIME_TYPES)
        if not entries:
            return f'No supported files found in "{folder_path}".'

        parts = [f'📝 Summaries for "{folder_path}":\n\n']
        for entry in entries[:MAX_SUMMARY_FILES]:
            content = extract_content(storage, entry)
            if content.status is not ContentStatus.EXTRACTED or not content.text:
                continue
            summary = _summarize_document(summarize, content.text, entry.name)
            parts.append(f"📄 {entry.name}\n{summary}\n\n")
        return "".join(parts)
    except StorageError as e:
        logging.error(f"Error summarizing folder '{folder_path}': {e}")
        return f"Error summarizing folder: {e}"
