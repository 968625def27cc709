# gdrive.py
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload
from httplib2 import HttpLib2Error

from .exceptions import StorageError
from .storage.base import StorageClient
from .storage.dto import FOLDER_MIME_TYPE, PLAIN_TEXT_MIME_TYPE, RemoteEntry

ENTRY_FIELDS = "id, name, mimeType, size, parents, webViewLink"

# Everything a Drive call can fail with once the request leaves the process.
REMOTE_ERRORS = (HttpError, GoogleAuthError, HttpLib2Error, OSError)


def escape_query_value(value: str) -> str:
    """Escapes a string literal for the Drive query language."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def storage_error(e: Exception) -> StorageError:
    """
    Wraps a remote failure for the user. For API errors only the message
    returned by Drive is kept; the request URL stays in the logs.
    """
    if isinstance(e, HttpError):
        return StorageError(e.reason or f"HTTP {e.resp.status}")
    return StorageError(str(e) or type(e).__name__)


def _to_entry(item: dict) -> RemoteEntry:
    return RemoteEntry(
        id=item["id"],
        name=item.get("name", ""),
        mime_type=item.get("mimeType"),
        size=item.get("size"),
        parents=item.get("parents"),
        web_view_link=item.get("webViewLink"),
    )


class GoogleDriveClient(StorageClient):
    """
    Client for interacting with the Google Drive API, implementing the StorageClient interface.
    """

    root_id = "root"

    def __init__(self, credentials: Credentials):
        try:
            self.service = build("drive", "v3", credentials=credentials, cache_discovery=False)
            logging.info("Google Drive client initialized successfully.")
        except Exception as e:
            logging.error(f"Failed to initialize Google Drive client. Error: {e}")
            raise

    def _list(self, query: str, order_by: Optional[str] = None) -> List[RemoteEntry]:
        """Runs a files.list query, following pagination."""
        entries = []
        page_token = None
        while True:
            params = {
                "q": query,
                "fields": f"nextPageToken, files({ENTRY_FIELDS})",
                "spaces": "drive",
            }
            if order_by:
                params["orderBy"] = order_by
            if page_token:
                params["pageToken"] = page_token
            response = self.service.files().list(**params).execute()
            entries.extend(_to_entry(item) for item in response.get("files", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                return entries
            logging.info("Found more files, continuing listing...")

    def find_children(
        self, parent_id: str, name: str, folders_only: bool = False
    ) -> List[RemoteEntry]:
        """
        Finds non-trashed entries named `name` directly inside `parent_id`.
        """
        query = f"name='{escape_query_value(name)}' and '{parent_id}' in parents and trashed=false"
        if folders_only:
            query += f" and mimeType='{FOLDER_MIME_TYPE}'"
        try:
            return self._list(query)
        except REMOTE_ERRORS as e:
            logging.error(f"Failed to search for '{name}' in folder ID '{parent_id}': {e}")
            raise storage_error(e) from e

    def list_children(
        self,
        parent_id: str,
        mime_types: Optional[Sequence[str]] = None,
        order_by: Optional[str] = None,
    ) -> List[RemoteEntry]:
        """
        Lists the non-trashed entries of a Google Drive folder.
        """
        query = f"'{parent_id}' in parents and trashed=false"
        if mime_types:
            kinds = " or ".join(f"mimeType='{mime_type}'" for mime_type in mime_types)
            query += f" and ({kinds})"
        try:
            logging.info(f"Listing files in Google Drive folder ID: '{parent_id}'")
            return self._list(query, order_by=order_by)
        except REMOTE_ERRORS as e:
            logging.error(f"Failed to list files in Google Drive folder ID '{parent_id}': {e}")
            raise storage_error(e) from e

    def get_parents(self, file_id: str) -> List[str]:
        try:
            file = self.service.files().get(fileId=file_id, fields="parents").execute()
            return file.get("parents", [])
        except REMOTE_ERRORS as e:
            logging.error(f"Failed to read parents of file ID '{file_id}': {e}")
            raise storage_error(e) from e

    def update_parents(
        self, file_id: str, add_parent: str, remove_parents: Sequence[str]
    ):
        """
        Moves a file by swapping its parents in one update call.
        """
        try:
            logging.info(f"Moving file ID '{file_id}' to folder ID '{add_parent}'...")
            self.service.files().update(
                fileId=file_id,
                addParents=add_parent,
                removeParents=",".join(remove_parents),
                fields="id, parents",
            ).execute()
            logging.info(f"Successfully moved file ID '{file_id}' to folder ID '{add_parent}'.")
        except REMOTE_ERRORS as e:
            logging.error(f"Failed to move file ID '{file_id}' to folder '{add_parent}': {e}")
            raise storage_error(e) from e

    def rename_file(self, file_id: str, new_name: str):
        try:
            logging.info(f"Renaming file ID '{file_id}' to '{new_name}'...")
            self.service.files().update(
                fileId=file_id, body={"name": new_name}, fields="id, name"
            ).execute()
        except REMOTE_ERRORS as e:
            logging.error(f"Failed to rename file ID '{file_id}': {e}")
            raise storage_error(e) from e

    def delete_file(self, file_id: str):
        """
        Permanently deletes a file from Google Drive by its file ID.
        """
        try:
            logging.info(f"Deleting file with ID '{file_id}'...")
            self.service.files().delete(fileId=file_id).execute()
        except REMOTE_ERRORS as e:
            logging.error(f"Failed to delete file with ID '{file_id}': {e}")
            raise storage_error(e) from e

    def upload_file(self, local_path: Path, folder_id: str, filename: str) -> RemoteEntry:
        """
        Uploads a local file to a specified folder in Google Drive.
        """
        try:
            file_metadata = {"name": filename, "parents": [folder_id]}
            media = MediaFileUpload(str(local_path), resumable=True)

            logging.info(
                f"Uploading {local_path} to folder ID {folder_id} with name {filename}..."
            )
            created = self.service.files().create(
                body=file_metadata, media_body=media, fields=ENTRY_FIELDS
            ).execute()
            logging.info(f"Successfully uploaded {filename} to folder ID: {folder_id}.")
            return _to_entry(created)
        except REMOTE_ERRORS as e:
            logging.error(f"Failed to upload file to folder ID '{folder_id}': {e}")
            raise storage_error(e) from e

    def export_text(self, file_id: str) -> str:
        try:
            logging.info(f"Exporting document ID '{file_id}' as plain text...")
            content = self.service.files().export(
                fileId=file_id, mimeType=PLAIN_TEXT_MIME_TYPE
            ).execute()
            return _decode(content)
        except REMOTE_ERRORS as e:
            logging.error(f"Failed to export document ID '{file_id}': {e}")
            raise storage_error(e) from e

    def download_text(self, file_id: str) -> str:
        try:
            logging.info(f"Downloading file with ID '{file_id}'...")
            content = self.service.files().get_media(fileId=file_id).execute()
            return _decode(content)
        except REMOTE_ERRORS as e:
            if isinstance(e, HttpError) and e.resp.status == 404:
                logging.warning(f"File with ID '{file_id}' not found in Google Drive.")
            else:
                logging.error(f"Failed to download file with ID '{file_id}': {e}")
            raise storage_error(e) from e


def _decode(content) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content
