# resolver.py
import logging
from typing import List, Optional, Tuple

from .storage.base import StorageClient


def split_path(path: str) -> List[str]:
    """Splits a slash-delimited path into its non-empty segments."""
    return [segment for segment in path.split("/") if segment]


def split_file_path(path: str) -> Tuple[str, str]:
    """
    Splits "<folder>/<file>" at the last slash.
    Returns (folder_path, file_name); the folder path is "" for the root.
    """
    folder_path, _, file_name = path.rpartition("/")
    return folder_path, file_name


class PathResolver:
    """
    Translates human-readable paths into storage IDs.
    Nothing is cached: every call walks the path from the root again.
    """

    def __init__(self, storage: StorageClient):
        self.storage = storage

    def resolve_folder(self, path: str) -> Optional[str]:
        """
        Walks the path one segment at a time, starting at the storage root.
        Returns the folder ID, or None at the first segment that does not exist.
        """
        current_id = self.storage.root_id
        for segment in split_path(path):
            matches = self.storage.find_children(current_id, segment, folders_only=True)
            if not matches:
                logging.info(f"Folder '{segment}' not found while resolving '{path}'.")
                return None
            current_id = matches[0].id
        return current_id

    def resolve_file(self, folder_path: str, file_name: str) -> Optional[str]:
        """
        Finds a file by name in a folder. With duplicate names the first
        entry the backend returns wins.
        """
        folder_id = self.resolve_folder(folder_path)
        if folder_id is None:
            return None
        matches = self.storage.find_children(folder_id, file_name)
        if not matches:
            logging.info(f"File '{file_name}' not found in '{folder_path}'.")
            return None
        return matches[0].id
