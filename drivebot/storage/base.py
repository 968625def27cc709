# storage/base.py
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence
from .dto import RemoteEntry


class StorageClient(ABC):
    """
    Abstract base class for a hierarchical cloud storage client.
    Entries are addressed by opaque IDs; every entry lists its parent IDs.
    Implementations raise StorageError when a remote call fails.
    """

    root_id: str = "root"

    @abstractmethod
    def find_children(
        self, parent_id: str, name: str, folders_only: bool = False
    ) -> List[RemoteEntry]:
        """
        Finds non-trashed entries with an exact name under a parent.

        :param parent_id: The ID of the parent folder.
        :param name: The exact entry name to look for.
        :param folders_only: Restrict the match to folders.
        :return: Matching entries in backend order.
        """
        pass

    @abstractmethod
    def list_children(
        self,
        parent_id: str,
        mime_types: Optional[Sequence[str]] = None,
        order_by: Optional[str] = None,
    ) -> List[RemoteEntry]:
        """
        Lists the non-trashed entries of a folder.

        :param parent_id: The ID of the folder to list.
        :param mime_types: If given, only entries of these content types.
        :param order_by: Backend sort key (e.g. "name"); backend order if None.
        """
        pass

    @abstractmethod
    def get_parents(self, file_id: str) -> List[str]:
        """Returns the IDs of the folders that currently contain the entry."""
        pass

    @abstractmethod
    def update_parents(
        self, file_id: str, add_parent: str, remove_parents: Sequence[str]
    ):
        """
        Replaces parents in a single update call.

        :param file_id: The ID of the entry to move.
        :param add_parent: The ID of the new parent folder.
        :param remove_parents: The parent IDs to detach.
        """
        pass

    @abstractmethod
    def rename_file(self, file_id: str, new_name: str):
        pass

    @abstractmethod
    def delete_file(self, file_id: str):
        pass

    @abstractmethod
    def upload_file(self, local_path: Path, folder_id: str, filename: str) -> RemoteEntry:
        """
        Creates a new file with the contents of a local file.

        :param local_path: The local path of the file to upload.
        :param folder_id: The ID of the destination folder.
        :param filename: The name for the uploaded file.
        :return: The created entry, including its shareable link.
        """
        pass

    @abstractmethod
    def export_text(self, file_id: str) -> str:
        """Exports a native document as plain text."""
        pass

    @abstractmethod
    def download_text(self, file_id: str) -> str:
        """Downloads the raw content of a text file."""
        pass
