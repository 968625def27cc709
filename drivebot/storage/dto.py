# storage/dto.py
from pydantic import BaseModel
from typing import List, Optional

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
GOOGLE_DOC_MIME_TYPE = "application/vnd.google-apps.document"
PLAIN_TEXT_MIME_TYPE = "text/plain"
PDF_MIME_TYPE = "application/pdf"


class RemoteEntry(BaseModel):
    """
    A file or folder in remote storage, as returned by a single API call.
    Entries are never cached between operations.
    """

    id: str
    name: str
    mime_type: Optional[str] = None
    size: Optional[int] = None
    parents: Optional[List[str]] = None
    web_view_link: Optional[str] = None

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE
