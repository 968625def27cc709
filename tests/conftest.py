# tests/conftest.py
import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

from drivebot.bot import on_message
from drivebot.config import Settings, get_settings
from drivebot.exceptions import StorageError
from drivebot.storage.base import StorageClient
from drivebot.storage.dto import FOLDER_MIME_TYPE, RemoteEntry


class FakeDrive(StorageClient):
    """
    In-memory storage backend. Entries keep insertion order, which stands in
    for the backend's list order. Every call is recorded in `calls`.
    """

    root_id = "root"

    def __init__(self):
        self.entries = {}
        self.contents = {}
        self.calls = []
        self.failures = {}

    def add_folder(self, entry_id, name, parent="root"):
        return self.add_file(entry_id, name, parent=parent, mime_type=FOLDER_MIME_TYPE)

    def add_file(self, entry_id, name, parent="root", mime_type="text/plain", size=None, content=None):
        entry = RemoteEntry(id=entry_id, name=name, mime_type=mime_type, size=size, parents=[parent])
        self.entries[entry_id] = entry
        if content is not None:
            self.contents[entry_id] = content
        return entry

    def fail(self, method, message="boom"):
        self.failures[method] = StorageError(message)

    def calls_to(self, method):
        return [args for name, args in self.calls if name == method]

    def _record(self, method, *args):
        self.calls.append((method, args))
        if method in self.failures:
            raise self.failures[method]

    def find_children(self, parent_id, name, folders_only=False):
        self._record("find_children", parent_id, name, folders_only)
        return [
            entry for entry in self.entries.values()
            if parent_id in entry.parents and entry.name == name
            and (entry.is_folder or not folders_only)
        ]

    def list_children(self, parent_id, mime_types=None, order_by=None):
        self._record("list_children", parent_id, mime_types, order_by)
        children = [
            entry for entry in self.entries.values()
            if parent_id in entry.parents and (not mime_types or entry.mime_type in mime_types)
        ]
        if order_by == "name":
            children.sort(key=lambda entry: entry.name)
        return children

    def get_parents(self, file_id):
        self._record("get_parents", file_id)
        return list(self.entries[file_id].parents)

    def update_parents(self, file_id, add_parent, remove_parents):
        self._record("update_parents", file_id, add_parent, list(remove_parents))
        entry = self.entries[file_id]
        entry.parents = [p for p in entry.parents if p not in remove_parents] + [add_parent]

    def rename_file(self, file_id, new_name):
        self._record("rename_file", file_id, new_name)
        self.entries[file_id].name = new_name

    def delete_file(self, file_id):
        self._record("delete_file", file_id)
        del self.entries[file_id]

    def upload_file(self, local_path, folder_id, filename):
        self._record("upload_file", local_path, folder_id, filename)
        entry_id = f"new-{len(self.entries)}"
        entry = self.add_file(entry_id, filename, parent=folder_id, content=local_path.read_bytes())
        entry.web_view_link = f"https://drive.example/{entry_id}"
        return entry

    def export_text(self, file_id):
        self._record("export_text", file_id)
        return self.contents[file_id]

    def download_text(self, file_id):
        self._record("download_text", file_id)
        return self.contents[file_id]


@pytest.fixture
def mock_settings(tmp_path):
    """
    Provides a mock of the application settings for testing.
    This avoids the need for environment variables during tests.
    """
    settings = MagicMock(spec=Settings)
    settings.TELEGRAM_BOT_TOKEN = "test_bot_token"
    settings.LOG_LEVEL = "INFO"
    settings.OPENAI_API_KEY = "test_api_key"
    settings.OPENAI_BASE_URL = "https://api.openai.com/v1"
    settings.SUMMARY_MODEL = "gpt-4o-mini"
    settings.SUMMARY_MAX_TOKENS = 500
    settings.SUMMARY_PROMPT = "Summarize {file_name}: {content}"
    settings.GDRIVE_CREDENTIALS_JSON = None
    settings.GDRIVE_TOKEN_JSON = None
    settings.BASE_DIR = tmp_path
    settings.GDRIVE_CREDENTIALS_PATH = tmp_path / "credentials.json"
    settings.GDRIVE_TOKEN_PATH = tmp_path / "token.json"
    settings.LOCAL_BUF_DIR = tmp_path / "buf"
    settings.LOG_FILE = tmp_path / "drivebot.log"
    return settings


@pytest.fixture
def mock_storage_client():
    """Fixture for a mock storage client."""
    return MagicMock()


@pytest.fixture
def drive():
    """A small in-memory drive: /Reports (F1) and /Archive (F2)."""
    fake = FakeDrive()
    fake.add_folder("F1", "Reports")
    fake.add_folder("F2", "Archive")
    return fake


@pytest.fixture(autouse=True)
def patch_settings_class(monkeypatch, mock_settings):
    """
    Replaces the `Settings` constructor so that any call to `Settings()`
    during a test run receives the `mock_settings` instance.
    """
    # The cached instance from an earlier test must not leak into this one.
    get_settings.cache_clear()
    monkeypatch.setattr("drivebot.config.Settings", lambda *args, **kwargs: mock_settings)


@pytest.fixture
def chat():
    """
    Sends a chat message through the Telegram message handler and returns
    the replies in order. An attachment is delivered as a Telegram document.
    """
    def send(dispatcher, text, attachment=None):
        message = MagicMock()
        message.text = text
        message.caption = None
        message.document = None
        message.photo = []
        message.reply_text = AsyncMock()
        bot = MagicMock()
        bot.get_file = AsyncMock()
        if attachment is not None:
            message.document = MagicMock(file_id="doc-1")
            message.document.file_name = attachment.filename
            bot.get_file.return_value.download_as_bytearray = AsyncMock(
                return_value=bytearray(attachment.data)
            )
        update = MagicMock(effective_message=message)
        context = MagicMock(bot=bot, bot_data={"dispatcher": dispatcher})

        asyncio.run(on_message(update, context))
        return [call.args[0] for call in message.reply_text.call_args_list]

    return send
