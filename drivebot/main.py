# main.py
import logging
from typing import Optional

from telegram import Update

from .bot import build_application
from .commands import CommandDispatcher
from .config import Settings, get_settings
from .gdrive import GoogleDriveClient
from .gdrive_auth import gdrive_authenticate, load_credentials
from .storage.base import StorageClient
from .summarizer import summarize


def setup_logging():
    """Configures logging to file and console explicitly."""
    settings = get_settings()

    # Get the root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.LOG_LEVEL)

    # Clear any existing handlers to prevent duplicate logs on re-runs or implicit configs
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Add StreamHandler (for console output)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    # Add FileHandler
    try:
        file_handler = logging.FileHandler(settings.LOG_FILE)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    except IOError as e:
        # Log to console if file logging fails (e.g., permissions)
        root_logger.error(f"Failed to set up file logging to {settings.LOG_FILE}: {e}")

    # Reducing "noise" from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("telegram").setLevel(logging.WARNING)


def initialize_storage_client(settings: Settings) -> Optional[StorageClient]:
    """
    Initializes the Google Drive client from the saved OAuth token.
    Returns None if credentials are missing or invalid.
    """
    try:
        credentials = load_credentials(settings)
        if credentials is None:
            return None
        return GoogleDriveClient(credentials)
    except Exception as e:
        logging.error(
            f"Failed to initialize Google Drive client. Error: {e}", exc_info=True
        )
        return None


def run_bot(settings: Settings):
    storage_client = initialize_storage_client(settings)
    if storage_client is None:
        logging.critical(
            "Could not establish a connection to Google Drive. Only HELP will work until the bot is restarted."
        )

    dispatcher = CommandDispatcher(
        storage=storage_client,
        summarize=summarize,
        buffer_dir=settings.LOCAL_BUF_DIR,
    )
    application = build_application(settings.TELEGRAM_BOT_TOKEN, dispatcher)
    logging.info("🚀 Starting Google Drive assistant bot...")
    application.run_polling(allowed_updates=Update.ALL_TYPES)


def main():
    import argparse

    parser = argparse.ArgumentParser(
        description="Chat bot that manages Google Drive files."
    )
    parser.add_argument(
        "--authorize",
        action="store_true",
        help="Run the Google OAuth flow, save the token and exit.",
    )
    args = parser.parse_args()

    setup_logging()
    settings = get_settings()

    if args.authorize:
        logging.info("Starting Google Drive authorization.")
        gdrive_authenticate(settings)
        return

    try:
        run_bot(settings)
    except Exception as e:
        logging.critical(f"An unexpected error stopped the bot: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
