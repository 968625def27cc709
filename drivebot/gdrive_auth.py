# gdrive_auth.py
import json
import logging
from typing import Optional

from google_auth_oauthlib.flow import InstalledAppFlow
from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from .config import Settings

# The scope for Google Drive API
SCOPES = ["https://www.googleapis.com/auth/drive"]


def _client_config(settings: Settings) -> dict:
    if not settings.GDRIVE_CREDENTIALS_JSON:
        raise FileNotFoundError(
            f"Google client credentials not found. Set GDRIVE_CREDENTIALS_JSON or create {settings.GDRIVE_CREDENTIALS_PATH}."
        )
    return json.loads(settings.GDRIVE_CREDENTIALS_JSON)


def authorization_url(settings: Settings) -> str:
    """Builds the consent URL a user must visit to create a token."""
    client_config = _client_config(settings)
    flow = InstalledAppFlow.from_client_config(client_config, SCOPES)
    section = client_config.get("installed") or client_config.get("web") or {}
    redirect_uris = section.get("redirect_uris") or ["http://localhost"]
    flow.redirect_uri = redirect_uris[0]
    url, _ = flow.authorization_url(access_type="offline", prompt="consent")
    return url


def save_credentials(settings: Settings, creds: Credentials):
    settings.GDRIVE_TOKEN_PATH.write_text(creds.to_json())
    logging.info(f"Token saved to {settings.GDRIVE_TOKEN_PATH}")


def load_credentials(settings: Settings) -> Optional[Credentials]:
    """
    Loads the saved OAuth token, refreshing and persisting it when expired.
    When no token exists yet, logs the authorization URL and returns None.
    """
    if not settings.GDRIVE_TOKEN_JSON:
        logging.error(
            "No Google Drive token found. Authorize this app by visiting this url: "
            f"{authorization_url(settings)}"
        )
        logging.error("After authorization, run `drivebot --authorize` or save the token to "
                      f"{settings.GDRIVE_TOKEN_PATH}.")
        return None

    creds = Credentials.from_authorized_user_info(json.loads(settings.GDRIVE_TOKEN_JSON), SCOPES)
    if not creds.valid and creds.expired and creds.refresh_token:
        try:
            logging.info("Google Drive token expired, refreshing...")
            creds.refresh(Request())
        except RefreshError as e:
            logging.error(f"Failed to refresh Google Drive token: {e}")
            return None
        save_credentials(settings, creds)
    return creds


def gdrive_authenticate(settings: Settings) -> Credentials:
    """
    Handles the interactive OAuth 2.0 flow for Google Drive API
    and writes the resulting token file.
    """
    flow = InstalledAppFlow.from_client_config(_client_config(settings), SCOPES)
    creds = flow.run_local_server(port=0)
    save_credentials(settings, creds)
    return creds
