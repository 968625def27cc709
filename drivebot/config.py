from pathlib import Path
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
import logging
from functools import lru_cache

DEFAULT_SUMMARY_PROMPT = (
    'Please provide a concise summary of the following document "{file_name}":\n\n{content}'
)


class Settings(BaseSettings):
    """
    Centralized application configuration with type validation.
    Automatically reads variables from the environment, the .env file
    and the Google credential files.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # --- General Settings ---
    TELEGRAM_BOT_TOKEN: str
    LOG_LEVEL: str = "INFO"

    # --- Summarization Settings ---
    OPENAI_API_KEY: str
    OPENAI_BASE_URL: Optional[str] = None
    SUMMARY_MODEL: str = Field("gpt-4o-mini", validation_alias="SUMMARY_MODEL")
    SUMMARY_MAX_TOKENS: int = 500
    SUMMARY_PROMPT: str = DEFAULT_SUMMARY_PROMPT

    # --- Google Drive Settings ---
    GDRIVE_CREDENTIALS_FILE: str = "credentials.json"
    GDRIVE_TOKEN_FILE: str = "token.json"
    GDRIVE_CREDENTIALS_JSON: Optional[str] = None
    GDRIVE_TOKEN_JSON: Optional[str] = None

    # --- Constants and Computed Paths ---
    BASE_DIR: Path = Path.cwd()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Invalid LOG_LEVEL '{value}'.")
        return level

    @field_validator("SUMMARY_PROMPT")
    @classmethod
    def validate_summary_prompt(cls, value: str) -> str:
        for placeholder in ("{file_name}", "{content}"):
            if placeholder not in value:
                raise ValueError(f"SUMMARY_PROMPT must contain the {placeholder} placeholder.")
        return value

    def model_post_init(self, __context):
        """
        After initial settings are loaded from the environment,
        fall back to the credential files for anything not set there.
        """
        if not self.GDRIVE_CREDENTIALS_JSON and self.GDRIVE_CREDENTIALS_PATH.is_file():
            self.GDRIVE_CREDENTIALS_JSON = self.GDRIVE_CREDENTIALS_PATH.read_text().strip() or None
            logging.info(f"Loaded Google credentials from file: {self.GDRIVE_CREDENTIALS_PATH}")

        if not self.GDRIVE_TOKEN_JSON and self.GDRIVE_TOKEN_PATH.is_file():
            self.GDRIVE_TOKEN_JSON = self.GDRIVE_TOKEN_PATH.read_text().strip() or None
            logging.info(f"Found Google token in file: {self.GDRIVE_TOKEN_PATH}")

    @property
    def GDRIVE_CREDENTIALS_PATH(self) -> Path:
        return self.BASE_DIR / self.GDRIVE_CREDENTIALS_FILE

    @property
    def GDRIVE_TOKEN_PATH(self) -> Path:
        return self.BASE_DIR / self.GDRIVE_TOKEN_FILE

    @property
    def LOCAL_BUF_DIR(self) -> Path:
        return self.BASE_DIR / "buf"

    @property
    def LOG_FILE(self) -> Path:
        return self.BASE_DIR / "drivebot.log"


@lru_cache()
def get_settings() -> Settings:
    """
    Returns a cached instance of the application settings.
    The first call to this function will initialize the settings.
    """
    settings = Settings()
    settings.LOCAL_BUF_DIR.mkdir(exist_ok=True)
    return settings
