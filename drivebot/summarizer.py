# summarizer.py
import logging
from typing import Optional

import openai
from openai import OpenAI

from .config import get_settings
from .exceptions import SummaryError

# Global variable to hold the client instance.
_client: OpenAI | None = None


def get_openai_client() -> OpenAI:
    """
    Initializes and returns the OpenAI client, caching it for subsequent calls.
    The client is created on first use, not at import time.
    """
    global _client
    if _client is None:
        logging.info("Initializing OpenAI client for the first time.")
        settings = get_settings()
        _client = OpenAI(
            base_url=settings.OPENAI_BASE_URL, api_key=settings.OPENAI_API_KEY
        )
    return _client


def summarize(content: str, file_name: str, max_tokens: Optional[int] = None) -> str:
    """
    Asks the summarization model for a short summary of a document.

    :param content: Document text, already truncated by the caller.
    :param file_name: Document name, included in the prompt.
    :param max_tokens: Output limit; defaults to SUMMARY_MAX_TOKENS.
    :return: The summary text.
    :raises SummaryError: If the API call fails or returns no text.
    """
    settings = get_settings()
    client = get_openai_client()

    try:
        logging.info(f"Requesting summary for '{file_name}'...")
        completion = client.chat.completions.create(
            model=settings.SUMMARY_MODEL,
            max_tokens=max_tokens or settings.SUMMARY_MAX_TOKENS,
            messages=[
                {
                    "role": "user",
                    "content": settings.SUMMARY_PROMPT.format(
                        file_name=file_name, content=content
                    ),
                }
            ],
        )
    except openai.OpenAIError as e:
        logging.error(f"Summary API call failed for '{file_name}': {e}", exc_info=True)
        raise SummaryError(str(e)) from e

    text = completion.choices[0].message.content if completion.choices else None
    if not text:
        raise SummaryError(f"Empty summary returned for '{file_name}'.")
    logging.info("Summary successful.")
    return text.strip()
