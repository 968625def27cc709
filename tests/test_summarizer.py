# tests/test_summarizer.py
import openai
import pytest
from unittest.mock import patch, MagicMock

from drivebot.exceptions import SummaryError
from drivebot.summarizer import summarize


@pytest.fixture(autouse=True)
def reset_client(monkeypatch):
    """Each test gets a freshly created (mocked) OpenAI client."""
    monkeypatch.setattr("drivebot.summarizer._client", None)


def _completion(text):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = text
    return response


@patch("drivebot.summarizer.get_settings")
@patch("drivebot.summarizer.OpenAI")
def test_summarize_success(MockOpenAI, mock_get_settings, mock_settings):
    """Test successful summarization."""
    mock_get_settings.return_value = mock_settings
    mock_openai_client = MockOpenAI.return_value
    mock_openai_client.chat.completions.create.return_value = _completion(" A short summary. ")

    summary = summarize("Document body", "notes.txt")

    assert summary == "A short summary."
    MockOpenAI.assert_called_once_with(base_url="https://api.openai.com/v1", api_key="test_api_key")
    mock_openai_client.chat.completions.create.assert_called_once_with(
        model="gpt-4o-mini",
        max_tokens=500,
        messages=[{"role": "user", "content": "Summarize notes.txt: Document body"}],
    )


@patch("drivebot.summarizer.get_settings")
@patch("drivebot.summarizer.OpenAI")
def test_summarize_custom_max_tokens(MockOpenAI, mock_get_settings, mock_settings):
    mock_get_settings.return_value = mock_settings
    MockOpenAI.return_value.chat.completions.create.return_value = _completion("ok")

    summarize("body", "doc", max_tokens=100)

    assert MockOpenAI.return_value.chat.completions.create.call_args.kwargs["max_tokens"] == 100


@patch("drivebot.summarizer.get_settings")
@patch("drivebot.summarizer.OpenAI")
def test_summarize_api_error_raises_summary_error(MockOpenAI, mock_get_settings, mock_settings):
    mock_get_settings.return_value = mock_settings
    MockOpenAI.return_value.chat.completions.create.side_effect = openai.OpenAIError("quota exceeded")

    with pytest.raises(SummaryError, match="quota exceeded"):
        summarize("body", "doc")


@patch("drivebot.summarizer.get_settings")
@patch("drivebot.summarizer.OpenAI")
def test_summarize_empty_completion_raises_summary_error(MockOpenAI, mock_get_settings, mock_settings):
    mock_get_settings.return_value = mock_settings
    MockOpenAI.return_value.chat.completions.create.return_value = _completion(None)

    with pytest.raises(SummaryError):
        summarize("body", "doc")


@patch("drivebot.summarizer.get_settings")
@patch("drivebot.summarizer.OpenAI")
def test_client_is_created_once(MockOpenAI, mock_get_settings, mock_settings):
    mock_get_settings.return_value = mock_settings
    MockOpenAI.return_value.chat.completions.create.return_value = _completion("ok")

    summarize("one", "a")
    summarize("two", "b")

    MockOpenAI.assert_called_once()
