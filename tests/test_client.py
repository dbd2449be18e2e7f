"""Tests for the chat client and its retry loop."""

import pytest
import requests

from config import Settings
from functions.client import ChatSession, post_with_backoff
from functions.exceptions import ChatClientError

URL = "http://backend.test/api/chat"
PAYLOAD = {"fileContent": "Text.", "userQuestion": "Why?"}


class TestPostWithBackoff:
    """Tests for post_with_backoff."""

    def test_first_attempt_succeeds(self, mock_session, mock_response_factory, mock_sleep):
        ok = mock_response_factory(200, {"answer": "yes"})
        mock_session.post.return_value = ok

        result = post_with_backoff(mock_session, URL, PAYLOAD)

        assert result is ok
        mock_session.post.assert_called_once_with(URL, json=PAYLOAD, timeout=120)
        mock_sleep.assert_not_called()

    def test_retries_rate_limit(self, mock_session, mock_response_factory, mock_sleep):
        limited = mock_response_factory(429, {"error": "slow down"}, reason="Too Many Requests")
        ok = mock_response_factory(200, {"answer": "yes"})
        mock_session.post.side_effect = [limited, ok]

        result = post_with_backoff(mock_session, URL, PAYLOAD)

        assert result is ok
        mock_sleep.assert_called_once_with(1.0)

    def test_rate_limit_on_last_attempt_fails(
        self, mock_session, mock_response_factory, mock_sleep
    ):
        limited = mock_response_factory(429, {"error": "slow down"}, reason="Too Many Requests")
        mock_session.post.return_value = limited

        with pytest.raises(ChatClientError, match="API Request Failed: 429 - slow down"):
            post_with_backoff(mock_session, URL, PAYLOAD)

        assert mock_session.post.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    def test_retries_network_errors(self, mock_session, mock_response_factory, mock_sleep):
        ok = mock_response_factory(200, {"answer": "yes"})
        mock_session.post.side_effect = [
            requests.ConnectionError("refused"),
            requests.Timeout("slow"),
            ok,
        ]

        result = post_with_backoff(mock_session, URL, PAYLOAD)

        assert result is ok
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    def test_network_error_on_every_attempt(self, mock_session, mock_sleep):
        mock_session.post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(ChatClientError, match="refused"):
            post_with_backoff(mock_session, URL, PAYLOAD)

        assert mock_session.post.call_count == 3

    def test_server_error_detail(self, mock_session, mock_response_factory, mock_sleep):
        failed = mock_response_factory(
            500, {"error": "GEMINI_API_KEY not set in environment."}, reason="Server Error"
        )
        mock_session.post.return_value = failed

        with pytest.raises(ChatClientError) as exc_info:
            post_with_backoff(mock_session, URL, PAYLOAD, max_retries=1)

        assert str(exc_info.value) == (
            "API Request Failed: 500 - GEMINI_API_KEY not set in environment."
        )
        mock_sleep.assert_not_called()

    def test_error_without_json_uses_reason(
        self, mock_session, mock_response_factory, mock_sleep
    ):
        failed = mock_response_factory(502, reason="Bad Gateway", json_error=True)
        mock_session.post.return_value = failed

        with pytest.raises(ChatClientError, match="502 - Bad Gateway"):
            post_with_backoff(mock_session, URL, PAYLOAD, max_retries=1)

    def test_custom_initial_delay(self, mock_session, mock_response_factory, mock_sleep):
        mock_session.post.side_effect = [
            requests.ConnectionError("refused"),
            requests.ConnectionError("refused"),
            requests.ConnectionError("refused"),
            mock_response_factory(200, {"answer": "yes"}),
        ]

        post_with_backoff(mock_session, URL, PAYLOAD, max_retries=4, initial_delay=0.5)

        assert [c.args[0] for c in mock_sleep.call_args_list] == [0.5, 1.0, 2.0]


class TestChatSession:
    """Tests for ChatSession."""

    @pytest.fixture
    def chat(self, mock_session, test_settings):
        return ChatSession(session=mock_session, config=test_settings)

    def test_initial_state(self, chat):
        assert chat.base_url == "http://backend.test"
        assert chat.history == []
        assert not chat.has_document

    def test_base_url_override(self, mock_session, test_settings):
        chat = ChatSession(
            base_url="http://other:3001/", session=mock_session, config=test_settings
        )
        assert chat.base_url == "http://other:3001"

    def test_load_document_greets(self, chat):
        chat.load_document("notes.txt", "Some notes.")

        assert chat.has_document
        assert len(chat.history) == 1
        assert chat.history[0].role == "assistant"
        assert "**notes.txt**" in chat.history[0].text

    def test_load_document_clears_history(self, chat, mock_session, mock_response_factory):
        mock_session.post.return_value = mock_response_factory(200, {"answer": "A"})
        chat.load_document("first.txt", "First.")
        chat.ask("Question?")

        chat.load_document("second.txt", "Second.")

        assert len(chat.history) == 1
        assert "second.txt" in chat.history[0].text

    def test_ask_without_document(self, chat, mock_session):
        assert chat.ask("Anything?") is None
        mock_session.post.assert_not_called()
        assert chat.history == []

    @pytest.mark.parametrize("question", ["", "   ", None])
    def test_ask_blank_question(self, chat, mock_session, question):
        chat.load_document("notes.txt", "Some notes.")

        assert chat.ask(question) is None
        mock_session.post.assert_not_called()
        assert len(chat.history) == 1

    def test_ask_appends_in_order(self, chat, mock_session, mock_response_factory):
        mock_session.post.return_value = mock_response_factory(200, {"answer": "Friday."})
        chat.load_document("notes.txt", "Launch is Friday.")

        answer = chat.ask("  When is launch?  ")

        assert answer == "Friday."
        assert [(m.role, m.text) for m in chat.history[1:]] == [
            ("user", "When is launch?"),
            ("assistant", "Friday."),
        ]
        mock_session.post.assert_called_once_with(
            "http://backend.test/api/chat",
            json={"fileContent": "Launch is Friday.", "userQuestion": "When is launch?"},
            timeout=120,
        )

    def test_ask_failure_records_error(
        self, chat, mock_session, mock_response_factory, mock_sleep
    ):
        mock_session.post.return_value = mock_response_factory(
            500, {"error": "An error occurred while processing the request."}
        )
        chat.load_document("notes.txt", "Text.")

        with pytest.raises(ChatClientError):
            chat.ask("Why?")

        assert [m.role for m in chat.history] == ["assistant", "user", "assistant"]
        assert "Server Error" in chat.history[-1].text
        assert chat.last_error.startswith("Failed to get answer from server.")

    def test_ask_error_in_body(self, chat, mock_session, mock_response_factory):
        mock_session.post.return_value = mock_response_factory(200, {"error": "bad"})
        chat.load_document("notes.txt", "Text.")

        with pytest.raises(ChatClientError, match="bad"):
            chat.ask("Why?")

    def test_ask_invalid_json(self, chat, mock_session, mock_response_factory):
        mock_session.post.return_value = mock_response_factory(200, json_error=True)
        chat.load_document("notes.txt", "Text.")

        with pytest.raises(ChatClientError, match="invalid JSON"):
            chat.ask("Why?")

    def test_success_clears_last_error(
        self, chat, mock_session, mock_response_factory, mock_sleep
    ):
        chat.load_document("notes.txt", "Text.")
        mock_session.post.return_value = mock_response_factory(500, {"error": "boom"})
        with pytest.raises(ChatClientError):
            chat.ask("First?")

        mock_session.post.return_value = mock_response_factory(200, {"answer": "ok"})
        chat.ask("Second?")

        assert chat.last_error is None

    def test_retry_settings_come_from_config(
        self, mock_session, mock_response_factory, mock_sleep
    ):
        config = Settings(backend_url="http://b", max_retries=1, initial_retry_delay=0.1)
        chat = ChatSession(session=mock_session, config=config)
        chat.load_document("notes.txt", "Text.")
        mock_session.post.return_value = mock_response_factory(429, {"error": "slow"})

        with pytest.raises(ChatClientError):
            chat.ask("Why?")

        mock_session.post.assert_called_once()
        mock_sleep.assert_not_called()

    def test_history_is_a_copy(self, chat):
        chat.load_document("notes.txt", "Text.")
        chat.history.clear()
        assert len(chat.history) == 1

    @pytest.mark.parametrize("body", [{"answer": None}, {}, {"answer": 42}])
    def test_ask_without_answer_text(self, chat, mock_session, mock_response_factory, body):
        mock_session.post.return_value = mock_response_factory(200, body)
        chat.load_document("notes.txt", "Text.")

        with pytest.raises(ChatClientError, match="no answer"):
            chat.ask("Why?")

        assert [m.role for m in chat.history] == ["assistant", "user", "assistant"]
        assert "Server Error" in chat.history[-1].text
        assert chat.last_error is not None
