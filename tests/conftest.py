"""Shared fixtures for file Q&A chat tests."""

import pytest
import requests
from langchain_core.messages import AIMessage

from config import Settings


@pytest.fixture
def client_dir(tmp_path):
    """A minimal client bundle."""
    dist = tmp_path / "dist"
    dist.mkdir()
    (dist / "index.html").write_text("<html><body>File Q&amp;A Chat</body></html>")
    return dist


@pytest.fixture
def test_settings(client_dir):
    """Settings with a fake API key and fast retries."""
    return Settings(
        llm_provider="gemini",
        gemini_api_key="test-key",
        gemini_model="gemini-test",
        client_build_path=client_dir,
        allowed_origins=["*"],
        max_body_bytes=5 * 1024 * 1024,
        max_chunk_size=500,
        backend_url="http://backend.test",
        max_retries=3,
        initial_retry_delay=1.0,
        log_level="WARNING",
        log_file=None,
    )


@pytest.fixture
def mock_llm(mocker):
    """Chat model stand-in that answers every question the same way."""
    llm = mocker.MagicMock()
    llm.invoke.return_value = AIMessage(content="The launch is on Friday.")
    return llm


@pytest.fixture
def sample_text():
    return (
        "Project Apollo status report.\n\n"
        "The launch is scheduled for Friday. The crew has three members! "
        "Is the weather ready? Forecasts look good.\n"
        "Budget remains within limits."
    )


@pytest.fixture
def mock_sleep(mocker):
    """Skip backoff delays."""
    return mocker.patch("functions.client.time.sleep")


@pytest.fixture
def mock_session(mocker):
    session = mocker.MagicMock(spec=requests.Session)
    return session


@pytest.fixture
def mock_response_factory(mocker):
    """Factory for creating mock HTTP responses."""

    def _create_response(status_code=200, json_data=None, reason="OK", json_error=False):
        response = mocker.MagicMock(spec=requests.Response)
        response.status_code = status_code
        response.ok = status_code < 400
        response.reason = reason
        if json_error:
            response.json.side_effect = ValueError("No JSON")
        else:
            response.json.return_value = json_data if json_data is not None else {}
        return response

    return _create_response
