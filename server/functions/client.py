"""HTTP client for the /api/chat endpoint, with a session-scoped transcript."""

import time
from typing import Any, Dict, List, Optional

import requests

from config import Settings, settings as default_settings
from functions.exceptions import ChatClientError
from functions.logging_config import get_logger
from models.chat_models import ChatMessage

logger = get_logger("client")

CHAT_ENDPOINT = "/api/chat"


def _error_detail(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason or ""
    if isinstance(body, dict):
        return body.get("error") or body.get("message") or response.reason or ""
    return response.reason or ""


def post_with_backoff(
    session: requests.Session,
    url: str,
    payload: Dict[str, Any],
    max_retries: int = 3,
    initial_delay: float = 1.0,
    timeout: float = 120,
) -> requests.Response:
    """
    POST a JSON payload, retrying with exponential backoff.

    Rate limiting (429), network errors and error statuses are retried until
    max_retries attempts have been made; the delay doubles after each retry.

    Raises:
        ChatClientError: If the last attempt still fails
    """
    delay = initial_delay
    for attempt in range(max_retries):
        last_attempt = attempt == max_retries - 1
        try:
            response = session.post(url, json=payload, timeout=timeout)
            if response.status_code == 429 and not last_attempt:
                logger.warning(f"Rate limit hit. Retrying in {delay:.1f}s...")
                time.sleep(delay)
                delay *= 2
                continue
            if not response.ok:
                raise ChatClientError(
                    f"API Request Failed: {response.status_code} - {_error_detail(response)}"
                )
            return response
        except (requests.RequestException, ChatClientError) as e:
            if last_attempt:
                if isinstance(e, ChatClientError):
                    raise
                raise ChatClientError(str(e)) from e
            logger.error(f"Fetch attempt failed, retrying: {e}")
            time.sleep(delay)
            delay *= 2

    raise ChatClientError("No attempts were made")


class ChatSession:
    """A document held in memory plus the ordered chat about it."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        config: Optional[Settings] = None,
    ):
        self.config = config or default_settings
        self.base_url = (base_url or self.config.backend_url).rstrip("/")
        self.session = session or requests.Session()
        self.document_name: Optional[str] = None
        self.document_text: str = ""
        self.last_error: Optional[str] = None
        self._history: List[ChatMessage] = []

    @property
    def history(self) -> List[ChatMessage]:
        return list(self._history)

    @property
    def has_document(self) -> bool:
        return bool(self.document_text)

    def load_document(self, name: str, text: str) -> None:
        """Replace the current document and start a fresh transcript."""
        self.document_name = name
        self.document_text = text
        self.last_error = None
        self._history = [
            ChatMessage(
                role="assistant",
                text=f"File **{name}** uploaded successfully. "
                "Ask me a question about its content!",
            )
        ]

    def ask(self, question: str) -> Optional[str]:
        """
        Send a question about the loaded document.

        Returns:
            The answer, or None when there is nothing to send

        Raises:
            ChatClientError: If the backend could not answer
        """
        question = (question or "").strip()
        if not question or not self.has_document:
            return None

        self._history.append(ChatMessage(role="user", text=question))
        self.last_error = None
        payload = {"fileContent": self.document_text, "userQuestion": question}

        try:
            response = post_with_backoff(
                self.session,
                f"{self.base_url}{CHAT_ENDPOINT}",
                payload,
                max_retries=self.config.max_retries,
                initial_delay=self.config.initial_retry_delay,
            )
            try:
                result = response.json()
            except ValueError as e:
                raise ChatClientError("Backend returned invalid JSON") from e
            if not isinstance(result, dict):
                raise ChatClientError("Backend returned an unexpected response")
            if result.get("error"):
                raise ChatClientError(result["error"])
            answer = result.get("answer")
            if not isinstance(answer, str):
                raise ChatClientError("Backend returned no answer")
        except ChatClientError as e:
            logger.error(f"Backend communication failed: {e}")
            self.last_error = f"Failed to get answer from server. Details: {e}"
            self._history.append(
                ChatMessage(
                    role="assistant",
                    text="**Server Error:** I couldn't process that request. "
                    f"Please check the backend server logs. ({e})",
                )
            )
            raise

        self._history.append(ChatMessage(role="assistant", text=answer))
        return answer
