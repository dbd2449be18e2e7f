"""Custom exceptions for the file Q&A chat."""


class ChatServiceError(Exception):
    """Base exception for chat errors."""

    pass


class ConfigurationError(ChatServiceError):
    """Raised when the LLM provider is not configured."""

    pass


class LLMRequestError(ChatServiceError):
    """Raised when the LLM provider call fails."""

    pass


class ChatClientError(ChatServiceError):
    """Raised when the chat client cannot get an answer from the backend."""

    pass
