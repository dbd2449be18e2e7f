"""LangChain chat models used to answer questions about the uploaded file."""

from typing import Any

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_ollama import ChatOllama

from config import Settings
from functions.exceptions import ConfigurationError, LLMRequestError
from functions.logging_config import get_logger

logger = get_logger("llm")

FALLBACK_ANSWER = "Sorry, I could not generate a response from the file content."


def get_llm(settings: Settings) -> BaseChatModel:
    """Build the chat model for the configured provider."""
    if settings.llm_provider == "gemini":
        if not settings.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY not set in environment.")
        return ChatGoogleGenerativeAI(
            model=settings.gemini_model,
            google_api_key=settings.gemini_api_key,
            temperature=settings.temperature,
        )
    if settings.llm_provider == "ollama":
        return ChatOllama(model=settings.ollama_model, temperature=settings.temperature)
    raise ConfigurationError(f"Unknown LLM_PROVIDER: {settings.llm_provider}")


def extract_text(content: Any) -> str:
    """Flatten message content, which may be a string or a list of parts."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return ""


def get_llm_response(llm: BaseChatModel, system_prompt: str, question: str) -> str:
    """Ask the model a question under the grounding system prompt."""
    messages = [SystemMessage(content=system_prompt), HumanMessage(content=question)]
    try:
        response = llm.invoke(messages)
    except Exception as e:
        raise LLMRequestError(str(e)) from e

    text = extract_text(getattr(response, "content", response)).strip()
    if not text:
        logger.warning("Model returned an empty answer")
        return FALLBACK_ANSWER
    return text
