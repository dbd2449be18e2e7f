"""Configuration for the file Q&A chat server and client."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent
REPO_DIR = BASE_DIR.parent


def _split_origins(value: str) -> List[str]:
    return [origin.strip() for origin in value.split(",") if origin.strip()]


def _optional_path(value: Optional[str]) -> Optional[Path]:
    return Path(value) if value else None


@dataclass
class Settings:
    """Runtime settings, read from the environment once at import time."""

    # Server
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3001"))
    client_build_path: Path = Path(
        os.getenv("CLIENT_BUILD_PATH", str(REPO_DIR / "client" / "dist"))
    )
    allowed_origins: List[str] = field(
        default_factory=lambda: _split_origins(os.getenv("ALLOWED_ORIGINS", "*"))
    )
    max_body_bytes: int = int(os.getenv("MAX_BODY_BYTES", str(5 * 1024 * 1024)))

    # LLM
    llm_provider: str = os.getenv("LLM_PROVIDER", "gemini").lower()
    gemini_api_key: str = os.getenv("GEMINI_API_KEY", "")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    ollama_model: str = os.getenv("OLLAMA_MODEL", "llama3.2")
    temperature: float = float(os.getenv("LLM_TEMPERATURE", "0.2"))

    # Chunking
    max_chunk_size: int = int(os.getenv("MAX_CHUNK_SIZE", "500"))

    # Client
    backend_url: str = os.getenv("BACKEND_URL", "http://localhost:3001")
    max_retries: int = 3
    initial_retry_delay: float = 1.0

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: Optional[Path] = _optional_path(os.getenv("LOG_FILE"))

    @property
    def model_name(self) -> str:
        if self.llm_provider == "ollama":
            return self.ollama_model
        return self.gemini_model

    @property
    def llm_configured(self) -> bool:
        """Ollama runs locally without a key; Gemini needs one."""
        if self.llm_provider == "gemini":
            return bool(self.gemini_api_key)
        return True


# Global settings instance
settings = Settings()
