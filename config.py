# config.py
import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "llama3:8b"
DEFAULT_OLLAMA_TIMEOUT = 200.0
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"


@dataclass
class LLMSettings:
    provider_override: Optional[str] = None   # LLM_PROVIDER, e.g. "ollama" | "gemini"
    ollama_base_url: str = DEFAULT_OLLAMA_BASE_URL
    ollama_model: str = DEFAULT_OLLAMA_MODEL
    ollama_timeout: float = DEFAULT_OLLAMA_TIMEOUT
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_api_key: Optional[str] = None

    @classmethod
    def from_env(cls) -> "LLMSettings":
        return cls(
            provider_override=os.getenv("LLM_PROVIDER") or None,
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", DEFAULT_OLLAMA_BASE_URL),
            ollama_model=os.getenv("OLLAMA_MODEL", DEFAULT_OLLAMA_MODEL),
            ollama_timeout=float(os.getenv("OLLAMA_TIMEOUT", str(DEFAULT_OLLAMA_TIMEOUT))),
            gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY"),
        )
