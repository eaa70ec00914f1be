# backends_factory.py
import time
from typing import Callable

from backends import BaseLLMClient, Provider
from backends_gemini import GeminiClient
from backends_ollama import OllamaClient
from config import LLMSettings


def make_client(provider: str, settings: LLMSettings,
                sleep: Callable[[float], None] = time.sleep) -> BaseLLMClient:
    if provider == Provider.OLLAMA:
        return OllamaClient(base_url=settings.ollama_base_url, timeout=settings.ollama_timeout)
    if provider == Provider.GEMINI:
        return GeminiClient(api_key=settings.gemini_api_key, sleep=sleep)

    raise ValueError(f"Unknown LLM_PROVIDER: {provider}")


def default_model(provider: str, settings: LLMSettings) -> str:
    if provider == Provider.OLLAMA:
        return settings.ollama_model
    return settings.gemini_model
