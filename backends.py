# backends.py
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from google.api_core.exceptions import ResourceExhausted

JSON_ONLY_INSTRUCTION = "Output only valid JSON. Do not include any other text."

# ```json ... ``` wrapping some models put around their answer; truncated replies may lack the closing fence
OPEN_FENCE_RE = re.compile(r"^\s*```[A-Za-z0-9_-]*[ \t]*\r?\n?")
CLOSE_FENCE_RE = re.compile(r"\r?\n?```\s*$")


class Provider(str, Enum):
    OLLAMA = "ollama"
    GEMINI = "gemini"


class ConfigurationError(RuntimeError):
    """Raised when a provider cannot be used because its settings are missing."""


@dataclass
class LLMConfig:
    model: str
    temperature: float = 0.7
    json_mode: bool = False


@dataclass
class GenerationRequest:
    prompt: str
    system_prompt: Optional[str] = None
    temperature: float = 0.7
    json_mode: bool = False
    model_override: Optional[str] = None

    def __post_init__(self):
        if not self.prompt or not self.prompt.strip():
            raise ValueError("prompt must be a non-empty string")
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError(f"temperature must be within [0, 2], got {self.temperature}")


class BaseLLMClient:
    def generate(self, prompt: str, cfg: LLMConfig) -> str:
        raise NotImplementedError


def build_prompt(request: GenerationRequest) -> str:
    """
    Collapse system prompt, user prompt and the JSON instruction into the single
    text block both providers accept.
    """
    parts = []
    if request.system_prompt:
        parts.append(request.system_prompt)
    parts.append(request.prompt)
    if request.json_mode:
        parts.append(JSON_ONLY_INSTRUCTION)
    return "\n\n".join(parts)


def strip_code_fences(text: str) -> str:
    text = OPEN_FENCE_RE.sub("", text, count=1)
    text = CLOSE_FENCE_RE.sub("", text, count=1)
    return text.strip()


def is_rate_limited(exc: BaseException) -> bool:
    if isinstance(exc, ResourceExhausted):
        return True
    if getattr(exc, "code", None) == 429:
        return True
    response = getattr(exc, "response", None)
    return getattr(response, "status_code", None) == 429


def describe_error(exc: BaseException) -> str:
    """
    Best-effort diagnostic text for a failed provider call: the HTTP body when
    the exception carries a response, otherwise the exception message.
    """
    detail = f"{type(exc).__name__}: {exc}"
    response = getattr(exc, "response", None)
    if response is None:
        return detail
    try:
        body = response.text
        if callable(body):
            body = body()
    except Exception:
        body = None
    if body:
        detail += f" | body: {str(body)[:2000]}"
    return detail
