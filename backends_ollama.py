# backends_ollama.py
from typing import Tuple

import requests

from backends import BaseLLMClient, LLMConfig
from config import DEFAULT_OLLAMA_BASE_URL, DEFAULT_OLLAMA_TIMEOUT
import console

# Plaintext body served by `GET /` on a healthy Ollama server
HEALTH_MARKER = "Ollama is running"


class OllamaClient(BaseLLMClient):
    def __init__(self, base_url: str = DEFAULT_OLLAMA_BASE_URL, timeout: float = DEFAULT_OLLAMA_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # /api/generate with stream=False returns one JSON object
        self.url = f"{self.base_url}/api/generate"

    def generate(self, prompt: str, cfg: LLMConfig) -> str:
        payload = {
            "model": cfg.model,          # e.g., "llama3:8b"
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": cfg.temperature},
        }
        if cfg.json_mode:
            payload["format"] = "json"
        console.debug(f"POST {self.url} model={cfg.model} json_mode={cfg.json_mode}")
        r = requests.post(self.url, json=payload, timeout=self.timeout)
        r.raise_for_status()
        data = r.json()
        # Ollama returns { "model": "...", "response": "...", "done": true, ... }
        return data.get("response", "")

    def check_connection(self, timeout: float = 5.0) -> Tuple[bool, str]:
        try:
            r = requests.get(self.base_url, timeout=timeout)
            return HEALTH_MARKER in r.text, self.base_url
        except Exception as e:
            console.debug(f"Ollama probe failed: {type(e).__name__}: {e}")
            return False, self.base_url
