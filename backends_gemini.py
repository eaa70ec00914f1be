# backends_gemini.py
import time
from typing import Callable, Optional

import google.generativeai as genai
from tenacity import Retrying, stop_after_attempt, wait_exponential, retry_if_exception

from backends import BaseLLMClient, ConfigurationError, LLMConfig, is_rate_limited
import console


class GeminiClient(BaseLLMClient):
    """
    Google Gemini backend with:
      - Exponential backoff on HTTP 429 only (2s, then 4s; the last attempt is terminal)
      - Fast-fail on every other error class
      - Injectable sleep so tests don't wait in real time
    """

    def __init__(self, api_key: Optional[str], max_attempts: int = 3,
                 sleep: Callable[[float], None] = time.sleep):
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is required for LLM_PROVIDER=gemini")
        genai.configure(api_key=api_key)

        self.max_attempts = max_attempts
        self._sleep = sleep

    def _retrying(self) -> Retrying:
        """
        Sleep before retry n is 2 * 2**(n-1) = 2**n seconds.
        """
        return Retrying(
            reraise=True,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=2),
            retry=retry_if_exception(is_rate_limited),
            sleep=self._sleep,
            before_sleep=self._log_retry,
        )

    def _log_retry(self, retry_state) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        console.warn(
            f"Gemini rate limit hit (attempt {retry_state.attempt_number}/{self.max_attempts}); "
            f"retrying in {delay:.0f}s…"
        )

    def _call(self, prompt: str, cfg: LLMConfig):
        model = genai.GenerativeModel(cfg.model)
        gen_cfg = {"temperature": cfg.temperature}
        if cfg.json_mode:
            gen_cfg["response_mime_type"] = "application/json"
        return model.generate_content(
            prompt,
            generation_config=genai.types.GenerationConfig(**gen_cfg),
        )

    def generate(self, prompt: str, cfg: LLMConfig) -> str:
        console.debug(f"Gemini generate model={cfg.model} json_mode={cfg.json_mode}")
        response = self._retrying()(self._call, prompt, cfg)
        # .text raises ValueError when the response has no usable candidate
        return response.text
