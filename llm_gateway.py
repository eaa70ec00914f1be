# llm_gateway.py
import time
from typing import Callable, Optional, Tuple

from backends import (
    BaseLLMClient,
    GenerationRequest,
    LLMConfig,
    Provider,
    build_prompt,
    describe_error,
    strip_code_fences,
)
from backends_factory import default_model, make_client
from backends_ollama import OllamaClient
from config import LLMSettings
from menu import MenuSpec, show_menu
import console

OLLAMA_CHOICE = "Ollama (local, free)"
GEMINI_CHOICE = "Gemini (cloud API)"


class LLMGateway:
    """
    One generate() surface over the local (Ollama) and cloud (Gemini) providers.

    The provider is chosen once by initialize() and stays fixed for the
    lifetime of the gateway.
    """

    def __init__(self, settings: Optional[LLMSettings] = None,
                 menu: Callable[[MenuSpec], object] = show_menu,
                 sleep: Callable[[float], None] = time.sleep):
        self.settings = settings or LLMSettings.from_env()
        self._menu = menu
        self._sleep = sleep
        self._provider: Optional[str] = None
        self._client: Optional[BaseLLMClient] = None

    @property
    def provider(self) -> Optional[str]:
        return self._provider

    @property
    def is_initialized(self) -> bool:
        return self._provider is not None

    def initialize(self, interactive: bool = True) -> str:
        if self._provider is not None:
            return self._provider

        override = self.settings.provider_override
        if override:
            self._provider = override.strip().lower()
            console.info(f"LLM provider from LLM_PROVIDER: {self._provider}")
            return self._provider

        if not interactive:
            self._provider = Provider.GEMINI.value
            console.warn("Non-interactive mode: defaulting LLM provider to gemini.")
            return self._provider

        choice = self._menu(MenuSpec("Select LLM provider", [OLLAMA_CHOICE, GEMINI_CHOICE]))
        if choice == OLLAMA_CHOICE:
            self._provider = Provider.OLLAMA.value
            ok, url = self.test_ollama_connection()
            if ok:
                console.success(f"Ollama is running at {url}")
            else:
                console.warn(f"Ollama is not reachable at {url}. Start it with `ollama serve` before generating.")
        elif choice == GEMINI_CHOICE:
            self._provider = Provider.GEMINI.value
        else:
            self._provider = Provider.GEMINI.value
            console.warn("No provider chosen; defaulting to gemini.")
        console.info(f"LLM provider: {self._provider}")
        return self._provider

    def test_ollama_connection(self) -> Tuple[bool, str]:
        client = OllamaClient(base_url=self.settings.ollama_base_url, timeout=self.settings.ollama_timeout)
        return client.check_connection()

    def _get_client(self) -> Optional[BaseLLMClient]:
        if self._client is None:
            try:
                self._client = make_client(self._provider, self.settings, sleep=self._sleep)
            except ValueError as e:
                console.error(str(e))
                return None
        return self._client

    def generate(self, prompt: str, system_prompt: Optional[str] = None,
                 temperature: float = 0.7, json_mode: bool = False,
                 model: Optional[str] = None) -> Optional[str]:
        """
        Returns the provider's text with any markdown fence removed, or None
        when the provider call failed. Missing credentials raise ConfigurationError.
        """
        if self._provider is None:
            raise RuntimeError("LLMGateway.initialize() must be called before generate()")

        request = GenerationRequest(
            prompt=prompt,
            system_prompt=system_prompt,
            temperature=temperature,
            json_mode=json_mode,
            model_override=model,
        )
        client = self._get_client()
        if client is None:
            return None

        cfg = LLMConfig(
            model=request.model_override or default_model(self._provider, self.settings),
            temperature=request.temperature,
            json_mode=request.json_mode,
        )
        try:
            raw = client.generate(build_prompt(request), cfg)
        except Exception as e:
            console.error(f"{self._provider} request failed: {describe_error(e)}")
            return None

        text = strip_code_fences(raw or "")
        if not text:
            console.warn(f"{self._provider} returned an empty response.")
            return None
        return text
