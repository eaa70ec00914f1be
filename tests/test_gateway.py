from collections import deque
from types import SimpleNamespace

import pytest
import requests
from google.api_core.exceptions import InvalidArgument, ResourceExhausted

import backends_ollama
import llm_gateway
from backends import ConfigurationError, JSON_ONLY_INSTRUCTION
from backends_gemini import GeminiClient
from config import LLMSettings
from menu import QUIT


def _no_menu(spec):
    raise AssertionError(f"menu should not be shown: {spec.title}")


class _ScriptedMenu:
    def __init__(self, answer):
        self.answer = answer
        self.specs = []

    def __call__(self, spec):
        self.specs.append(spec)
        return self.answer


def _gemini_outcomes(monkeypatch, outcomes):
    queue = deque(outcomes)
    calls = []

    def fake_call(self, prompt, cfg):
        calls.append({"prompt": prompt, "cfg": cfg})
        outcome = queue.popleft()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome if not isinstance(outcome, str) else SimpleNamespace(text=outcome)

    monkeypatch.setattr(GeminiClient, "_call", fake_call)
    return calls


def _gemini_gateway(sleeps):
    gw = llm_gateway.LLMGateway(
        settings=LLMSettings(provider_override="gemini", gemini_api_key="test-key"),
        menu=_no_menu,
        sleep=sleeps.append,
    )
    gw.initialize(interactive=True)
    return gw


# ---- provider selection ----

def test_env_override_is_normalised_and_skips_menu():
    gw = llm_gateway.LLMGateway(settings=LLMSettings(provider_override="OLLAMA"), menu=_no_menu)
    assert gw.initialize(interactive=True) == "ollama"
    assert gw.provider == "ollama"


def test_env_override_is_not_validated():
    gw = llm_gateway.LLMGateway(settings=LLMSettings(provider_override=" Claude "), menu=_no_menu)
    assert gw.initialize() == "claude"


def test_env_override_read_from_environment(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "Gemini")
    gw = llm_gateway.LLMGateway(menu=_no_menu)
    assert gw.initialize() == "gemini"


def test_non_interactive_defaults_to_gemini_without_menu():
    gw = llm_gateway.LLMGateway(settings=LLMSettings(), menu=_no_menu)
    assert gw.initialize(interactive=False) == "gemini"


def test_menu_lists_local_provider_first():
    menu = _ScriptedMenu(llm_gateway.GEMINI_CHOICE)
    gw = llm_gateway.LLMGateway(settings=LLMSettings(), menu=menu)
    assert gw.initialize(interactive=True) == "gemini"
    assert len(menu.specs) == 1
    assert menu.specs[0].options == [llm_gateway.OLLAMA_CHOICE, llm_gateway.GEMINI_CHOICE]
    assert menu.specs[0].multi_select is False


def test_choosing_ollama_probes_and_keeps_it_when_unreachable(monkeypatch):
    probes = []

    def fake_probe(self):
        probes.append(True)
        return False, "http://localhost:11434"

    monkeypatch.setattr(llm_gateway.LLMGateway, "test_ollama_connection", fake_probe)
    gw = llm_gateway.LLMGateway(settings=LLMSettings(), menu=_ScriptedMenu(llm_gateway.OLLAMA_CHOICE))
    assert gw.initialize(interactive=True) == "ollama"
    assert probes == [True]


def test_quit_from_provider_menu_falls_back_to_gemini():
    gw = llm_gateway.LLMGateway(settings=LLMSettings(), menu=_ScriptedMenu(QUIT))
    assert gw.initialize(interactive=True) == "gemini"


def test_provider_is_set_only_once():
    menu = _ScriptedMenu(llm_gateway.GEMINI_CHOICE)
    gw = llm_gateway.LLMGateway(settings=LLMSettings(), menu=menu)
    gw.initialize(interactive=True)
    gw.settings.provider_override = "ollama"
    assert gw.initialize(interactive=True) == "gemini"
    assert len(menu.specs) == 1


def test_test_ollama_connection_uses_settings(monkeypatch):
    seen = {}

    def fake_get(url, timeout=None):
        seen.update(url=url, timeout=timeout)
        return SimpleNamespace(text="Ollama is running")

    monkeypatch.setattr(backends_ollama.requests, "get", fake_get)
    gw = llm_gateway.LLMGateway(settings=LLMSettings(ollama_base_url="http://gpu-box:11434"))
    assert gw.test_ollama_connection() == (True, "http://gpu-box:11434")
    assert seen == {"url": "http://gpu-box:11434", "timeout": 5.0}


# ---- generate ----

def test_generate_before_initialize_raises():
    gw = llm_gateway.LLMGateway(settings=LLMSettings())
    with pytest.raises(RuntimeError):
        gw.generate("hello")


def test_generate_rejects_empty_prompt():
    gw = _gemini_gateway([])
    with pytest.raises(ValueError):
        gw.generate("")


def test_rate_limited_twice_then_success(monkeypatch):
    sleeps = []
    calls = _gemini_outcomes(monkeypatch, [ResourceExhausted("429"), ResourceExhausted("429"), "final answer"])
    gw = _gemini_gateway(sleeps)
    assert gw.generate("write something") == "final answer"
    assert len(calls) == 3
    assert sum(sleeps) == 6


def test_rate_limited_three_times_gives_no_result(monkeypatch):
    sleeps = []
    calls = _gemini_outcomes(monkeypatch, [ResourceExhausted("429")] * 4)
    gw = _gemini_gateway(sleeps)
    assert gw.generate("write something") is None
    assert len(calls) == 3
    assert sleeps == [2, 4]


def test_other_error_gives_no_result_without_retry(monkeypatch):
    sleeps = []
    calls = _gemini_outcomes(monkeypatch, [InvalidArgument("API key not valid"), "unused"])
    gw = _gemini_gateway(sleeps)
    assert gw.generate("write something") is None
    assert len(calls) == 1
    assert sleeps == []


def test_empty_candidate_list_gives_no_result(monkeypatch):
    class NoCandidates:
        @property
        def text(self):
            raise ValueError("response has no candidates")

    _gemini_outcomes(monkeypatch, [NoCandidates()])
    gw = _gemini_gateway([])
    assert gw.generate("write something") is None


def test_json_mode_strips_fence_and_sets_flags(monkeypatch):
    calls = _gemini_outcomes(monkeypatch, ['```json\n{"subject": "feat: add menu"}\n```'])
    gw = _gemini_gateway([])
    out = gw.generate("Describe", system_prompt="Be brief.", json_mode=True, temperature=0.3)
    assert out == '{"subject": "feat: add menu"}'
    assert calls[0]["prompt"] == f"Be brief.\n\nDescribe\n\n{JSON_ONLY_INSTRUCTION}"
    cfg = calls[0]["cfg"]
    assert cfg.json_mode is True
    assert cfg.temperature == 0.3
    assert cfg.model == "gemini-2.0-flash"


def test_model_override(monkeypatch):
    calls = _gemini_outcomes(monkeypatch, ["ok"])
    gw = _gemini_gateway([])
    gw.generate("hi", model="gemini-2.5-pro")
    assert calls[0]["cfg"].model == "gemini-2.5-pro"


def test_missing_gemini_key_is_a_hard_failure():
    gw = llm_gateway.LLMGateway(settings=LLMSettings(provider_override="gemini", gemini_api_key=None))
    gw.initialize()
    with pytest.raises(ConfigurationError):
        gw.generate("hi")


def test_unknown_provider_gives_no_result():
    gw = llm_gateway.LLMGateway(settings=LLMSettings(provider_override="claude"))
    gw.initialize()
    assert gw.generate("hi") is None


def test_ollama_generate_through_gateway(monkeypatch):
    captured = {}

    class Resp:
        def raise_for_status(self):
            pass

        def json(self):
            return {"response": "```\nplain text\n```"}

    def fake_post(url, json=None, timeout=None):
        captured.update(url=url, json=json, timeout=timeout)
        return Resp()

    monkeypatch.setattr(backends_ollama.requests, "post", fake_post)
    gw = llm_gateway.LLMGateway(settings=LLMSettings(provider_override="ollama"))
    gw.initialize()
    assert gw.generate("hi", json_mode=True) == "plain text"
    assert captured["url"] == "http://localhost:11434/api/generate"
    assert captured["timeout"] == 200.0
    assert captured["json"]["model"] == "llama3:8b"
    assert captured["json"]["format"] == "json"


def test_ollama_connection_refused_gives_no_result(monkeypatch):

    def refuse(*a, **k):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(backends_ollama.requests, "post", refuse)
    gw = llm_gateway.LLMGateway(settings=LLMSettings(provider_override="ollama"))
    gw.initialize()
    assert gw.generate("hi") is None


def test_blank_reply_gives_no_result(monkeypatch):
    _gemini_outcomes(monkeypatch, ["```\n```"])
    gw = _gemini_gateway([])
    assert gw.generate("hi") is None
