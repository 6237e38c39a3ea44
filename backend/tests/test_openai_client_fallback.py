"""Tests for ordered API fallback in OpenAIClient."""

import pytest

from cgi_director.ai import openai_client as openai_client_module
from cgi_director.ai.openai_client import OpenAIClient, describe_endpoint, resolve_base_url


class _FakeCompletions:
    def __init__(self, api_key: str):
        self._api_key = api_key

    def create(self, messages, model: str, **kwargs):
        if self._api_key.startswith("bad-"):
            raise RuntimeError(f"{self._api_key} failed")
        return {
            "choices": [{"message": {"role": "assistant", "content": "ok"}}],
            "model": model,
            "messages": messages,
            "kwargs": kwargs,
        }


class _FakeChat:
    def __init__(self, api_key: str):
        self.completions = _FakeCompletions(api_key)


class _FakeOpenAI:
    created = []

    def __init__(self, api_key: str, base_url=None, timeout=None):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.chat = _FakeChat(api_key)
        _FakeOpenAI.created.append(self)


@pytest.fixture(autouse=True)
def _fake_openai(monkeypatch):
    _FakeOpenAI.created = []
    monkeypatch.setattr(openai_client_module, "OpenAI", _FakeOpenAI)


def test_chat_uses_fallback_provider_and_model_override():
    client = OpenAIClient(
        api_key="bad-key",
        base_url="https://api.openai.com/v1",
        fallback_configs=[
            {
                "api_key": "AIza-fallback",
                "base_url": None,
                "chat_model_override": "gemini-3-flash-preview",
            }
        ],
        timeout=15,
    )

    response = client.chat(
        messages=[{"role": "user", "content": "hello"}],
        model="gpt-4.1-mini",
        temperature=0.2,
    )

    assert response["model"] == "gemini-3-flash-preview"
    assert response["kwargs"] == {"temperature": 0.2}
    assert client.api_key == "AIza-fallback"
    assert client.base_url == openai_client_module.GEMINI_OPENAI_BASE_URL
    assert all(fake.timeout == 15 for fake in _FakeOpenAI.created)


def test_promoted_provider_is_tried_first_next_time():
    client = OpenAIClient(api_key="bad-primary", fallback_configs=[{"api_key": "sk-good"}])

    client.chat(messages=[], model="m")
    _FakeOpenAI.created = []
    client.chat(messages=[], model="m")

    assert [fake.api_key for fake in _FakeOpenAI.created] == []
    assert client.provider_names == ["OpenAI", "OpenAI"]
    assert getattr(client, "_providers")[0].api_key == "sk-good"


def test_last_error_is_raised_when_every_provider_fails():
    client = OpenAIClient(api_key="bad-one", fallback_configs=[{"api_key": "bad-two"}])

    with pytest.raises(RuntimeError, match="bad-two failed"):
        client.chat(messages=[], model="m")


def test_no_key_means_demo_mode():
    client = OpenAIClient(api_key="  ", fallback_configs=[{"api_key": None}])

    assert client.demo_mode
    assert client.api_key is None
    with pytest.raises(RuntimeError):
        client.chat(messages=[], model="m")


def test_endpoint_helpers():
    assert resolve_base_url("AIzaXYZ", None) == openai_client_module.GEMINI_OPENAI_BASE_URL
    assert resolve_base_url("AIzaXYZ", "https://proxy.example.com") == "https://proxy.example.com"
    assert resolve_base_url("sk-abc", None) is None
    assert describe_endpoint(None) == "OpenAI"
    assert describe_endpoint("https://proxy.example.com") == "Custom"


def test_promotion_mid_call_does_not_reorder_the_running_attempt():
    client = OpenAIClient(
        api_key="bad-one",
        fallback_configs=[{"api_key": "bad-two"}, {"api_key": "sk-good"}],
    )
    good = getattr(client, "_providers")[2]
    tried = []

    def _call(_live_client, provider):
        tried.append(provider.api_key)
        if provider.api_key == "bad-one":
            # Another session succeeds on the last provider meanwhile.
            client._promote_provider(good)
        if provider.api_key.startswith("bad-"):
            raise RuntimeError("down")
        return "ok"

    assert client._call_with_fallback(_call) == "ok"
    assert tried == ["bad-one", "bad-two", "sk-good"]
    assert [p.api_key for p in getattr(client, "_providers")] == ["sk-good", "bad-one", "bad-two"]
