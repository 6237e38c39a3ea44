"""Central OpenAI-compatible client wrapper with ordered provider failover."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence

from openai import OpenAI

logger = logging.getLogger(__name__)

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True)
class _Provider:
    """Provider configuration for a single OpenAI-compatible endpoint."""

    api_key: str
    base_url: str | None = None
    chat_model_override: str | None = None


def is_google_key(api_key: str | None) -> bool:
    return bool(api_key and api_key.startswith("AIza"))


def resolve_base_url(api_key: str | None, base_url: str | None) -> str | None:
    """Google API keys talk to Gemini's OpenAI-compatible endpoint unless told otherwise."""
    if base_url:
        return base_url
    if is_google_key(api_key):
        return GEMINI_OPENAI_BASE_URL
    return None


def describe_endpoint(base_url: str | None) -> str:
    base = (base_url or "").lower()
    if "generativelanguage.googleapis.com" in base:
        return "Gemini"
    if not base or "openai.com" in base:
        return "OpenAI"
    return "Custom"


class OpenAIClient:
    """Thin wrapper around OpenAI-compatible providers.

    With no provider configured the client is in demo mode and callers are
    expected to produce offline output themselves.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        fallback_configs: Sequence[Dict[str, str | None]] | None = None,
        timeout: float | None = None,
        chat_model_override: str | None = None,
    ):
        primary = {"api_key": api_key, "base_url": base_url, "chat_model_override": chat_model_override}
        self._providers = self._build_providers([primary, *(fallback_configs or [])])
        self.api_key = self._providers[0].api_key if self._providers else None
        self.base_url = self._providers[0].base_url if self._providers else base_url
        self.timeout = timeout or DEFAULT_TIMEOUT_SECONDS
        self._clients: Dict[tuple[str, str | None], OpenAI] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _clean(value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        return stripped or None

    def _build_providers(self, configs: Sequence[Dict[str, str | None]]) -> List[_Provider]:
        providers: list[_Provider] = []
        seen: set[tuple[str, str | None, str | None]] = set()

        for cfg in configs:
            key = self._clean(cfg.get("api_key"))
            if not key:
                continue
            provider = _Provider(
                api_key=key,
                base_url=resolve_base_url(key, self._clean(cfg.get("base_url"))),
                chat_model_override=self._clean(cfg.get("chat_model_override")),
            )
            marker = (provider.api_key, provider.base_url, provider.chat_model_override)
            if marker in seen:
                continue
            providers.append(provider)
            seen.add(marker)

        return providers

    @property
    def demo_mode(self) -> bool:
        return not self._providers

    @property
    def provider_names(self) -> List[str]:
        return [describe_endpoint(p.base_url) for p in self._providers]

    def _get_live_client(self, provider: _Provider) -> OpenAI:
        client_key = (provider.api_key, provider.base_url)
        client = self._clients.get(client_key)
        if not client:
            client = OpenAI(api_key=provider.api_key, base_url=provider.base_url, timeout=self.timeout)
            self._clients[client_key] = client
        return client

    def _promote_provider(self, provider: _Provider) -> None:
        with self._lock:
            if not self._providers or self._providers[0] is provider or provider not in self._providers:
                return
            self._providers.remove(provider)
            self._providers.insert(0, provider)
            self.api_key = provider.api_key
            self.base_url = provider.base_url
        logger.info("Promoted %s provider to primary", describe_endpoint(provider.base_url))

    def _call_with_fallback(self, call: Callable[[Any, _Provider], Any]) -> Any:
        if not self._providers:
            raise RuntimeError("No API provider configured; set OPENAI_API_KEY or GEMINI_API_KEY.")

        with self._lock:
            providers = list(self._providers)

        last_error: Exception | None = None
        for idx, provider in enumerate(providers):
            try:
                client = self._get_live_client(provider)
                response = call(client, provider)
                self._promote_provider(provider)
                return response
            except Exception as exc:
                logger.warning(
                    "Provider %s (%d/%d) failed: %s",
                    describe_endpoint(provider.base_url),
                    idx + 1,
                    len(providers),
                    exc,
                )
                last_error = exc

        if last_error is None:
            raise RuntimeError("Provider chain is empty.")
        raise last_error

    def chat(self, messages: List[Dict[str, Any]], model: str | None = None, **kwargs) -> Any:
        """Call provider chat endpoint with ordered API-key fallback."""

        def _chat_call(client: Any, provider: _Provider) -> Any:
            chosen_model = provider.chat_model_override or model
            return client.chat.completions.create(messages=messages, model=chosen_model, **kwargs)

        return self._call_with_fallback(_chat_call)
