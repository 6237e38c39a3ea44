"""Backend application factory.

Returns a lightweight "service container" dictionary of wired dependencies.
The Streamlit page builds it once per process and creates one wizard
controller per browser session from ``controller_factory``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

from .ai.gateway import ScriptingGateway
from .ai.openai_client import OpenAIClient, describe_endpoint, resolve_base_url
from .config import DirectorSettings, load_settings, read_env
from .wizard.controller import WizardController

logger = logging.getLogger(__name__)

# Ensure local `.env` values are available when running via Streamlit/CLI.
load_dotenv(Path(__file__).resolve().parents[2] / ".env", override=False)

FALLBACK_KEY_PREFIX = "OPENAI_API_KEY_FALLBACK_"


def _ordered_provider_chain(settings: DirectorSettings) -> list[dict[str, str | None]]:
    providers: list[dict[str, str | None]] = []
    seen: set[tuple[str, str | None, str | None]] = set()

    def _append_provider(
        api_key: str | None,
        base_url: str | None,
        chat_model_override: str | None = None,
    ) -> None:
        if not api_key:
            return
        resolved_base_url = resolve_base_url(api_key, base_url)
        resolved_model = chat_model_override
        if not resolved_model and describe_endpoint(resolved_base_url) == "OpenAI":
            # OpenAI endpoints cannot serve the default Gemini model names.
            configured = f"{settings.options_model} {settings.script_model}".lower()
            if "gemini" in configured:
                resolved_model = settings.openai_model
        provider = {
            "api_key": api_key,
            "base_url": resolved_base_url,
            "chat_model_override": resolved_model,
        }
        marker = (api_key, resolved_base_url, resolved_model)
        if marker in seen:
            return
        providers.append(provider)
        seen.add(marker)

    _append_provider(
        read_env("OPENAI_API_KEY") or read_env("GEMINI_API_KEY"),
        read_env("OPENAI_BASE_URL"),
    )

    # Ordered fallback chain: OPENAI_API_KEY_FALLBACK_1, _2, ...
    indexed_names = sorted(
        (
            name
            for name in os.environ
            if name.startswith(FALLBACK_KEY_PREFIX) and name[len(FALLBACK_KEY_PREFIX) :].isdigit()
        ),
        key=lambda name: int(name[len(FALLBACK_KEY_PREFIX) :]),
    )
    for name in indexed_names:
        idx = name[len(FALLBACK_KEY_PREFIX) :]
        _append_provider(
            read_env(name),
            read_env(f"OPENAI_BASE_URL_FALLBACK_{idx}"),
            read_env(f"OPENAI_MODEL_FALLBACK_{idx}"),
        )
    return providers


def create_app(settings: DirectorSettings | None = None) -> Dict[str, Any]:
    """Create the backend dependency container."""
    settings = settings or load_settings()
    provider_chain = _ordered_provider_chain(settings)

    primary = provider_chain[0] if provider_chain else {}
    timeout = read_env("OPENAI_TIMEOUT_SECONDS")
    ai_client = OpenAIClient(
        api_key=primary.get("api_key"),
        base_url=primary.get("base_url"),
        fallback_configs=provider_chain[1:],
        timeout=float(timeout) if timeout else None,
        chat_model_override=primary.get("chat_model_override"),
    )
    gateway = ScriptingGateway(ai_client, settings)

    if ai_client.demo_mode:
        logger.info("No API key configured; running in demo mode")
    else:
        logger.info("Provider chain: %s", " -> ".join(ai_client.provider_names))

    def controller_factory() -> WizardController:
        return WizardController(
            gateway,
            include_language_step=settings.include_language_step,
            failure_policy=settings.failure_policy,
        )

    return {
        "settings": settings,
        "ai_client": ai_client,
        "gateway": gateway,
        "controller_factory": controller_factory,
    }
