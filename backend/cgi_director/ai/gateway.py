"""Options and script requests against the generative model.

Each public call is one request with one response schema. Nothing is retried
here; any failure surfaces as ``GenerationError`` straight away.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

import jsonschema

from ..config import DirectorSettings
from ..errors import EmptyResultError, GenerationError
from ..media import ImageAttachment
from ..wizard.models import Clip, Option, StepKind
from . import demo, schemas
from .prompts import SYSTEM_INSTRUCTION, build_options_prompt, build_script_prompt

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def _extract_message(resp: Any) -> Any:
    try:
        return resp["choices"][0]["message"]
    except (KeyError, IndexError, TypeError):
        pass
    try:
        return resp.choices[0].message  # type: ignore[attr-defined]
    except (AttributeError, IndexError, TypeError):
        return None


def _field(message: Any, name: str) -> Any:
    if isinstance(message, dict):
        return message.get(name)
    return getattr(message, name, None)


def _extract_content(resp: Any) -> str:
    """Handle both plain dict responses and SDK objects."""
    content = _field(_extract_message(resp), "content")
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            text_value = _field(item, "text")
            if isinstance(text_value, str):
                parts.append(text_value)
        return "\n".join(parts).strip()
    return str(content)


def _parse_items(text: str, key: str) -> List[Any]:
    """Parse a model reply into a list, accepting a wrapper object or a bare array."""
    cleaned = text.strip()
    fenced = _FENCE_RE.match(cleaned)
    if fenced:
        cleaned = fenced.group(1).strip()
    if not cleaned:
        return []

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise GenerationError(
            "The model returned an unreadable response.",
            detail=f"invalid JSON: {exc}",
        ) from exc

    if isinstance(data, dict):
        data = data.get(key)
    if not isinstance(data, list):
        raise GenerationError(
            "The model returned an unexpected response.",
            detail=f"expected a list under {key!r}, got {type(data).__name__}",
        )
    return data


def _validate(items: List[Any], schema: Dict[str, Any], what: str) -> None:
    try:
        jsonschema.validate(instance=items, schema=schema)
    except jsonschema.ValidationError as exc:
        path = "/".join(str(part) for part in exc.absolute_path) or "<root>"
        raise GenerationError(
            f"The model returned an invalid {what}.",
            detail=f"{what} schema violation at {path}: {exc.message}",
        ) from exc


class ScriptingGateway:
    """Builds prompts, calls the model and turns replies into typed records."""

    def __init__(self, ai_client: Any, settings: DirectorSettings | None = None):
        self._client = ai_client
        self.settings = settings or DirectorSettings()

    @property
    def demo_mode(self) -> bool:
        return getattr(self._client, "api_key", None) in (None, "")

    def _request(
        self,
        model: str,
        prompt: str,
        image: Optional[ImageAttachment],
        schema_name: str,
        schema: Dict[str, Any],
    ) -> str:
        content: list[Dict[str, Any]] = [{"type": "text", "text": prompt}]
        if image is not None:
            content.append({"type": "image_url", "image_url": {"url": image.to_data_url()}})

        logger.info(
            "Requesting %s from %s (image=%s)", schema_name, model, "yes" if image else "no"
        )
        try:
            resp = self._client.chat(
                model=model,
                messages=[
                    {"role": "system", "content": SYSTEM_INSTRUCTION},
                    {"role": "user", "content": content},
                ],
                temperature=self.settings.temperature,
                response_format=schemas.response_format(schema_name, schema),
            )
        except Exception as exc:
            logger.error("Model request %s failed: %s", schema_name, exc)
            raise GenerationError(
                "The server is not responding right now. Please try again.",
                detail=f"{type(exc).__name__}: {exc}",
            ) from exc

        message = _extract_message(resp)
        refusal = _field(message, "refusal")
        if refusal:
            raise GenerationError("The model declined this request.", detail=f"refusal: {refusal}")
        if message is None or _field(message, "content") is None:
            raise GenerationError(
                "The model returned an unexpected response.",
                detail=f"no message content in {schema_name} reply",
            )
        return _extract_content(resp)

    def fetch_options(
        self,
        context_text: str,
        step_kind: StepKind | str,
        image: Optional[ImageAttachment] = None,
    ) -> List[Option]:
        """Return fresh options for one choice step.

        Raises:
            EmptyResultError: if the reply parsed but held no options.
            GenerationError: on transport failure, refusal or malformed output.
        """
        kind = StepKind(step_kind)
        count = self.settings.option_count
        if self.demo_mode:
            items = demo.demo_options(context_text, kind, count)["options"]
        else:
            prompt = build_options_prompt(context_text, kind, count, has_image=image is not None)
            text = self._request(
                self.settings.options_model,
                prompt,
                image,
                f"{kind.value}_options",
                schemas.wrapped("options", schemas.option_list_schema()),
            )
            items = _parse_items(text, "options")

        if not items:
            raise EmptyResultError(
                "The model returned no suggestions. Please try again.",
                detail=f"empty {kind.value} option list",
            )
        _validate(items, schemas.option_list_schema(), "option list")
        options = self._build_options(items)
        logger.info("Received %d %s options", len(options), kind.value)
        return options

    @staticmethod
    def _build_options(items: Sequence[Dict[str, Any]]) -> List[Option]:
        options: list[Option] = []
        recommended_seen = False
        for item in items:
            recommended = bool(item.get("recommended", False)) and not recommended_seen
            recommended_seen = recommended_seen or recommended
            options.append(
                Option(
                    id=int(item["id"]),
                    label=str(item["label"]).strip(),
                    description=str(item["description"]).strip(),
                    recommended=recommended,
                )
            )
        return options

    def fetch_script(
        self,
        context_text: str,
        style: str,
        audience: str,
        tone: str,
        language: Optional[str] = None,
        image: Optional[ImageAttachment] = None,
    ) -> List[Clip]:
        """Return the ordered clip script for the chosen style, audience, tone and language.

        Raises:
            EmptyResultError: if the reply parsed but held no clips.
            GenerationError: on transport failure, refusal, malformed output or a
                script that breaks numbering, duration or seed rules.
        """
        cfg = self.settings
        language = (language or "").strip() or cfg.default_language
        list_schema = schemas.clip_list_schema(cfg.min_clip_seconds, cfg.max_clip_seconds)

        if self.demo_mode:
            items = demo.demo_script(
                context_text, style, audience, tone, language,
                cfg.min_clips, cfg.max_clips, cfg.min_clip_seconds, cfg.max_clip_seconds,
            )["clips"]
        else:
            prompt = build_script_prompt(
                context_text, style, audience, tone, language,
                cfg.min_clips, cfg.max_clips, cfg.min_clip_seconds, cfg.max_clip_seconds,
                has_image=image is not None,
            )
            text = self._request(
                cfg.script_model,
                prompt,
                image,
                "clip_script",
                schemas.wrapped("clips", list_schema),
            )
            items = _parse_items(text, "clips")

        if not items:
            raise EmptyResultError(
                "The model returned an empty script. Please try again.",
                detail="empty clip list",
            )
        _validate(items, list_schema, "clip script")
        clips = sorted((Clip.from_wire(item) for item in items), key=lambda c: c.sequence_number)
        self._check_script(clips)
        logger.info("Received %d clips (seed %s)", len(clips), clips[0].seed)
        return clips

    def _check_script(self, clips: Sequence[Clip]) -> None:
        cfg = self.settings
        numbers = [clip.sequence_number for clip in clips]
        if numbers != list(range(1, len(clips) + 1)):
            raise GenerationError(
                "The model returned an invalid clip script.",
                detail=f"clip numbers are not contiguous from 1: {numbers}",
            )
        if not cfg.min_clips <= len(clips) <= cfg.max_clips:
            raise GenerationError(
                "The model returned an invalid clip script.",
                detail=f"expected {cfg.min_clips}-{cfg.max_clips} clips, got {len(clips)}",
            )
        seeds = {clip.seed for clip in clips}
        if len(seeds) != 1 or "" in seeds:
            raise GenerationError(
                "The model returned an invalid clip script.",
                detail=f"clips must share one non-empty seed, got {sorted(seeds)}",
            )
