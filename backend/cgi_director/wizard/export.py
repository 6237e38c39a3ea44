"""Copy blocks and downloadable exports for a finished script."""

from __future__ import annotations

import json
from typing import Sequence

from ..ai.prompts import context_label
from .models import Clip, StepKind, WizardState

_SELECTION_TITLES = {
    StepKind.STYLE: "Style",
    StepKind.AUDIENCE: "Audience",
    StepKind.TONE: "VO Tone",
    StepKind.LANGUAGE: "VO Language",
}


def clip_copy_block(clip: Clip, total: int | None = None) -> str:
    """All textual fields of one clip as a single paste-ready block."""
    heading = f"Clip {clip.sequence_number}" + (f" / {total}" if total else "")
    return "\n".join(
        [
            f"{heading} | {clip.duration_seconds}s | Seed {clip.seed} | Transition: {clip.transition_style}",
            "",
            "Technical prompt:",
            clip.visual_description,
            "",
            f"On-screen text: {clip.on_screen_text}",
            "",
            "Voice-over:",
            clip.voiceover_script,
        ]
    )


def script_markdown(state: WizardState) -> str:
    title = context_label(state.context_text)
    lines = [f"# {title}", ""]
    for kind in StepKind:
        value = state.selection(kind)
        if value:
            lines.append(f"- **{_SELECTION_TITLES[kind]}:** {value}")
    total_seconds = sum(clip.duration_seconds for clip in state.clips)
    lines.extend([f"- **Clips:** {len(state.clips)} ({total_seconds}s total)", ""])

    for clip in state.clips:
        lines.extend(
            [
                f"## Clip {clip.sequence_number} / {len(state.clips)}",
                "",
                f"*{clip.duration_seconds}s | Seed `{clip.seed}` | Transition: {clip.transition_style}*",
                "",
                "**Technical prompt**",
                "",
                "```text",
                clip.visual_description,
                "```",
                "",
                f"**On-screen text:** {clip.on_screen_text}",
                "",
                f"**Voice-over:** {clip.voiceover_script}",
                "",
            ]
        )
    return "\n".join(lines).rstrip() + "\n"


def script_json(clips: Sequence[Clip]) -> str:
    return json.dumps([clip.to_wire() for clip in clips], ensure_ascii=False, indent=2)
