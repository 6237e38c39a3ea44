"""Prompt text for the options and script requests."""

from __future__ import annotations

import textwrap

from ..wizard.models import StepKind

VISUAL_CONTEXT_LABEL = "Visual Context"

SYSTEM_INSTRUCTION = textwrap.dedent(
    """
    You are "CGI Director Pro", a context-aware commercial scripting assistant.

    Rules:
    1. Options are numbered 1, 2, 3... and tailored to the product or service given.
    2. Never depict real female human figures. Use full-body mannequins for
       female-oriented products.
    3. Use one global seed and one consistent male voice for every clip of a script.
    4. On-screen text is English only. The voice-over script is written in the
       requested voice-over language, in its native script.
    5. Technical prompts are English CGI directions optimised for video generators.
    6. Respond with JSON that matches the supplied schema and nothing else.
    """
).strip()

_STEP_REQUIREMENTS = {
    StepKind.STYLE: "visual styles (lighting, camera language, CGI look and mood)",
    StepKind.AUDIENCE: "target audience personas who would buy this",
    StepKind.TONE: "male voice-over tones (delivery, energy, pacing)",
    StepKind.LANGUAGE: "voice-over languages that suit the product's likely market",
}


def context_label(context_text: str) -> str:
    return context_text.strip() or VISUAL_CONTEXT_LABEL


def build_options_prompt(
    context_text: str,
    kind: StepKind,
    option_count: int,
    has_image: bool = False,
) -> str:
    image_note = " (analyse the attached reference image as visual context)" if has_image else ""
    return textwrap.dedent(
        f"""
        Product/Service: "{context_label(context_text)}"{image_note}.
        Requirement: generate {option_count} context-specific {_STEP_REQUIREMENTS[kind]}.
        Number the options with ids 1..{option_count}. Give each a short label and a
        one-sentence description. Mark at most one option as recommended.
        """
    ).strip()


def build_script_prompt(
    context_text: str,
    style: str,
    audience: str,
    tone: str,
    language: str,
    min_clips: int,
    max_clips: int,
    min_duration: int,
    max_duration: int,
    has_image: bool = False,
) -> str:
    lines = [
        f"Generate {min_clips}-{max_clips} CGI director clip blocks for:",
        f"Product: {context_label(context_text)}",
        f"Selected Style: {style}",
        f"Target Audience: {audience}",
        f"Male VO Tone: {tone}",
        f"VO Language: {language}",
    ]
    if has_image:
        lines.append(
            "Incorporate mood, lighting and visual elements from the attached reference "
            "image into every visualDescription."
        )
    lines.extend(
        [
            "",
            "Constraints:",
            "- clipNumber runs 1..N with no gaps.",
            f"- durationSeconds is an integer between {min_duration} and {max_duration}.",
            "- globalSeed is one random 8-digit string, identical in every clip.",
            "- visualDescription is an English technical CGI prompt, male-only "
            "(mannequins for female-oriented products).",
            "- visualTextEnglish is short English on-screen copy.",
            f"- voScript is the voice-over segment written in {language}.",
            "- transition names the cut or transition into the next clip.",
        ]
    )
    return "\n".join(lines)
