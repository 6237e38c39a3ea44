"""Deterministic offline output used when no API provider is configured.

Payloads use the same wire shape as live model responses so they go through
the gateway's normal validation path.
"""

from __future__ import annotations

import random
import zlib
from typing import Any, Dict, List

from ..wizard.models import StepKind
from .prompts import context_label

_OPTION_POOLS: Dict[StepKind, List[tuple[str, str]]] = {
    StepKind.STYLE: [
        ("Dark Luxury", "Low-key lighting, glossy blacks and slow macro reveals."),
        ("Hyper-Real Macro", "Extreme close-ups that turn texture into spectacle."),
        ("Floating Product Orbit", "Weightless product spinning through clean studio space."),
        ("Neon Night Street", "Rain-slick reflections and saturated signage glow."),
        ("Minimal Studio White", "Seamless white cyclorama with crisp soft shadows."),
        ("Golden Hour Heritage", "Warm sunlight, craftsmanship and slow dolly moves."),
        ("Explosive Breakdown", "Exploded-view assembly showing every component."),
    ],
    StepKind.AUDIENCE: [
        ("Young Professionals", "Urban 25-35 buyers who value status and convenience."),
        ("Gift Shoppers", "People buying for someone else around festive seasons."),
        ("Quality Seekers", "Buyers who research materials and pay for durability."),
        ("Students", "Price-aware first-time buyers drawn to trends."),
        ("Executives", "Senior decision makers who want understated premium."),
        ("Families", "Household buyers focused on value and reliability."),
    ],
    StepKind.TONE: [
        ("Deep Cinematic", "Slow, resonant delivery with dramatic pauses."),
        ("Confident Friendly", "Warm mid-tempo voice that sounds like advice from a peer."),
        ("Energetic Hype", "Fast, punchy delivery for high-energy cuts."),
        ("Calm Trustworthy", "Measured pace that signals reliability."),
        ("Whispered Luxury", "Close-mic intimacy for premium positioning."),
        ("Storyteller", "Narrative cadence that builds toward the reveal."),
    ],
    StepKind.LANGUAGE: [
        ("Urdu", "Native Urdu script voice-over for Pakistani audiences."),
        ("English", "Neutral English voice-over for international reach."),
        ("Hindi", "Devanagari voice-over for North Indian markets."),
        ("Arabic", "Modern Standard Arabic for Gulf audiences."),
        ("Punjabi", "Shahmukhi voice-over with regional warmth."),
    ],
}

_SHOTS = [
    "Extreme macro push-in across the {product} surface, volumetric rim light",
    "Slow 360-degree orbit of the {product} on a reflective plinth, {style} grade",
    "Male hand model lifts the {product} into frame, shallow depth of field",
    "Exploded-view CGI breakdown of the {product} reassembling in mid-air",
    "Hero wide shot of the {product} centred in a {style} environment, logo lock-up",
    "Particles resolve into the {product} silhouette, camera pulls back to reveal",
]
_TEXT = ["CRAFTED TO LAST", "MADE FOR YOU", "FEEL THE DIFFERENCE", "PURE PRECISION", "ORDER TODAY", "ONE OF A KIND"]
_TRANSITIONS = ["Match Cut", "Light Leak Wipe", "Whip Pan", "Dissolve", "Hard Cut", "Zoom Through"]


def _seed_for(*parts: str) -> int:
    key = "|".join(parts).strip().lower()
    return zlib.crc32(key.encode("utf-8"))


def demo_options(context_text: str, kind: StepKind, option_count: int) -> Dict[str, Any]:
    rng = random.Random(_seed_for(context_label(context_text), kind.value))
    pool = list(_OPTION_POOLS[kind])
    rng.shuffle(pool)
    chosen = pool[: max(1, min(option_count, len(pool)))]
    recommended = rng.randrange(len(chosen))
    return {
        "options": [
            {
                "id": idx,
                "label": label,
                "description": description,
                "recommended": idx - 1 == recommended,
            }
            for idx, (label, description) in enumerate(chosen, 1)
        ]
    }


def demo_script(
    context_text: str,
    style: str,
    audience: str,
    tone: str,
    language: str,
    min_clips: int,
    max_clips: int,
    min_duration: int,
    max_duration: int,
) -> Dict[str, Any]:
    product = context_label(context_text)
    rng = random.Random(_seed_for(product, style, audience, tone, language))
    clip_count = rng.randint(min_clips, max_clips)
    seed = f"{rng.randrange(10**7, 10**8)}"
    clips = []
    for number in range(1, clip_count + 1):
        shot = _SHOTS[(number - 1) % len(_SHOTS)].format(product=product, style=style.lower())
        clips.append(
            {
                "clipNumber": number,
                "globalSeed": seed,
                "visualDescription": f"{shot}. Audience: {audience}.",
                "visualTextEnglish": _TEXT[(number - 1) % len(_TEXT)],
                "voScript": f"[{language} VO, {tone.lower()}] {product}: line {number} of {clip_count}.",
                "durationSeconds": rng.randint(min_duration, max_duration),
                "transition": _TRANSITIONS[(number - 1) % len(_TRANSITIONS)],
            }
        )
    return {"clips": clips}
