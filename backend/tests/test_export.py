"""Script export helper tests."""

import json

from cgi_director.wizard.export import clip_copy_block, script_json, script_markdown
from cgi_director.wizard.models import Clip, WizardState


def _clips():
    return [
        Clip(1, "Macro push-in across stitched leather", "CRAFTED TO LAST", "یہ بٹوا آپ کے لیے", 8, "48213977", "Match Cut"),
        Clip(2, "Slow orbit on a black plinth", "ORDER TODAY", "ابھی آرڈر کریں", 10, "48213977", "Hard Cut"),
    ]


def test_clip_copy_block_contains_every_field():
    block = clip_copy_block(_clips()[0], total=2)

    assert block.startswith("Clip 1 / 2 | 8s | Seed 48213977 | Transition: Match Cut")
    assert "Macro push-in across stitched leather" in block
    assert "On-screen text: CRAFTED TO LAST" in block
    assert block.endswith("یہ بٹوا آپ کے لیے")


def test_script_markdown_lists_selections_and_clips():
    state = WizardState(
        context_text="Leather Wallet",
        selections={"style": "Dark Luxury", "audience": "Executives", "tone": "Deep Cinematic"},
        clips=_clips(),
    )

    text = script_markdown(state)

    assert text.startswith("# Leather Wallet\n")
    assert "- **Style:** Dark Luxury" in text
    assert "- **VO Tone:** Deep Cinematic" in text
    assert "VO Language" not in text
    assert "- **Clips:** 2 (18s total)" in text
    assert "## Clip 2 / 2" in text


def test_script_markdown_uses_visual_context_title_for_image_only():
    text = script_markdown(WizardState(clips=_clips()))

    assert text.startswith("# Visual Context\n")


def test_script_json_uses_wire_names_and_keeps_unicode():
    payload = script_json(_clips())

    data = json.loads(payload)
    assert [item["clipNumber"] for item in data] == [1, 2]
    assert data[0]["globalSeed"] == "48213977"
    assert data[1]["durationSeconds"] == 10
    assert "ابھی آرڈر کریں" in payload
    assert Clip.from_wire(data[0]) == _clips()[0]
