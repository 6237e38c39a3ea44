"""Scripting gateway tests with a fake chat client."""

import json

import pytest

from cgi_director.ai.gateway import ScriptingGateway
from cgi_director.config import DirectorSettings
from cgi_director.errors import EmptyResultError, GenerationError
from cgi_director.media import ImageAttachment
from cgi_director.wizard.models import StepKind


class _FakeAIClient:
    api_key = "test-key"

    def __init__(self, content=None, error=None, refusal=None, response=None):
        self.content = content
        self.response = response
        self.error = error
        self.refusal = refusal
        self.calls = []

    def chat(self, messages, model=None, **kwargs):
        self.calls.append({"messages": messages, "model": model, **kwargs})
        if self.error:
            raise self.error
        if self.response is not None:
            return self.response
        return {
            "choices": [
                {"message": {"role": "assistant", "content": self.content, "refusal": self.refusal}}
            ]
        }


def _options(count=5, recommended=(2,)):
    return [
        {
            "id": idx,
            "label": f"Look {idx}",
            "description": f"Description {idx}",
            "recommended": idx in recommended,
        }
        for idx in range(1, count + 1)
    ]


def _clip(number, seed="48213977", duration=9):
    return {
        "clipNumber": number,
        "globalSeed": seed,
        "visualDescription": f"Macro shot {number}",
        "visualTextEnglish": "CRAFTED",
        "voScript": "یہ بٹوا",
        "durationSeconds": duration,
        "transition": "Match Cut",
    }


def _gateway(content=None, **kwargs):
    client = _FakeAIClient(content=content, **kwargs)
    return ScriptingGateway(client, DirectorSettings()), client


def test_fetch_options_parses_wrapper_object():
    gateway, client = _gateway(json.dumps({"options": _options()}))

    options = gateway.fetch_options("Leather Wallet", StepKind.STYLE)

    assert [opt.label for opt in options] == [f"Look {idx}" for idx in range(1, 6)]
    assert [opt.recommended for opt in options] == [False, True, False, False, False]
    call = client.calls[0]
    assert call["model"] == DirectorSettings().options_model
    assert call["response_format"]["json_schema"]["name"] == "style_options"
    assert call["response_format"]["json_schema"]["strict"] is True
    assert call["messages"][0]["role"] == "system"
    assert "Leather Wallet" in call["messages"][1]["content"][0]["text"]


def test_fetch_options_accepts_fenced_bare_array():
    gateway, _ = _gateway("```json\n" + json.dumps(_options(3)) + "\n```")

    options = gateway.fetch_options("Leather Wallet", "audience")

    assert len(options) == 3


def test_only_first_recommended_flag_is_kept():
    gateway, _ = _gateway(json.dumps({"options": _options(recommended=(1, 3, 4))}))

    options = gateway.fetch_options("Leather Wallet", StepKind.TONE)

    assert [opt.id for opt in options if opt.recommended] == [1]


def test_strict_request_schema_drops_bounds_and_requires_every_field():
    gateway, client = _gateway(json.dumps({"clips": [_clip(n) for n in (1, 2, 3)]}))

    gateway.fetch_script("Leather Wallet", "Dark Luxury", "Executives", "Deep Cinematic", "Urdu")

    schema = client.calls[0]["response_format"]["json_schema"]["schema"]
    item = schema["properties"]["clips"]["items"]
    assert schema["additionalProperties"] is False
    assert item["additionalProperties"] is False
    assert set(item["required"]) == set(item["properties"])
    assert "minimum" not in item["properties"]["durationSeconds"]
    assert client.calls[0]["model"] == DirectorSettings().script_model


def test_image_is_sent_as_data_url_part():
    gateway, client = _gateway(json.dumps({"options": _options()}))
    image = ImageAttachment.from_upload("ref.png", b"\x89PNG\r\n\x1a\n1234")

    gateway.fetch_options("", StepKind.STYLE, image)

    parts = client.calls[0]["messages"][1]["content"]
    assert parts[1]["type"] == "image_url"
    assert parts[1]["image_url"]["url"].startswith("data:image/png;base64,")
    assert "Visual Context" in parts[0]["text"]


def test_empty_option_list_raises_empty_result():
    gateway, _ = _gateway(json.dumps({"options": []}))

    with pytest.raises(EmptyResultError):
        gateway.fetch_options("Leather Wallet", StepKind.STYLE)


def test_blank_string_reply_raises_empty_result():
    gateway, _ = _gateway("")

    with pytest.raises(EmptyResultError):
        gateway.fetch_options("Leather Wallet", StepKind.STYLE)


def test_malformed_json_raises_generation_error():
    gateway, _ = _gateway("{not json")

    with pytest.raises(GenerationError) as excinfo:
        gateway.fetch_options("Leather Wallet", StepKind.STYLE)

    assert not isinstance(excinfo.value, EmptyResultError)
    assert "invalid JSON" in excinfo.value.detail


def test_option_missing_label_is_rejected():
    items = _options()
    del items[2]["label"]
    gateway, _ = _gateway(json.dumps({"options": items}))

    with pytest.raises(GenerationError) as excinfo:
        gateway.fetch_options("Leather Wallet", StepKind.STYLE)

    assert "2" in excinfo.value.detail


def test_transport_error_becomes_generation_error():
    gateway, _ = _gateway(error=ConnectionError("connection reset"))

    with pytest.raises(GenerationError) as excinfo:
        gateway.fetch_options("Leather Wallet", StepKind.STYLE)

    assert str(excinfo.value) == "The server is not responding right now. Please try again."
    assert "connection reset" in excinfo.value.detail


def test_refusal_becomes_generation_error():
    gateway, _ = _gateway(content=None, refusal="cannot help")

    with pytest.raises(GenerationError, match="declined"):
        gateway.fetch_options("Leather Wallet", StepKind.STYLE)


def test_fetch_script_sorts_clips_by_number():
    gateway, _ = _gateway(json.dumps({"clips": [_clip(3), _clip(1), _clip(2)]}))

    clips = gateway.fetch_script("Leather Wallet", "Dark Luxury", "Executives", "Deep Cinematic", "Urdu")

    assert [clip.sequence_number for clip in clips] == [1, 2, 3]
    assert clips[0].voiceover_script == "یہ بٹوا"
    assert clips[0].seed == "48213977"


def test_missing_language_uses_default():
    gateway, client = _gateway(json.dumps({"clips": [_clip(n) for n in (1, 2, 3)]}))

    gateway.fetch_script("Leather Wallet", "Dark Luxury", "Executives", "Deep Cinematic", None)

    assert "VO Language: Urdu" in client.calls[0]["messages"][1]["content"][0]["text"]


@pytest.mark.parametrize(
    "clips",
    [
        [_clip(1), _clip(2), _clip(4)],
        [_clip(1), _clip(2), _clip(3, seed="11111111")],
        [_clip(1), _clip(2, duration=12), _clip(3)],
        [_clip(1), _clip(2)],
        [_clip(n) for n in range(1, 8)],
    ],
    ids=["gap", "seed-mismatch", "duration", "too-few", "too-many"],
)
def test_invalid_scripts_are_rejected(clips):
    gateway, _ = _gateway(json.dumps({"clips": clips}))

    with pytest.raises(GenerationError):
        gateway.fetch_script("Leather Wallet", "Dark Luxury", "Executives", "Deep Cinematic", "Urdu")


def test_empty_script_raises_empty_result():
    gateway, _ = _gateway(json.dumps({"clips": []}))

    with pytest.raises(EmptyResultError):
        gateway.fetch_script("Leather Wallet", "Dark Luxury", "Executives", "Deep Cinematic", "Urdu")


def test_demo_mode_never_calls_the_client():
    client = _FakeAIClient()
    client.api_key = None
    gateway = ScriptingGateway(client, DirectorSettings(option_count=4))

    options = gateway.fetch_options("Leather Wallet", StepKind.LANGUAGE)
    clips = gateway.fetch_script("Leather Wallet", "Dark Luxury", "Executives", "Deep Cinematic", "English")

    assert gateway.demo_mode
    assert client.calls == []
    assert len(options) == 4
    assert sum(opt.recommended for opt in options) == 1
    assert len({clip.seed for clip in clips}) == 1
    assert options == gateway.fetch_options("Leather Wallet", StepKind.LANGUAGE)


@pytest.mark.parametrize(
    "response",
    [
        {"choices": []},
        {"choices": [{"message": None}]},
        {"choices": [{"message": {"role": "assistant", "content": None}}]},
        {},
    ],
    ids=["no-choices", "no-message", "null-content", "no-body"],
)
def test_missing_reply_is_a_hard_failure(response):
    gateway, _ = _gateway(response=response)

    with pytest.raises(GenerationError) as excinfo:
        gateway.fetch_options("Leather Wallet", StepKind.STYLE)

    assert not isinstance(excinfo.value, EmptyResultError)
    assert str(excinfo.value) == "The model returned an unexpected response."


def test_whitespace_label_is_rejected():
    items = _options(2)
    items[0]["label"] = "   "
    gateway, _ = _gateway(json.dumps({"options": items}))

    with pytest.raises(GenerationError) as excinfo:
        gateway.fetch_options("Leather Wallet", StepKind.STYLE)

    assert "0/label" in excinfo.value.detail


def test_whitespace_voiceover_is_rejected():
    clips = [_clip(n) for n in (1, 2, 3)]
    clips[1]["voScript"] = " \n "
    gateway, _ = _gateway(json.dumps({"clips": clips}))

    with pytest.raises(GenerationError) as excinfo:
        gateway.fetch_script("Leather Wallet", "Dark Luxury", "Executives", "Deep Cinematic", "Urdu")

    assert "1/voScript" in excinfo.value.detail


def test_request_schema_omits_local_patterns():
    gateway, client = _gateway(json.dumps({"options": _options()}))

    gateway.fetch_options("Leather Wallet", StepKind.STYLE)

    schema = client.calls[0]["response_format"]["json_schema"]["schema"]
    assert "pattern" not in schema["properties"]["options"]["items"]["properties"]["label"]
