"""Wizard steps, option/clip records and the per-session state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Mapping, Optional

from ..media import ImageAttachment


class Step(IntEnum):
    """Wizard steps in the only order they can be visited."""

    INPUT = 1
    STYLE_CHOICE = 2
    AUDIENCE_CHOICE = 3
    TONE_CHOICE = 4
    LANGUAGE_CHOICE = 5
    GENERATING = 6
    RESULT = 7


class StepKind(str, Enum):
    """Option category fetched for a choice step."""

    STYLE = "style"
    AUDIENCE = "audience"
    TONE = "tone"
    LANGUAGE = "language"


STEP_KINDS: Dict[Step, StepKind] = {
    Step.STYLE_CHOICE: StepKind.STYLE,
    Step.AUDIENCE_CHOICE: StepKind.AUDIENCE,
    Step.TONE_CHOICE: StepKind.TONE,
    Step.LANGUAGE_CHOICE: StepKind.LANGUAGE,
}


@dataclass(frozen=True)
class Option:
    id: int
    label: str
    description: str
    recommended: bool = False


@dataclass(frozen=True)
class Clip:
    """One segment of a generated commercial script."""

    sequence_number: int
    visual_description: str
    on_screen_text: str
    voiceover_script: str
    duration_seconds: int
    seed: str
    transition_style: str

    def to_wire(self) -> Dict[str, Any]:
        """Field names as they appear in the model's JSON output."""
        return {
            "clipNumber": self.sequence_number,
            "globalSeed": self.seed,
            "visualDescription": self.visual_description,
            "visualTextEnglish": self.on_screen_text,
            "voScript": self.voiceover_script,
            "durationSeconds": self.duration_seconds,
            "transition": self.transition_style,
        }

    @classmethod
    def from_wire(cls, payload: Mapping[str, Any]) -> "Clip":
        return cls(
            sequence_number=int(payload["clipNumber"]),
            visual_description=str(payload["visualDescription"]).strip(),
            on_screen_text=str(payload["visualTextEnglish"]).strip(),
            voiceover_script=str(payload["voScript"]).strip(),
            duration_seconds=int(payload["durationSeconds"]),
            seed=str(payload["globalSeed"]).strip(),
            transition_style=str(payload["transition"]).strip(),
        )


@dataclass
class WizardState:
    """Everything the user has entered or received in one wizard session."""

    context_text: str = ""
    context_image: Optional[ImageAttachment] = None
    selections: Dict[str, str] = field(default_factory=dict)
    clips: List[Clip] = field(default_factory=list)

    def selection(self, kind: StepKind) -> Optional[str]:
        return self.selections.get(kind.value)


class FailurePolicy(str, Enum):
    """What the controller does with its step after a failed generation."""

    STAY = "stay"
    RESET = "reset"
