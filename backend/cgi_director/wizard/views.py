"""Per-step view records handed to the UI.

The controller exposes exactly one of these at a time; renderers dispatch on
its type instead of checking step numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from ..media import ImageAttachment
from .models import Clip, Option, Step, StepKind


@dataclass(frozen=True)
class InputView:
    context_text: str
    context_image: Optional[ImageAttachment]
    busy: bool
    step: Step = Step.INPUT


@dataclass(frozen=True)
class ChoiceView:
    step: Step
    kind: StepKind
    position: int
    options: Tuple[Option, ...]
    busy: bool


@dataclass(frozen=True)
class GeneratingView:
    context_text: str
    selections: Dict[str, str]
    step: Step = Step.GENERATING


@dataclass(frozen=True)
class ResultView:
    context_text: str
    selections: Dict[str, str]
    clips: Tuple[Clip, ...]
    step: Step = Step.RESULT


WizardView = Union[InputView, ChoiceView, GeneratingView, ResultView]
