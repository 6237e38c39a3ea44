"""Linear step state machine for the commercial script wizard."""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Tuple

from ..errors import DirectorError, GenerationError, StateError, ValidationError, user_message
from ..media import ImageAttachment
from .models import STEP_KINDS, FailurePolicy, Option, Step, StepKind, WizardState
from .views import ChoiceView, GeneratingView, InputView, ResultView, WizardView

logger = logging.getLogger(__name__)

StepListener = Callable[[Step, Step], None]

_BASE_CHOICE_STEPS = (Step.STYLE_CHOICE, Step.AUDIENCE_CHOICE, Step.TONE_CHOICE)


class WizardController:
    """Owns the current step, the accumulated selections and the active options.

    One controller serves one wizard session. At most one model request is in
    flight at a time; ``busy`` is set for its duration and any action arriving
    meanwhile fails with ``StateError``.
    """

    def __init__(
        self,
        gateway: Any,
        include_language_step: bool = True,
        failure_policy: FailurePolicy = FailurePolicy.STAY,
    ):
        self._gateway = gateway
        self._choice_steps: Tuple[Step, ...] = _BASE_CHOICE_STEPS + (
            (Step.LANGUAGE_CHOICE,) if include_language_step else ()
        )
        self.failure_policy = FailurePolicy(failure_policy)
        self._listeners: List[StepListener] = []
        self._step = Step.INPUT
        self._state = WizardState()
        self._options: List[Option] = []
        self._busy = False
        self._error: Optional[str] = None

    @property
    def step(self) -> Step:
        return self._step

    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def options(self) -> List[Option]:
        return list(self._options)

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def choice_steps(self) -> Tuple[Step, ...]:
        return self._choice_steps

    def subscribe(self, listener: StepListener) -> Callable[[], None]:
        """Call ``listener(previous, current)`` on every step change; returns an unsubscribe."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _transition(self, new_step: Step) -> None:
        previous, self._step = self._step, new_step
        if previous is new_step:
            return
        logger.info("Wizard step %s -> %s", previous.name, new_step.name)
        for listener in list(self._listeners):
            listener(previous, new_step)

    def _ensure_idle(self) -> None:
        if self._busy:
            raise StateError("A request is already in progress.")

    def _fail(self, exc: DirectorError) -> None:
        self._error = user_message(exc)
        logger.error("Wizard error at %s: %s", self._step.name, getattr(exc, "detail", exc))

    def _apply_failure_policy(self, rollback_step: Step) -> None:
        if self.failure_policy is FailurePolicy.RESET:
            self._clear()
            self._transition(Step.INPUT)
        else:
            self._transition(rollback_step)

    def _clear(self) -> None:
        self._state = WizardState()
        self._options = []

    def submit_context(self, text: str, image: Optional[ImageAttachment] = None) -> None:
        """Store the product context and fetch options for the first choice step.

        Raises:
            StateError: if the wizard is not on the input step or is busy.
            ValidationError: if neither text nor image is supplied.
            GenerationError: if the options request fails.
        """
        self._ensure_idle()
        if self._step is not Step.INPUT:
            raise StateError(f"Context can only be submitted on {Step.INPUT.name}, not {self._step.name}.")

        cleaned = (text or "").strip()
        if not cleaned and image is None:
            exc = ValidationError("Please describe a product or upload a reference image.")
            self._fail(exc)
            raise exc

        self._state.context_text = cleaned
        self._state.context_image = image
        self._error = None
        first_step = self._choice_steps[0]

        self._busy = True
        try:
            options = self._gateway.fetch_options(cleaned, STEP_KINDS[first_step], image)
        except GenerationError as exc:
            self._fail(exc)
            self._apply_failure_policy(Step.INPUT)
            raise
        finally:
            self._busy = False

        self._options = list(options)
        self._transition(first_step)

    def select_option(self, step: Step, label: str) -> None:
        """Record ``label`` for ``step`` and advance.

        ``step`` is the step the caller believes is current; a mismatch means the
        callback is stale and is rejected without touching any state.

        Raises:
            StateError: on a stale step, a label outside the active options, a
                non-choice step, or while busy.
            GenerationError: if the follow-up request fails.
        """
        self._ensure_idle()
        if step != self._step:
            raise StateError(f"Selection for step {step!r} but current step is {self._step.name}.")
        step = self._step
        if step not in self._choice_steps:
            raise StateError(f"{step.name} does not accept a selection.")
        if label not in {option.label for option in self._options}:
            raise StateError(f"{label!r} is not one of the current {step.name} options.")

        kind = STEP_KINDS[step]
        self._state.selections[kind.value] = label
        self._error = None

        index = self._choice_steps.index(step)
        if index + 1 < len(self._choice_steps):
            self._advance_to_choice(step, self._choice_steps[index + 1])
        else:
            self._generate_script(step)

    def _advance_to_choice(self, current: Step, next_step: Step) -> None:
        self._busy = True
        try:
            options = self._gateway.fetch_options(
                self._state.context_text, STEP_KINDS[next_step], self._state.context_image
            )
        except GenerationError as exc:
            self._state.selections.pop(STEP_KINDS[current].value, None)
            self._fail(exc)
            self._apply_failure_policy(current)
            raise
        finally:
            self._busy = False

        self._options = list(options)
        self._transition(next_step)

    def _generate_script(self, current: Step) -> None:
        selections = self._state.selections
        self._busy = True
        try:
            self._transition(Step.GENERATING)
            clips = self._gateway.fetch_script(
                self._state.context_text,
                selections[StepKind.STYLE.value],
                selections[StepKind.AUDIENCE.value],
                selections[StepKind.TONE.value],
                selections.get(StepKind.LANGUAGE.value),
                self._state.context_image,
            )
        except GenerationError as exc:
            selections.pop(STEP_KINDS[current].value, None)
            self._fail(exc)
            self._apply_failure_policy(current)
            raise
        finally:
            self._busy = False

        self._state.clips = list(clips)
        self._options = []
        self._transition(Step.RESULT)

    def reset(self) -> None:
        """Return to the input step with an empty state. Safe from any step."""
        self._clear()
        self._error = None
        self._busy = False
        self._transition(Step.INPUT)

    def progress(self) -> Tuple[int, int]:
        """Position of the current step among the user-visible steps, 1-based."""
        visible = (Step.INPUT,) + self._choice_steps + (Step.RESULT,)
        if self._step is Step.GENERATING:
            return len(visible) - 1, len(visible)
        return visible.index(self._step) + 1, len(visible)

    def view(self) -> WizardView:
        step = self._step
        if step is Step.INPUT:
            return InputView(
                context_text=self._state.context_text,
                context_image=self._state.context_image,
                busy=self._busy,
            )
        if step in self._choice_steps:
            return ChoiceView(
                step=step,
                kind=STEP_KINDS[step],
                position=self._choice_steps.index(step) + 1,
                options=tuple(self._options),
                busy=self._busy,
            )
        if step is Step.GENERATING:
            return GeneratingView(
                context_text=self._state.context_text,
                selections=dict(self._state.selections),
            )
        return ResultView(
            context_text=self._state.context_text,
            selections=dict(self._state.selections),
            clips=tuple(self._state.clips),
        )
