"""Main Streamlit UI for CGI Director.

Two runtime modes are supported:
- Live mode calls the configured API provider chain.
- Demo mode returns deterministic offline options and clips.
"""

from __future__ import annotations

import html
import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict

import streamlit as st
from dotenv import load_dotenv

# Ensure backend package is importable when running `streamlit run streamlit_app.py`.
ROOT = Path(__file__).resolve().parent
BACKEND_ROOT = ROOT / "backend"
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))
load_dotenv(ROOT / ".env", override=False)

SECRET_ENV_KEYS = (
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "GEMINI_API_KEY",
    "OPENAI_TIMEOUT_SECONDS",
    "CGI_DIRECTOR_OPTIONS_MODEL",
    "CGI_DIRECTOR_SCRIPT_MODEL",
    "CGI_DIRECTOR_OPENAI_MODEL",
    "CGI_DIRECTOR_FAILURE_POLICY",
    "CGI_DIRECTOR_LANGUAGE_STEP",
)


def _hydrate_env_from_streamlit_secrets() -> None:
    """Load provider config from Streamlit Secrets into env when not already set."""
    try:
        secrets = st.secrets.to_dict()
    except Exception:
        # No secrets.toml is a normal local setup.
        return

    for key in SECRET_ENV_KEYS:
        value = secrets.get(key)
        if isinstance(value, str) and value.strip() and not os.getenv(key):
            os.environ[key] = value.strip()

    # Allow indexed fallback keys in secrets without enumerating every slot.
    for key, value in secrets.items():
        if not isinstance(key, str) or not isinstance(value, str) or not value.strip():
            continue
        if key.startswith(
            ("OPENAI_API_KEY_FALLBACK_", "OPENAI_BASE_URL_FALLBACK_", "OPENAI_MODEL_FALLBACK_")
        ) and not os.getenv(key):
            os.environ[key] = value.strip()


_hydrate_env_from_streamlit_secrets()

from cgi_director.app import create_app  # noqa: E402
from cgi_director.errors import DirectorError, ValidationError, user_message  # noqa: E402
from cgi_director.logging_utils import setup_logging  # noqa: E402
from cgi_director.media import ImageAttachment  # noqa: E402
from cgi_director.wizard.controller import WizardController  # noqa: E402
from cgi_director.wizard.export import clip_copy_block, script_json, script_markdown  # noqa: E402
from cgi_director.wizard.models import Option, Step, StepKind  # noqa: E402
from cgi_director.wizard.views import ChoiceView, GeneratingView, InputView, ResultView  # noqa: E402

CONTROLLER_KEY = "cgd_controller"
STATUS_KEY = "cgd_status_line"
FLASH_KEY = "cgd_flash_error"

STEP_HEADINGS: Dict[StepKind, tuple[str, str]] = {
    StepKind.STYLE: ("Visual Mood", "Pick the look every clip will share."),
    StepKind.AUDIENCE: ("Target Persona", "Who should this commercial speak to?"),
    StepKind.TONE: ("Vocal Profile", "Choose the male voice-over delivery."),
    StepKind.LANGUAGE: ("Voice-Over Language", "Which language should the narration use?"),
}

STATUS_LINES: Dict[Step, str] = {
    Step.INPUT: "Ready for a new blueprint.",
    Step.STYLE_CHOICE: "Style options loaded.",
    Step.AUDIENCE_CHOICE: "Audience options loaded.",
    Step.TONE_CHOICE: "Voice tone options loaded.",
    Step.LANGUAGE_CHOICE: "Language options loaded.",
    Step.GENERATING: "Finalizing sequence...",
    Step.RESULT: "Master blueprint generated.",
}


@st.cache_resource
def _get_app() -> Dict[str, Any]:
    app = create_app()
    settings = app["settings"]
    setup_logging(settings.log_level, settings.log_file)
    return app


def _rerun() -> None:
    try:
        st.rerun()
    except AttributeError:
        st.experimental_rerun()


def _get_controller(app: Dict[str, Any]) -> WizardController:
    controller = st.session_state.get(CONTROLLER_KEY)
    if controller is None:
        controller = app["controller_factory"]()

        def _record_status(_previous: Step, current: Step) -> None:
            st.session_state[STATUS_KEY] = STATUS_LINES[current]

        controller.subscribe(_record_status)
        st.session_state[CONTROLLER_KEY] = controller
        st.session_state.setdefault(STATUS_KEY, STATUS_LINES[Step.INPUT])
    return controller


def _step_label(position: int) -> str:
    return f"Step {position:02d}"


def _option_caption(index: int, option: Option) -> str:
    marker = " (recommended)" if option.recommended else ""
    return f"{index}. {option.label}{marker}"


def _run_action(controller: WizardController, action: Callable[[], None], spinner_text: str) -> None:
    """Run one controller action, then rerun so the new step renders."""
    with st.spinner(spinner_text):
        try:
            action()
        except DirectorError as exc:
            if not controller.error:
                st.session_state[FLASH_KEY] = user_message(exc)
    _rerun()


def _inject_styles() -> None:
    st.markdown(
        """
        <style>
        .stApp {
            color: #eef4ff;
            background: linear-gradient(150deg, #05070d 0%, #0b1220 55%, #0f1a33 100%);
        }

        header[data-testid="stHeader"] {
            display: none;
        }

        .block-container {
            max-width: 1040px;
            padding-top: 1.2rem;
            padding-bottom: 3rem;
        }

        .brand {
            font-weight: 800;
            letter-spacing: 0.08em;
            text-transform: uppercase;
        }

        .brand span {
            color: #3b82f6;
            font-weight: 300;
        }

        .step-kicker {
            color: #3b82f6;
            font-size: 0.72rem;
            font-weight: 700;
            letter-spacing: 0.3em;
            text-transform: uppercase;
        }

        .option-card {
            border-radius: 20px;
            border: 1px solid rgba(255, 255, 255, 0.06);
            background: rgba(24, 24, 27, 0.55);
            padding: 1rem 1.1rem 0.4rem;
            min-height: 120px;
        }

        .option-card h4 {
            margin: 0;
            text-transform: uppercase;
            letter-spacing: 0.06em;
        }

        .option-card p {
            color: #a1a1aa;
            font-size: 0.8rem;
        }

        .clip-meta {
            color: #71717a;
            font-family: monospace;
            font-size: 0.78rem;
        }

        .mode-pill {
            display: inline-block;
            border-radius: 999px;
            padding: 0.15rem 0.65rem;
            font-size: 0.72rem;
            border: 1px solid rgba(188, 211, 255, 0.38);
        }

        .mode-pill.live {
            border-color: rgba(89, 233, 201, 0.72);
            color: #dcfff4;
        }

        .mode-pill.demo {
            border-color: rgba(255, 179, 131, 0.68);
            color: #ffe9df;
        }
        </style>
        """,
        unsafe_allow_html=True,
    )


def _header(controller: WizardController, demo_mode: bool) -> None:
    mode_class = "demo" if demo_mode else "live"
    mode_text = "Demo Mode" if demo_mode else "Live AI Mode"
    left, right = st.columns([3, 1])
    left.markdown(
        "<div class='brand'>CGI Director <span>Pro</span></div>",
        unsafe_allow_html=True,
    )
    right.markdown(
        f"<span class='mode-pill {mode_class}'>{mode_text}</span>",
        unsafe_allow_html=True,
    )
    position, total = controller.progress()
    st.progress(position / total)
    st.caption(st.session_state.get(STATUS_KEY, ""))


def _render_input(view: InputView, controller: WizardController, settings: Any) -> None:
    st.markdown(f"<p class='step-kicker'>{_step_label(1)}: Protocol Start</p>", unsafe_allow_html=True)
    st.title("Define the Blueprint.")
    st.caption("Provide a description or upload an image for visual inspiration.")

    with st.form("context_form"):
        text = st.text_input(
            "Product or idea",
            value=view.context_text,
            placeholder="Enter idea or product description...",
        )
        upload = st.file_uploader(
            "Visual reference (optional)",
            type=["png", "jpg", "jpeg", "webp"],
        )
        submitted = st.form_submit_button(
            "Proceed to Styles",
            type="primary",
            disabled=view.busy,
        )

    if upload is not None:
        st.image(upload.getvalue(), width=96)

    if not submitted:
        return

    image = None
    if upload is not None:
        try:
            image = ImageAttachment.from_upload(
                upload.name,
                upload.getvalue(),
                upload.type,
                max_bytes=settings.max_image_bytes,
            )
        except ValidationError as exc:
            st.session_state[FLASH_KEY] = user_message(exc)
            _rerun()
            return

    _run_action(controller, lambda: controller.submit_context(text, image), "Loading directorial AI...")


def _render_choice(view: ChoiceView, controller: WizardController, settings: Any) -> None:
    title, subtitle = STEP_HEADINGS[view.kind]
    st.markdown(
        f"<p class='step-kicker'>{_step_label(view.position + 1)}</p>",
        unsafe_allow_html=True,
    )
    st.header(title)
    st.caption(subtitle)

    is_last_choice = view.step == controller.choice_steps[-1]
    spinner_text = "Finalizing sequence..." if is_last_choice else "Loading directorial AI..."

    columns = st.columns(2)
    for idx, option in enumerate(view.options, 1):
        with columns[(idx - 1) % 2]:
            st.markdown(
                f"""
                <div class="option-card">
                  <h4>{html.escape(_option_caption(idx, option))}</h4>
                  <p>{html.escape(option.description)}</p>
                </div>
                """,
                unsafe_allow_html=True,
            )
            clicked = st.button(
                "Select",
                key=f"select_{view.step.name}_{option.id}_{idx}",
                disabled=view.busy,
                use_container_width=True,
            )
            if clicked:
                _run_action(
                    controller,
                    lambda label=option.label: controller.select_option(view.step, label),
                    spinner_text,
                )

    if st.button("Start over", key=f"restart_{view.step.name}"):
        controller.reset()
        _rerun()


def _render_generating(view: GeneratingView, controller: WizardController, settings: Any) -> None:
    st.header("Finalizing Sequence")
    st.caption("Optimizing male vocals | structuring clip blocks")
    st.info("Waiting for the script...")


def _render_result(view: ResultView, controller: WizardController, settings: Any) -> None:
    st.markdown("<p class='step-kicker'>Master Blueprint Generated</p>", unsafe_allow_html=True)
    st.title(view.context_text or "Generated Campaign")
    chips = [view.selections.get(kind.value) for kind in StepKind]
    st.caption("  |  ".join(chip for chip in chips if chip))

    action_cols = st.columns(3)
    action_cols[0].download_button(
        "Download Script (.md)",
        data=script_markdown(controller.state),
        file_name="cgi_director_script.md",
        mime="text/markdown",
        use_container_width=True,
    )
    action_cols[1].download_button(
        "Download Clips (.json)",
        data=script_json(view.clips),
        file_name="cgi_director_clips.json",
        mime="application/json",
        use_container_width=True,
    )
    if action_cols[2].button("New Campaign", type="primary", use_container_width=True):
        controller.reset()
        _rerun()

    total = len(view.clips)
    for clip in view.clips:
        st.divider()
        st.subheader(f"Sequence: Clip {clip.sequence_number} / {total}")
        st.markdown(
            f"<p class='clip-meta'>SEED: {html.escape(clip.seed)} | "
            f"{clip.duration_seconds} SEC | Transition: {html.escape(clip.transition_style)}</p>",
            unsafe_allow_html=True,
        )
        st.caption("Technical prompt (CGI direction)")
        st.code(clip.visual_description, language="text")
        text_col, vo_col = st.columns(2)
        with text_col:
            st.caption("On-screen graphics")
            st.code(clip.on_screen_text, language="text")
        with vo_col:
            st.caption("Voice-over script")
            st.code(clip.voiceover_script, language="text")
        with st.expander("Copy full clip"):
            st.code(clip_copy_block(clip, total), language="text")


_RENDERERS: Dict[type, Callable[[Any, WizardController, Any], None]] = {
    InputView: _render_input,
    ChoiceView: _render_choice,
    GeneratingView: _render_generating,
    ResultView: _render_result,
}


def main() -> None:
    st.set_page_config(
        page_title="CGI Director Pro",
        page_icon="",
        layout="centered",
    )

    _inject_styles()

    app = _get_app()
    controller = _get_controller(app)
    demo_mode = app["gateway"].demo_mode

    _header(controller, demo_mode)

    flash = st.session_state.pop(FLASH_KEY, None)
    if flash:
        st.error(flash)
    elif controller.error:
        st.error(controller.error)

    view = controller.view()
    _RENDERERS[type(view)](view, controller, app["settings"])

    st.caption("CGI DIRECTOR PRO | AUTONOMOUS CORE")


if __name__ == "__main__":
    main()
